"""Client Renderer: ``ParsedApi`` -> ``client.ts``.

The generated client is one class with a property object per tag group
(``api.pet.findPetsByStatus(...)``). Every method is asynchronous and:

1. substitutes ``{name}`` placeholders with ``encodeURIComponent`` of the
   matching path parameter,
2. builds a query string from the query parameters in declaration order;
   required ones are always set, optional ones only when not ``undefined``,
3. sends the configured default headers, plus a body encoded for the
   request body's content type,
4. throws ``ApiError`` (status + status text) on a non-2xx/3xx response,
5. returns nothing for a ``void`` response type, else the parsed JSON body.

Type names come from :func:`apimapper.generator.typedefs.operation_type_names`
so the import list only ever names types that ``types.ts`` declares.
"""

from __future__ import annotations

import json
import re

from apimapper.generator.naming import (
    camel_case,
    group_name,
    member_access,
    property_key,
    unique_identifiers,
)
from apimapper.generator.typedefs import jsdoc, operation_type_names
from apimapper.models import ParsedApi, ParsedOperation, ParsedParameter

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")

_PREAMBLE = '''\
export interface ClientConfig {
  baseUrl: string;
  headers?: Record<string, string>;
}

export class ApiError extends Error {
  readonly status: number;
  readonly statusText: string;

  constructor(status: number, statusText: string) {
    super(`HTTP ${status}: ${statusText}`);
    this.name = "ApiError";
    this.status = status;
    this.statusText = statusText;
  }
}

function encodeBody(body: unknown, contentType: string): BodyInit {
  if (contentType.includes("json")) {
    return JSON.stringify(body);
  }
  if (contentType === "application/x-www-form-urlencoded") {
    const form = new URLSearchParams();
    for (const [key, value] of Object.entries(body as Record<string, unknown>)) {
      if (value !== undefined) form.set(key, String(value));
    }
    return form;
  }
  if (contentType === "multipart/form-data") {
    const form = new FormData();
    for (const [key, value] of Object.entries(body as Record<string, unknown>)) {
      if (value !== undefined) form.set(key, value instanceof Blob ? value : String(value));
    }
    return form;
  }
  return body as BodyInit;
}
'''

_CLIENT_CORE = '''\
  private readonly baseUrl: string;
  private readonly headers: Record<string, string>;

  constructor(config: ClientConfig) {
    this.baseUrl = config.baseUrl.replace(/\\/$/, "");
    this.headers = { ...(config.headers ?? {}) };
  }

  private async request(
    method: string,
    path: string,
    body?: unknown,
    contentType?: string,
  ): Promise<Response> {
    const headers: Record<string, string> = { ...this.headers };
    const init: RequestInit = { method, headers };
    if (body !== undefined && contentType !== undefined) {
      // FormData sets its own multipart boundary header.
      if (contentType !== "multipart/form-data") headers["Content-Type"] = contentType;
      init.body = encodeBody(body, contentType);
    }

    const response = await fetch(this.baseUrl + path, init);
    if (response.status < 200 || response.status >= 400) {
      throw new ApiError(response.status, response.statusText);
    }
    return response;
  }
'''


def render_client(api: ParsedApi, client_name: str) -> str:
    """Render the ``client.ts`` artifact for *api* with class *client_name*."""
    lines = [
        "// Auto-generated API client",
        "// Do not edit manually",
        "",
    ]

    imports = _imported_type_names(api)
    if imports:
        lines.append("import type {")
        lines.extend(f"  {name}," for name in imports)
        lines.append('} from "./types.js";')
        lines.append("")

    lines.append(_PREAMBLE)
    lines.append(f"export class {client_name} {{")
    lines.append(_CLIENT_CORE)

    groups = api.grouped_operations()
    members = unique_identifiers(groups, group_name, "Tag")
    for group, operations in groups.items():
        lines.append(f"  readonly {property_key(members[group])} = {{")
        for index, operation in enumerate(operations):
            if index:
                lines.append("")
            lines.extend(_method(operation))
        lines.append("  };")
        lines.append("")

    if lines[-1] == "":
        lines.pop()
    lines.append("}")
    lines.append("")
    lines.append("/** Create a new API client instance. */")
    lines.append(f"export function create{client_name}(config: ClientConfig): {client_name} {{")
    lines.append(f"  return new {client_name}(config);")
    lines.append("}")
    lines.append("")
    return "\n".join(lines)


def _imported_type_names(api: ParsedApi) -> list[str]:
    """Every type name the client references, in first-use order."""
    names: list[str] = []
    for operation in api.operations:
        type_names = operation_type_names(operation)
        for name in (type_names.params, type_names.request, type_names.response):
            if name is not None and name not in names:
                names.append(name)
    return names


def _method(operation: ParsedOperation) -> list[str]:
    names = operation_type_names(operation)
    pad = "    "
    body_pad = pad + "  "
    lines: list[str] = []

    doc = _method_doc(operation)
    if doc:
        lines.append(jsdoc(doc, pad))

    arguments: list[str] = []
    if names.params is not None:
        all_optional = not any(p.required for p in operation.params_type_parameters())
        arguments.append(f"params: {names.params}" + (" = {}" if all_optional else ""))
    if names.request is not None:
        optional = "" if operation.request_body.required else "?"
        arguments.append(f"body{optional}: {names.request}")

    lines.append(
        f"{pad}{camel_case(operation.operation_id)}: async ({', '.join(arguments)}): "
        f"Promise<{names.response}> => {{"
    )
    lines.append(f"{body_pad}const path = {_path_expression(operation)};")

    query_parameters = operation.query_parameters()
    target = "path"
    if query_parameters:
        lines.extend(_query_builder(query_parameters, body_pad))
        target = "queryString ? `${path}?${queryString}` : path"

    call = f'this.request("{operation.method.value.upper()}", {target}'
    if operation.request_body is not None:
        call += f", body, {json.dumps(operation.request_body.content_type)}"
    call += ")"

    if operation.success_response() is None:
        lines.append(f"{body_pad}await {call};")
    else:
        lines.append(f"{body_pad}const response = await {call};")
        lines.append(f"{body_pad}return (await response.json()) as {names.response};")
    lines.append(f"{pad}}},")
    return lines


def _method_doc(operation: ParsedOperation) -> str:
    parts: list[str] = []
    if operation.summary:
        parts.append(operation.summary)
    if operation.description and operation.description != operation.summary:
        parts.append(operation.description)
    if operation.deprecated:
        parts.append("@deprecated")
    return "\n".join(parts)


def _path_expression(operation: ParsedOperation) -> str:
    """Template literal for the path with path parameters substituted."""
    declared = {p.name for p in operation.path_parameters()}
    pieces: list[str] = []
    position = 0
    for match in _PLACEHOLDER.finditer(operation.path):
        pieces.append(_escape_template(operation.path[position:match.start()]))
        name = match.group(1)
        if name in declared:
            pieces.append(
                "${encodeURIComponent(String(" + member_access("params", name) + "))}"
            )
        else:
            pieces.append(_escape_template(match.group(0)))
        position = match.end()
    pieces.append(_escape_template(operation.path[position:]))
    return "`" + "".join(pieces) + "`"


def _query_builder(parameters: list[ParsedParameter], pad: str) -> list[str]:
    lines = [f"{pad}const query = new URLSearchParams();"]
    for parameter in parameters:
        value = member_access("params", parameter.name)
        setter = f"query.set({json.dumps(parameter.name)}, String({value}));"
        if parameter.required:
            lines.append(f"{pad}{setter}")
        else:
            lines.append(f"{pad}if ({value} !== undefined) {setter}")
    lines.append(f"{pad}const queryString = query.toString();")
    return lines


def _escape_template(text: str) -> str:
    return text.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")
