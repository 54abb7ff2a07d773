"""Type Renderer: ``ParsedApi`` -> ``types.ts``.

Emits one named declaration per IR schema, then per operation a params
type (path + query parameters), a request-body type and a response type.
Names come from :mod:`apimapper.generator.naming`;
:func:`operation_type_names` is the one place that decides which
per-operation types exist, and the client renderer imports it so that it
never references a type this module did not emit.

Mapping rules:

* reference -> the referenced schema's type name
* enum -> closed union of string literals, declaration order
* array -> ``T[]`` (parenthesised when ``T`` is a union)
* object with properties -> inline structural type (``interface`` at top level)
* object without properties -> ``Record<string, V>``
* nullable -> ``T | null``

Two schema names that render as one type name, or a schema name equal to a
per-operation type name, raise
:class:`~apimapper.exceptions.IdentifierCollision`.
"""

from __future__ import annotations

import json
from typing import NamedTuple, Optional

from apimapper.exceptions import IdentifierCollision
from apimapper.generator.naming import (
    PARAMS_SUFFIX,
    REQUEST_SUFFIX,
    RESPONSE_SUFFIX,
    property_key,
    schema_type_name,
    type_name_for,
    unique_identifiers,
)
from apimapper.models import ParsedApi, ParsedOperation, ParsedParameter, ParsedSchema, SchemaKind

VOID = "void"
INDENT = "  "

_PRIMITIVE_TS: dict[str, str] = {
    "string": "string",
    "integer": "number",
    "number": "number",
    "boolean": "boolean",
    "null": "null",
    "unknown": "unknown",
}

_PARAMETER_TS: dict[str, str] = {
    "integer": "number",
    "number": "number",
    "boolean": "boolean",
}


class OperationTypeNames(NamedTuple):
    """Names of the per-operation types; ``None`` when a type is not emitted."""

    params: Optional[str]
    request: Optional[str]
    response: str


def operation_type_names(operation: ParsedOperation) -> OperationTypeNames:
    return OperationTypeNames(
        params=type_name_for(operation.operation_id, PARAMS_SUFFIX)
        if operation.params_type_parameters()
        else None,
        request=type_name_for(operation.operation_id, REQUEST_SUFFIX)
        if operation.request_body is not None
        else None,
        response=type_name_for(operation.operation_id, RESPONSE_SUFFIX),
    )


def render_types(api: ParsedApi) -> str:
    """Render the ``types.ts`` artifact for *api*."""
    lines = [
        "// Auto-generated TypeScript types",
        "// Do not edit manually",
        "",
        "// ============ Schemas ============",
        "",
    ]

    type_names = unique_identifiers(api.schemas, schema_type_name, "Schema")
    for name, schema in api.schemas.items():
        lines.append(_declaration(type_names[name], schema))
        lines.append("")

    lines.append("// ============ Operation Types ============")
    lines.append("")

    schema_owners = {identifier: name for name, identifier in type_names.items()}
    for operation in api.operations:
        names = operation_type_names(operation)
        for declared in (names.params, names.request, names.response):
            if declared in schema_owners:
                raise IdentifierCollision(
                    "Type", declared, schema_owners[declared], operation.operation_id
                )
        if names.params is not None:
            lines.append(_params_interface(names.params, operation.params_type_parameters()))
            lines.append("")
        if names.request is not None:
            lines.append(_declaration(names.request, operation.request_body.schema_))
            lines.append("")
        success = operation.success_response()
        if success is None:
            lines.append(f"export type {names.response} = {VOID};")
        else:
            lines.append(_declaration(names.response, success.schema_))
        lines.append("")

    return "\n".join(lines)


def ts_type(schema: ParsedSchema, depth: int = 0) -> str:
    """TypeScript type expression for *schema*, indented for nesting *depth*."""
    rendered = _base_type(schema, depth)
    if schema.nullable and rendered not in ("null", "unknown"):
        return f"{rendered} | null"
    return rendered


def parameter_ts_type(parameter: ParsedParameter) -> str:
    if parameter.schema_type == "array":
        return _PARAMETER_TS.get(parameter.items_type or "string", "string") + "[]"
    return _PARAMETER_TS.get(parameter.schema_type, "string")


def _base_type(schema: ParsedSchema, depth: int) -> str:
    if schema.kind == SchemaKind.REFERENCE:
        return schema_type_name(schema.reference_name)

    if schema.kind == SchemaKind.ENUM:
        if not schema.enum_values:
            return "never"
        return " | ".join(json.dumps(value) for value in schema.enum_values)

    if schema.kind == SchemaKind.ARRAY:
        item = ts_type(schema.items, depth)
        if " | " in item:
            item = f"({item})"
        return f"{item}[]"

    if schema.kind == SchemaKind.OBJECT:
        if not schema.properties:
            value = (
                ts_type(schema.additional_properties, depth)
                if schema.additional_properties is not None
                else "unknown"
            )
            return f"Record<string, {value}>"
        body = _object_members(schema, depth + 1)
        return "{\n" + body + "\n" + INDENT * depth + "}"

    if schema.primitive_type == "string" and schema.format == "binary":
        return "Blob"
    return _PRIMITIVE_TS.get(schema.primitive_type, "unknown")


def _object_members(schema: ParsedSchema, depth: int) -> str:
    pad = INDENT * depth
    lines: list[str] = []
    for name, prop in schema.properties.items():
        if prop.description:
            lines.append(jsdoc(prop.description, pad))
        optional = "" if name in schema.required_fields else "?"
        lines.append(f"{pad}{property_key(name)}{optional}: {ts_type(prop, depth)};")
    return "\n".join(lines)


def _declaration(name: str, schema: ParsedSchema) -> str:
    lines: list[str] = []
    if schema.description:
        lines.append(jsdoc(schema.description))

    if schema.kind == SchemaKind.OBJECT and schema.properties and not schema.nullable:
        lines.append(f"export interface {name} {{")
        lines.append(_object_members(schema, 1))
        lines.append("}")
    else:
        lines.append(f"export type {name} = {ts_type(schema)};")
    return "\n".join(lines)


def _params_interface(name: str, parameters: list[ParsedParameter]) -> str:
    lines = [f"export interface {name} {{"]
    for parameter in parameters:
        if parameter.description:
            lines.append(jsdoc(parameter.description, INDENT))
        optional = "" if parameter.required else "?"
        lines.append(
            f"{INDENT}{property_key(parameter.name)}{optional}: {parameter_ts_type(parameter)};"
        )
    lines.append("}")
    return "\n".join(lines)


def jsdoc(text: str, pad: str = "") -> str:
    """Render *text* as a JSDoc block; ``*/`` inside the text is neutralised."""
    safe = text.strip().replace("*/", "*\\/")
    text_lines = safe.splitlines() or [""]
    if len(text_lines) == 1:
        return f"{pad}/** {text_lines[0]} */"
    body = "\n".join(f"{pad} * {line}".rstrip() for line in text_lines)
    return f"{pad}/**\n{body}\n{pad} */"
