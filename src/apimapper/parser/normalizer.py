"""Normalize a validated OpenAPI/Swagger document into the IR.

The single public entry point is :func:`normalize`, which walks a raw
document (OpenAPI 3.0/3.1 or Swagger 2.0) and returns a frozen
:class:`~apimapper.models.ParsedApi`. Internally a :class:`_Normalizer`
holds the document root and the dialect-specific locations (component
schemas, base URL, body parameters) and delegates to one helper per
section of the document:

* ``_base_url`` -- first ``servers`` entry (3.x) or ``host``/``basePath`` (2.0).
* ``_operations`` -- every path + HTTP method combination, in document order.
* ``_parameters`` -- path-level and operation-level parameters, unioned by
  name with the operation level winning.
* ``_request_body`` / ``_responses`` -- one content type and schema each.
* ``_schema`` -- the recursive schema converter.

Reference policy: a ``$ref`` that points straight at a named schema
(``#/components/schemas/Pet`` or ``#/definitions/Pet``) becomes a
reference node (``reference_name="Pet"``); it is never inlined here.
Every other internal reference (shared parameters, responses, request
bodies, path items, anonymous schema fragments) is looked up and inlined.

Composition keywords (``allOf``/``oneOf``/``anyOf``) are resolved by taking
the first branch and discarding the rest, so generated types describe the
first branch only.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx

from apimapper.exceptions import DuplicateOperationId, UnresolvableReference
from apimapper.generator.naming import (
    group_name,
    pascal_case,
    schema_type_name,
    synthesize_operation_id,
    unique_identifiers,
)
from apimapper.models import (
    PRIMITIVE_TYPES,
    HTTPMethod,
    ParameterLocation,
    ParsedApi,
    ParsedOperation,
    ParsedParameter,
    ParsedRequestBody,
    ParsedResponse,
    ParsedSchema,
    TagInfo,
)
from apimapper.parser.resolver import resolve_pointer

logger = logging.getLogger(__name__)

_COMPOSITION_KEYWORDS = ("allOf", "oneOf", "anyOf")
_PARAMETER_LOCATIONS = frozenset(loc.value for loc in ParameterLocation)
_FORM_URLENCODED = "application/x-www-form-urlencoded"
_MULTIPART = "multipart/form-data"


def normalize(document: dict[str, Any], source_url: Optional[str] = None) -> ParsedApi:
    """Build a :class:`~apimapper.models.ParsedApi` from a validated document.

    Args:
        document: A document that already passed the validator collaborator.
            It may still contain ``$ref`` pointers.
        source_url: The URL the document was found at. When given, a relative
            base URL (``servers: [{url: /api/v3}]``) is resolved against it.

    Returns:
        The immutable IR.

    Raises:
        DuplicateOperationId: If two operations derive the same identifier.
        IdentifierCollision: If two schema names or two tags derive the same
            generated name.
        UnresolvableReference: If a ``$ref`` target is absent.

    Example::

        located = locate_spec("https://petstore3.swagger.io")
        api = normalize(located.document, located.found_at_url)
        print(api.stats())
    """
    return _Normalizer(document).build(source_url)


class _Normalizer:
    """Walks one document. Not reusable across documents."""

    def __init__(self, document: dict[str, Any]):
        self.root = document
        self.is_swagger = "openapi" not in document and str(
            document.get("swagger", "")
        ).startswith("2.")
        if self.is_swagger:
            self.schema_prefix = "#/definitions/"
            self.schema_defs = document.get("definitions") or {}
        else:
            self.schema_prefix = "#/components/schemas/"
            self.schema_defs = (document.get("components") or {}).get("schemas") or {}

    def build(self, source_url: Optional[str]) -> ParsedApi:
        info = self.root.get("info") or {}
        schemas = {
            str(name): self._schema(node, (self.schema_prefix + str(name),))
            for name, node in self.schema_defs.items()
        }
        api = ParsedApi(
            title=str(info.get("title") or "Untitled API"),
            version=str(info.get("version") or "0.0.0"),
            description=info.get("description"),
            base_url=self._base_url(source_url),
            operations=tuple(self._operations()),
            schemas=schemas,
            tags=tuple(self._tags()),
        )
        unique_identifiers(api.schemas, schema_type_name, "Schema")
        unique_identifiers(api.grouped_operations(), group_name, "Tag")
        logger.debug(
            "Normalized %d operations, %d schemas, %d tags",
            len(api.operations),
            len(api.schemas),
            len(api.tags),
        )
        return api

    # --- document-level sections ---

    def _base_url(self, source_url: Optional[str]) -> Optional[str]:
        if self.is_swagger:
            host = self.root.get("host")
            base_path = self.root.get("basePath") or ""
            if host:
                schemes = self.root.get("schemes") or ["https"]
                base_url: Optional[str] = f"{schemes[0]}://{host}{base_path}"
            else:
                base_url = base_path or None
        else:
            servers = self.root.get("servers") or []
            if not servers or not isinstance(servers[0], dict) or not servers[0].get("url"):
                return None
            base_url = _expand_server_variables(servers[0])

        if base_url and source_url and "://" not in base_url:
            try:
                base_url = str(httpx.URL(source_url).join(base_url))
            except httpx.InvalidURL:
                logger.debug("Cannot resolve base URL %s against %s", base_url, source_url)
        return base_url

    def _tags(self) -> list[TagInfo]:
        return [
            TagInfo(name=str(tag["name"]), description=tag.get("description"))
            for tag in self.root.get("tags") or []
            if isinstance(tag, dict) and "name" in tag
        ]

    def _operations(self) -> list[ParsedOperation]:
        operations: list[ParsedOperation] = []
        seen: dict[str, ParsedOperation] = {}

        for path, raw_item in (self.root.get("paths") or {}).items():
            path = str(path)
            if path.startswith("x-"):
                continue
            path_item = self._deref(raw_item)
            if not isinstance(path_item, dict):
                continue
            path_params = path_item.get("parameters") or []

            for method in HTTPMethod:
                operation = path_item.get(method.value)
                if not isinstance(operation, dict):
                    continue
                parsed = self._operation(path, method, operation, path_params)

                key = pascal_case(parsed.operation_id)
                if key in seen:
                    raise DuplicateOperationId(
                        parsed.operation_id, seen[key].label, parsed.label
                    )
                seen[key] = parsed
                operations.append(parsed)

        return operations

    def _operation(
        self,
        path: str,
        method: HTTPMethod,
        operation: dict[str, Any],
        path_params: list[Any],
    ) -> ParsedOperation:
        merged = self._merge_parameters(path_params, operation.get("parameters") or [])

        if self.is_swagger:
            request_body = self._swagger_request_body(operation, merged)
        else:
            request_body = self._request_body(operation.get("requestBody"))

        return ParsedOperation(
            operation_id=operation.get("operationId")
            or synthesize_operation_id(method.value, path),
            method=method,
            path=path,
            summary=operation.get("summary"),
            description=operation.get("description"),
            tags=tuple(str(tag) for tag in operation.get("tags") or []),
            parameters=tuple(self._parameters(merged)),
            request_body=request_body,
            responses=tuple(self._responses(operation, operation.get("responses") or {})),
            deprecated=bool(operation.get("deprecated", False)),
        )

    # --- parameters ---

    def _merge_parameters(
        self, path_params: list[Any], op_params: list[Any]
    ) -> list[dict[str, Any]]:
        """Union by name; operation-level parameters shadow path-level ones."""
        resolved_path = [p for p in (self._deref(p) for p in path_params) if isinstance(p, dict)]
        resolved_op = [p for p in (self._deref(p) for p in op_params) if isinstance(p, dict)]

        overridden = {p.get("name") for p in resolved_op}
        merged = [p for p in resolved_path if p.get("name") not in overridden]
        merged.extend(resolved_op)
        return merged

    def _parameters(self, merged: list[dict[str, Any]]) -> list[ParsedParameter]:
        parameters: list[ParsedParameter] = []
        for param in merged:
            location = param.get("in")
            if location not in _PARAMETER_LOCATIONS:
                # 2.0 body/formData parameters are routed to the request body.
                continue

            type_source = param if self.is_swagger else self._deref(param.get("schema") or {})
            schema_type, _ = _split_type(type_source.get("type") if isinstance(type_source, dict) else None)
            items_type = None
            if schema_type == "array" and isinstance(type_source, dict):
                items = self._deref(type_source.get("items") or {})
                if isinstance(items, dict):
                    items_type, _ = _split_type(items.get("type"))

            parameters.append(
                ParsedParameter(
                    name=str(param.get("name", "")),
                    location=ParameterLocation(location),
                    required=bool(param.get("required", False)),
                    schema_type=schema_type or "string",
                    schema_format=type_source.get("format") if isinstance(type_source, dict) else None,
                    items_type=items_type,
                    description=param.get("description"),
                )
            )
        return parameters

    # --- bodies and responses ---

    def _request_body(self, raw_body: Any) -> Optional[ParsedRequestBody]:
        body = self._deref(raw_body)
        if not isinstance(body, dict):
            return None

        content = body.get("content") or {}
        content_type = _pick_content_type(content)
        if content_type is None:
            return None
        media = content.get(content_type) or {}

        return ParsedRequestBody(
            required=bool(body.get("required", False)),
            description=body.get("description"),
            content_type=content_type,
            schema=self._schema(media.get("schema")),
        )

    def _swagger_request_body(
        self, operation: dict[str, Any], merged: list[dict[str, Any]]
    ) -> Optional[ParsedRequestBody]:
        body_param = next((p for p in merged if p.get("in") == "body"), None)
        if body_param is not None:
            consumes = operation.get("consumes") or self.root.get("consumes") or []
            content_type = next((ct for ct in consumes if "json" in ct), "application/json")
            return ParsedRequestBody(
                required=bool(body_param.get("required", False)),
                description=body_param.get("description"),
                content_type=content_type,
                schema=self._schema(body_param.get("schema")),
            )

        form_params = [p for p in merged if p.get("in") == "formData"]
        if not form_params:
            return None

        properties = {str(p.get("name", "")): self._schema(p) for p in form_params}
        required = [str(p.get("name", "")) for p in form_params if p.get("required")]
        has_file = any(p.get("type") == "file" for p in form_params)
        return ParsedRequestBody(
            required=bool(required),
            content_type=_MULTIPART if has_file else _FORM_URLENCODED,
            schema=ParsedSchema.object_of(properties, required=required),
        )

    def _responses(
        self, operation: dict[str, Any], raw_responses: dict[Any, Any]
    ) -> list[ParsedResponse]:
        responses: list[ParsedResponse] = []
        for status_code, raw_response in raw_responses.items():
            status_code = str(status_code)
            if status_code.startswith("x-"):
                continue
            response = self._deref(raw_response)
            if not isinstance(response, dict):
                continue

            content_type: Optional[str] = None
            schema: Optional[ParsedSchema] = None
            if self.is_swagger:
                if "schema" in response:
                    produces = operation.get("produces") or self.root.get("produces") or []
                    content_type = next(
                        (ct for ct in produces if "json" in ct),
                        produces[0] if produces else "application/json",
                    )
                    schema = self._schema(response["schema"])
            else:
                content = response.get("content") or {}
                content_type = _pick_content_type(content)
                media = (content.get(content_type) or {}) if content_type else {}
                if isinstance(media, dict) and "schema" in media:
                    schema = self._schema(media["schema"])

            responses.append(
                ParsedResponse(
                    status_code=status_code,
                    description=response.get("description") or "",
                    content_type=content_type,
                    schema=schema,
                )
            )
        return responses

    # --- schemas ---

    def _schema(self, node: Any, stack: tuple[str, ...] = ()) -> ParsedSchema:
        """Convert one raw schema node; *stack* holds inlined refs for cycle detection."""
        if not isinstance(node, dict):
            return ParsedSchema.primitive("unknown")

        ref = node.get("$ref")
        if isinstance(ref, str):
            name = self._schema_name(ref)
            if name is not None:
                if name not in self.schema_defs:
                    raise UnresolvableReference(ref)
                return ParsedSchema.reference_to(name)
            if ref in stack:
                return ParsedSchema.primitive("unknown")
            return self._schema(resolve_pointer(ref, self.root), stack + (ref,))

        for keyword in _COMPOSITION_KEYWORDS:
            branches = node.get(keyword)
            if isinstance(branches, list) and branches:
                return self._schema(branches[0], stack)

        type_name, nullable = _split_type(node.get("type"))
        extra: dict[str, Any] = {
            "format": node.get("format"),
            "description": node.get("description"),
            "nullable": nullable or bool(node.get("nullable") or node.get("x-nullable")),
        }

        if isinstance(node.get("enum"), list):
            values = node["enum"]
            if None in values:
                extra["nullable"] = True
            return ParsedSchema.enum_of(
                [_enum_literal(v) for v in values if v is not None], **extra
            )

        if type_name == "array" or "items" in node:
            return ParsedSchema.array_of(self._schema(node.get("items"), stack), **extra)

        if type_name == "object" or "properties" in node or "additionalProperties" in node:
            properties = {
                str(key): self._schema(value, stack)
                for key, value in (node.get("properties") or {}).items()
            }
            required = node.get("required")
            additional = node.get("additionalProperties")
            if additional is True:
                additional_schema: Optional[ParsedSchema] = ParsedSchema.primitive("unknown")
            elif isinstance(additional, dict):
                additional_schema = self._schema(additional, stack)
            else:
                additional_schema = None
            return ParsedSchema.object_of(
                properties,
                required=[r for r in required if isinstance(r, str)]
                if isinstance(required, list)
                else (),
                additional_properties=additional_schema,
                **extra,
            )

        if type_name == "file":
            extra["format"] = "binary"
            type_name = "string"
        if type_name not in PRIMITIVE_TYPES:
            type_name = "unknown"
        return ParsedSchema.primitive(type_name, **extra)

    def _schema_name(self, ref: str) -> Optional[str]:
        """Return ``X`` for a ref pointing straight at a named schema, else ``None``."""
        if not ref.startswith("#/"):
            raise UnresolvableReference(ref, "only internal references (#/...) are supported")
        if not ref.startswith(self.schema_prefix):
            return None
        remainder = ref[len(self.schema_prefix):]
        if not remainder or "/" in remainder:
            return None
        return remainder.replace("~1", "/").replace("~0", "~")

    def _deref(self, node: Any) -> Any:
        """Follow ``$ref`` chains on non-schema objects (parameters, responses, ...)."""
        seen: set[str] = set()
        while isinstance(node, dict) and isinstance(node.get("$ref"), str):
            ref = node["$ref"]
            if ref in seen:
                raise UnresolvableReference(ref, "circular reference")
            seen.add(ref)
            node = resolve_pointer(ref, self.root)
        return node


def _split_type(type_value: Any) -> tuple[Optional[str], bool]:
    """Return ``(type, nullable)``, handling OpenAPI 3.1 type arrays."""
    if isinstance(type_value, list):
        non_null = [str(t) for t in type_value if t != "null"]
        if not non_null:
            return ("null" if type_value else None), False
        return non_null[0], "null" in type_value
    if type_value is None:
        return None, False
    return str(type_value), False


def _enum_literal(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _pick_content_type(content: dict[str, Any]) -> Optional[str]:
    """Prefer the first JSON content type, else the first declared one."""
    for content_type in content:
        if "json" in content_type:
            return content_type
    return next(iter(content), None)


def _expand_server_variables(server: dict[str, Any]) -> str:
    url = str(server["url"])
    for name, variable in (server.get("variables") or {}).items():
        if isinstance(variable, dict) and "default" in variable:
            url = url.replace("{" + str(name) + "}", str(variable["default"]))
    return url
