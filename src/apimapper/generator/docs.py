"""Docs Renderer: ``ParsedApi`` -> ``API.md``.

Rendering goes through the Jinja2 template ``templates/api.md.j2``. This
module builds the template context:

* groups of operations in first-seen tag order, each operation with its
  heading text, anchor and the client call that reaches it,
* the quick-start call, taken from the first GET operation without
  parameters,
* one entry per named schema with a field table or enum value list.

Anchors are computed from the exact heading texts in document order, the
way GitHub does it (duplicate headings get ``-1``, ``-2`` suffixes), so
table-of-contents links always land on the right heading.

Table cells go through the ``cell`` filter, which escapes ``|`` and turns
newlines into ``<br>`` so a description cannot break the table grid.
Names and type labels inside code spans use :func:`code_span`, which escapes
``|`` and flattens line breaks.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from apimapper.generator.naming import (
    camel_case,
    group_name,
    markdown_anchor,
    pascal_case,
    schema_type_name,
    unique_identifiers,
)
from apimapper.models import (
    HTTPMethod,
    ParsedApi,
    ParsedOperation,
    ParsedParameter,
    ParsedSchema,
    SchemaKind,
)

TEMPLATE_DIR = Path(__file__).parent / "templates"
"""Path to the Jinja2 template directory (``generator/templates/``)."""

EXAMPLE_BASE_URL = "https://api.example.com"


def render_docs(api: ParsedApi, client_name: str) -> str:
    """Render the ``API.md`` artifact for *api*.

    Args:
        api: The IR.
        client_name: Class name of the generated client; the quick start
            uses its ``create<ClientName>`` factory.

    Returns:
        Markdown text.
    """
    env = _create_jinja_env()
    template = env.get_template("api.md.j2")
    return template.render(**_build_context(api, client_name))


def _create_jinja_env() -> Environment:
    """Create the Jinja2 environment with the Markdown helper filters."""
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(disabled_extensions=("md.j2",)),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["cell"] = escape_cell
    env.filters["code"] = code_span
    env.filters["type_label"] = type_label
    env.filters["param_type"] = _parameter_type_label
    return env


class _Anchors:
    """GitHub-style anchor allocation for headings, in document order."""

    def __init__(self) -> None:
        self._counts: dict[str, int] = {}

    def add(self, heading: str) -> str:
        base = markdown_anchor(heading)
        count = self._counts.get(base, 0)
        self._counts[base] = count + 1
        return base if count == 0 else f"{base}-{count}"


def _build_context(api: ParsedApi, client_name: str) -> dict[str, Any]:
    anchors = _Anchors()
    # Fixed headings precede the endpoint headings in the template.
    anchors.add(api.title)
    for heading in ("Quick Start", "Installation", "Usage", "Table of Contents"):
        anchors.add(heading)
    endpoints_anchor = anchors.add("Endpoints")

    grouped = api.grouped_operations()
    unique_identifiers(grouped, group_name, "Tag")
    groups: list[dict[str, Any]] = []
    for group, operations in grouped.items():
        title = pascal_case(group)
        entries = []
        group_anchor = anchors.add(title)
        for operation in operations:
            heading = f"{operation.method.value.upper()} `{operation.path}`"
            entries.append(
                {
                    "operation": operation,
                    "heading": heading,
                    "anchor": anchors.add(heading),
                    "call": _client_call(operation),
                }
            )
        groups.append(
            {
                "title": title,
                "anchor": group_anchor,
                "description": api.tag_description(group),
                "operations": entries,
            }
        )

    models_anchor = anchors.add("Models")
    type_names = unique_identifiers(api.schemas, schema_type_name, "Schema")
    schemas = []
    for name, schema in api.schemas.items():
        display = type_names[name]
        schemas.append(
            {
                "name": display,
                "anchor": anchors.add(display),
                "schema": schema,
                "fields": _fields(schema),
            }
        )

    quick_start = _quick_start_operation(api)
    return {
        "api": api,
        "factory": f"create{client_name}",
        "example_base_url": api.base_url or EXAMPLE_BASE_URL,
        "quick_start": {
            "summary": quick_start.summary or quick_start.operation_id,
            "call": _client_call(quick_start) + "()",
        }
        if quick_start
        else None,
        "groups": groups,
        "schemas": schemas,
        "endpoints_anchor": endpoints_anchor,
        "models_anchor": models_anchor,
    }


def _quick_start_operation(api: ParsedApi) -> Optional[ParsedOperation]:
    for operation in api.operations:
        if operation.method == HTTPMethod.GET and not operation.parameters:
            return operation
    return None


def _client_call(operation: ParsedOperation) -> str:
    """``api.pet.findPetsByStatus`` -- the same names the client renderer emits."""
    return f"api.{group_name(operation.group)}.{camel_case(operation.operation_id)}"


def _fields(schema: ParsedSchema) -> list[dict[str, Any]]:
    if schema.kind != SchemaKind.OBJECT or not schema.properties:
        return []
    return [
        {
            "name": name,
            "type": type_label(prop),
            "required": name in schema.required_fields,
            "description": prop.description,
        }
        for name, prop in schema.properties.items()
    ]


def escape_cell(value: Any) -> str:
    """Make *value* safe inside a Markdown table cell."""
    if value is None or value == "":
        return "-"
    text = str(value).replace("\r\n", "\n").strip()
    return text.replace("|", "\\|").replace("\n", "<br>")


def code_span(value: Any) -> str:
    """Inline code safe inside a Markdown table cell.

    ``|`` is escaped (GitHub honours the escape inside code spans in tables)
    and line breaks collapse to spaces, since a code span cannot hold ``<br>``.
    """
    text = " ".join(str(value).splitlines()).replace("|", "\\|")
    if "`" in text:
        return f"`` {text} ``"
    return f"`{text}`"


def type_label(schema: Optional[ParsedSchema]) -> str:
    """Short, single-line Markdown label for a schema (``Pet[]``, ``"a" | "b"``)."""
    if schema is None:
        return "No content"

    if schema.kind == SchemaKind.REFERENCE:
        label = f"`{schema_type_name(schema.reference_name)}`"
    elif schema.kind == SchemaKind.ENUM:
        label = " \\| ".join(code_span(f'"{value}"') for value in schema.enum_values) or "`never`"
    elif schema.kind == SchemaKind.ARRAY:
        label = f"{type_label(schema.items)}[]"
    elif schema.kind == SchemaKind.OBJECT:
        if schema.properties:
            label = "`object`"
        elif schema.additional_properties is not None:
            label = f"map of {type_label(schema.additional_properties)}"
        else:
            label = "`object`"
    elif schema.format:
        label = f"`{schema.primitive_type}` ({escape_cell(schema.format)})"
    else:
        label = f"`{schema.primitive_type}`"

    if schema.nullable:
        label += " \\| `null`"
    return label


def _parameter_type_label(parameter: ParsedParameter) -> str:
    if parameter.schema_type == "array" and parameter.items_type:
        return f"`{parameter.items_type}`[]"
    if parameter.schema_format:
        return f"`{parameter.schema_type}` ({parameter.schema_format})"
    return f"`{parameter.schema_type}`"
