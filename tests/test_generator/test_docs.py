"""Tests for apimapper.generator.docs (API.md rendering)."""

from __future__ import annotations

import re

import pytest

from apimapper.exceptions import IdentifierCollision
from apimapper.generator.docs import code_span, escape_cell, render_docs, type_label
from apimapper.generator.naming import markdown_anchor
from apimapper.models import (
    HTTPMethod,
    ParameterLocation,
    ParsedApi,
    ParsedOperation,
    ParsedParameter,
    ParsedResponse,
    ParsedSchema,
)

HEADING = re.compile(r"^#{1,6} (.+)$", re.MULTILINE)
LINK = re.compile(r"\]\(#([^)]+)\)")
UNESCAPED_PIPE = re.compile(r"(?<!\\)\|")


def _heading_anchors(markdown: str) -> set[str]:
    """Anchors GitHub would assign to every heading, duplicates suffixed."""
    counts: dict[str, int] = {}
    anchors: set[str] = set()
    in_fence = False
    for line in markdown.splitlines():
        if line.startswith("```"):
            in_fence = not in_fence
            continue
        match = HEADING.match(line)
        if in_fence or match is None:
            continue
        base = markdown_anchor(match.group(1))
        count = counts.get(base, 0)
        counts[base] = count + 1
        anchors.add(base if count == 0 else f"{base}-{count}")
    return anchors


class TestEscapeCell:
    """Markdown table cell escaping."""

    def test_pipe_escaped(self) -> None:
        assert escape_cell("a | b") == "a \\| b"

    def test_newlines_become_breaks(self) -> None:
        assert escape_cell("line one\nline two\r\nline three") == "line one<br>line two<br>line three"

    def test_empty_values(self) -> None:
        assert escape_cell(None) == "-"
        assert escape_cell("") == "-"


class TestCodeSpan:
    """Inline code inside table cells."""

    def test_plain(self) -> None:
        assert code_span("petId") == "`petId`"

    def test_pipe_escaped(self) -> None:
        assert code_span("a|b") == "`a\\|b`"

    def test_newlines_flattened(self) -> None:
        assert code_span("line one\nline two") == "`line one line two`"

    def test_backtick_uses_double_fence(self) -> None:
        assert code_span("a`b") == "`` a`b ``"


class TestTypeLabel:
    """Single-line type labels."""

    def test_reference(self) -> None:
        assert type_label(ParsedSchema.reference_to("Pet")) == "`Pet`"

    def test_array(self) -> None:
        assert type_label(ParsedSchema.array_of(ParsedSchema.reference_to("Pet"))) == "`Pet`[]"

    def test_enum(self) -> None:
        assert type_label(ParsedSchema.enum_of(["a", "b"])) == '`"a"` \\| `"b"`'

    def test_primitive_with_format(self) -> None:
        assert type_label(ParsedSchema.primitive("integer", format="int64")) == "`integer` (int64)"

    def test_nullable(self) -> None:
        assert type_label(ParsedSchema.primitive("string", nullable=True)) == "`string` \\| `null`"

    def test_map(self) -> None:
        schema = ParsedSchema.object_of({}, additional_properties=ParsedSchema.primitive("string"))
        assert type_label(schema) == "map of `string`"

    def test_no_schema(self) -> None:
        assert type_label(None) == "No content"


class TestRenderDocsPetstore:
    """API.md for the Petstore fixture."""

    @pytest.fixture()
    def api_md(self, petstore_api: ParsedApi) -> str:
        return render_docs(petstore_api, "PetstoreClient")

    def test_title_block(self, api_md: str) -> None:
        assert api_md.startswith("# Petstore API\n")
        assert "**Version:** 1.0.0" in api_md
        assert "A sample API for managing pets" in api_md
        assert "> **Base URL:** `https://petstore.example.com/api/v3`" in api_md

    def test_quick_start(self, api_md: str) -> None:
        assert 'import { createPetstoreClient } from "./client.js";' in api_md
        assert 'baseUrl: "https://petstore.example.com/api/v3",' in api_md
        assert "// Example: Returns pet inventories by status" in api_md
        assert "const result = await api.store.getInventory();" in api_md

    def test_table_of_contents(self, api_md: str) -> None:
        assert "- [Endpoints](#endpoints)" in api_md
        assert "  - [Pet](#pet)" in api_md
        assert "    - [GET `/pet/{petId}`](#get-petpetid)" in api_md
        assert "    - [DELETE `/pet/{petId}`](#delete-petpetid)" in api_md
        assert "- [Models](#models)" in api_md

    def test_every_toc_link_resolves(self, api_md: str) -> None:
        anchors = _heading_anchors(api_md)
        links = LINK.findall(api_md)
        assert links
        missing = [link for link in links if link not in anchors]
        assert missing == []

    def test_group_sections_in_order(self, api_md: str) -> None:
        groups = re.findall(r"^### (Pet|Store|User|Default)$", api_md, re.MULTILINE)
        assert groups[:4] == ["Pet", "Store", "User", "Default"]
        assert "Everything about your pets" in api_md

    def test_operation_section(self, api_md: str) -> None:
        assert "#### GET `/pet/findByStatus`" in api_md
        assert "**Finds Pets by status**" in api_md
        assert "- **Operation ID:** `findPetsByStatus`" in api_md
        assert "- **Client method:** `api.pet.findPetsByStatus()`" in api_md

    def test_parameter_table_escapes_pipes(self, api_md: str) -> None:
        assert (
            "| `status` | `string` | Yes | query | Status values \\| that need to be considered |"
            in api_md
        )

    def test_header_parameter_documented(self, api_md: str) -> None:
        assert "| `api_key` | `string` | No | header | - |" in api_md

    def test_request_body(self, api_md: str) -> None:
        assert "Pet object that needs to be added" in api_md
        assert "- Content-Type: `application/json`" in api_md
        assert "- Type: `Pet`" in api_md

    def test_responses_table(self, api_md: str) -> None:
        assert "| `200` | successful operation | `Pet`[] |" in api_md
        assert "| `405` | Invalid input | No content |" in api_md

    def test_deprecated_notice(self, api_md: str) -> None:
        assert api_md.count("> **Deprecated:** this endpoint is deprecated.") == 1

    def test_models(self, api_md: str) -> None:
        assert "## Models" in api_md
        assert "| `category` | `Category` | No | - |" in api_md
        assert "| `name` | `string` | Yes | - |" in api_md
        assert (
            '| `status` | `"available"` \\| `"pending"` \\| `"sold"` | No | pet status in the store |'
            in api_md
        )
        assert '- `"placed"`' in api_md
        assert "- Type: map of `string` \\| `null`" in api_md

    def test_deterministic(self, petstore_api: ParsedApi, api_md: str) -> None:
        assert render_docs(petstore_api, "PetstoreClient") == api_md


class TestRenderDocsEdgeCases:
    def test_no_quick_start_operation(self) -> None:
        op = ParsedOperation(
            operation_id="getThing",
            method=HTTPMethod.GET,
            path="/things/{id}",
            parameters=(ParsedParameter(name="id", location=ParameterLocation.PATH),),
        )
        api_md = render_docs(ParsedApi(title="Things", version="2", operations=(op,)), "ThingsClient")
        assert "// Example:" not in api_md
        assert 'baseUrl: "https://api.example.com",' in api_md
        assert "_No responses declared._" in api_md
        assert "_No models defined._" in api_md

    def test_multiline_description_in_cell(self) -> None:
        op = ParsedOperation(
            operation_id="search",
            method=HTTPMethod.GET,
            path="/search",
            parameters=(
                ParsedParameter(
                    name="q",
                    location=ParameterLocation.QUERY,
                    description="Search text.\nSupports | operators.",
                ),
            ),
        )
        api_md = render_docs(ParsedApi(title="S", version="1", operations=(op,)), "SClient")
        assert "| `q` | `string` | No | query | Search text.<br>Supports \\| operators. |" in api_md

    def test_duplicate_headings_get_suffixes(self) -> None:
        ops = (
            ParsedOperation(operation_id="a", method=HTTPMethod.GET, path="/x", tags=("one",)),
            ParsedOperation(operation_id="b", method=HTTPMethod.GET, path="/x/", tags=("two",)),
        )
        api = ParsedApi(title="Dup", version="1", operations=ops)
        api_md = render_docs(api, "DupClient")
        assert "(#get-x)" in api_md
        assert "(#get-x-1)" in api_md

    def test_enum_literals_keep_table_grid(self) -> None:
        schema = ParsedSchema.object_of({"op": ParsedSchema.enum_of(["a|b", "c"])})
        api_md = render_docs(ParsedApi(title="M", version="1", schemas={"M": schema}), "MClient")
        row = next(line for line in api_md.splitlines() if line.startswith("| `op`"))
        assert row == '| `op` | `"a\\|b"` \\| `"c"` | No | - |'
        assert len(UNESCAPED_PIPE.findall(row)) == 5

    def test_response_enum_with_newline(self) -> None:
        op = ParsedOperation(
            operation_id="mode",
            method=HTTPMethod.GET,
            path="/mode",
            responses=(
                ParsedResponse(
                    status_code="200", description="OK", schema=ParsedSchema.enum_of(["on\noff", "auto"])
                ),
            ),
        )
        api_md = render_docs(ParsedApi(title="S", version="1", operations=(op,)), "SClient")
        assert '| `200` | OK | `"on off"` \\| `"auto"` |' in api_md

    def test_parameter_name_with_pipe(self) -> None:
        op = ParsedOperation(
            operation_id="search",
            method=HTTPMethod.GET,
            path="/search",
            parameters=(ParsedParameter(name="a|b", location=ParameterLocation.QUERY),),
        )
        api_md = render_docs(ParsedApi(title="S", version="1", operations=(op,)), "SClient")
        assert "| `a\\|b` | `string` | No | query | - |" in api_md

    def test_array_parameter_type(self) -> None:
        op = ParsedOperation(
            operation_id="listItems",
            method=HTTPMethod.GET,
            path="/items",
            parameters=(
                ParsedParameter(
                    name="ids",
                    location=ParameterLocation.QUERY,
                    schema_type="array",
                    items_type="integer",
                ),
            ),
        )
        api_md = render_docs(ParsedApi(title="S", version="1", operations=(op,)), "SClient")
        assert "| `ids` | `integer`[] | No | query | - |" in api_md

    def test_colliding_schema_names_rejected(self) -> None:
        api = ParsedApi(
            title="S",
            version="1",
            schemas={
                "Pet.Info": ParsedSchema.primitive("string"),
                "PetInfo": ParsedSchema.primitive("integer"),
            },
        )
        with pytest.raises(IdentifierCollision):
            render_docs(api, "SClient")
