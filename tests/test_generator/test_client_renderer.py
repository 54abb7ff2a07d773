"""Tests for apimapper.generator.client (client.ts rendering)."""

from __future__ import annotations

import re

import pytest

from apimapper.exceptions import IdentifierCollision
from apimapper.generator.client import render_client
from apimapper.generator.typedefs import operation_type_names, render_types
from apimapper.models import (
    HTTPMethod,
    ParameterLocation,
    ParsedApi,
    ParsedOperation,
    ParsedParameter,
)

IMPORT_BLOCK = re.compile(r"import type \{\n(.*?)\} from \"\./types\.js\";", re.DOTALL)
DECLARATION = re.compile(r"^export (?:interface|type) (\w+)", re.MULTILINE)


def _imported(client_ts: str) -> list[str]:
    match = IMPORT_BLOCK.search(client_ts)
    if match is None:
        return []
    return [line.strip().rstrip(",") for line in match.group(1).splitlines() if line.strip()]


def _method_block(client_ts: str, method: str) -> str:
    """Source of one generated method, from its signature to its closing brace."""
    start = client_ts.index(f"    {method}: async (")
    end = client_ts.index("\n    },", start)
    return client_ts[start:end]


class TestRenderClientPetstore:
    """client.ts for the Petstore fixture."""

    @pytest.fixture()
    def client_ts(self, petstore_api: ParsedApi) -> str:
        return render_client(petstore_api, "PetstoreClient")

    def test_header_and_class(self, client_ts: str) -> None:
        assert client_ts.startswith("// Auto-generated API client\n")
        assert "export class PetstoreClient {" in client_ts
        assert "export function createPetstoreClient(config: ClientConfig): PetstoreClient {" in client_ts

    def test_error_type(self, client_ts: str) -> None:
        assert "export class ApiError extends Error {" in client_ts
        assert "throw new ApiError(response.status, response.statusText);" in client_ts
        assert "response.status < 200 || response.status >= 400" in client_ts

    def test_base_url_trailing_slash_trimmed(self, client_ts: str) -> None:
        assert 'this.baseUrl = config.baseUrl.replace(/\\/$/, "");' in client_ts

    def test_groups_in_first_seen_order(self, client_ts: str) -> None:
        groups = re.findall(r"^  readonly (\w+) = \{$", client_ts, re.MULTILINE)
        assert groups == ["pet", "store", "user", "default"]

    def test_required_query_always_appended(self, client_ts: str) -> None:
        block = _method_block(client_ts, "findPetsByStatus")
        assert (
            "findPetsByStatus: async (params: FindPetsByStatusParams): "
            "Promise<FindPetsByStatusResponse> => {"
        ) in block
        assert "const path = `/pet/findByStatus`;" in block
        assert '      query.set("status", String(params.status));' in block
        assert "if (params.status" not in block
        assert 'this.request("GET", queryString ? `${path}?${queryString}` : path)' in block
        assert "return (await response.json()) as FindPetsByStatusResponse;" in block

    def test_optional_query_guarded(self, client_ts: str) -> None:
        block = _method_block(client_ts, "loginUser")
        assert "params: LoginUserParams = {}" in block
        assert (
            'if (params.username !== undefined) query.set("username", String(params.username));'
            in block
        )
        assert (
            'if (params.password !== undefined) query.set("password", String(params.password));'
            in block
        )

    def test_path_parameter_encoded(self, client_ts: str) -> None:
        block = _method_block(client_ts, "getPetById")
        assert "const path = `/pet/${encodeURIComponent(String(params.petId))}`;" in block
        assert 'this.request("GET", path)' in block

    def test_mixed_path_and_query(self, client_ts: str) -> None:
        block = _method_block(client_ts, "postPetUploadImage")
        assert "(params: PostPetUploadImageParams, body?: PostPetUploadImageRequest)" in block
        assert "`/pet/${encodeURIComponent(String(params.petId))}/uploadImage`" in block
        assert "if (params.additionalMetadata !== undefined)" in block
        assert '"application/octet-stream")' in block

    def test_required_json_body(self, client_ts: str) -> None:
        block = _method_block(client_ts, "addPet")
        assert "addPet: async (body: AddPetRequest): Promise<AddPetResponse> => {" in block
        assert 'this.request("POST", path, body, "application/json")' in block

    def test_optional_body(self, client_ts: str) -> None:
        block = _method_block(client_ts, "placeOrder")
        assert "(body?: PlaceOrderRequest)" in block

    def test_void_response_returns_nothing(self, client_ts: str) -> None:
        block = _method_block(client_ts, "deleteOrder")
        assert "Promise<DeleteOrderResponse>" in block
        assert 'await this.request("DELETE", path);' in block
        assert "response.json()" not in block

    def test_deprecated_tag(self, client_ts: str) -> None:
        assert "     * @deprecated" in client_ts

    def test_untagged_group(self, client_ts: str) -> None:
        block = _method_block(client_ts, "healthCheck")
        assert "healthCheck: async (): Promise<HealthCheckResponse> => {" in block

    def test_no_dangling_type_references(self, petstore_api: ParsedApi, client_ts: str) -> None:
        declared = set(DECLARATION.findall(render_types(petstore_api)))
        imported = _imported(client_ts)
        assert imported
        assert set(imported) <= declared
        referenced = set(re.findall(r"\b([A-Z]\w*(?:Params|Request|Response))\b", client_ts))
        referenced -= {"Response", "URLSearchParams"}
        assert referenced <= set(imported)

    def test_void_agreement_with_types(self, petstore_api: ParsedApi, client_ts: str) -> None:
        types_ts = render_types(petstore_api)
        for op in petstore_api.operations:
            response = operation_type_names(op).response
            is_void = f"export type {response} = void;" in types_ts
            parses_body = f"as {response};" in client_ts
            assert is_void != parses_body, op.operation_id


class TestRenderClientEdgeCases:
    """Names and paths that need quoting or escaping."""

    def test_non_identifier_parameter_names(self) -> None:
        op = ParsedOperation(
            operation_id="getThing",
            method=HTTPMethod.GET,
            path="/things/{thing-id}",
            parameters=(
                ParsedParameter(name="thing-id", location=ParameterLocation.PATH),
                ParsedParameter(name="page.size", location=ParameterLocation.QUERY),
            ),
        )
        client_ts = render_client(ParsedApi(title="T", version="1", operations=(op,)), "TClient")
        assert '`/things/${encodeURIComponent(String(params["thing-id"]))}`' in client_ts
        assert (
            'if (params["page.size"] !== undefined) '
            'query.set("page.size", String(params["page.size"]));'
        ) in client_ts

    def test_undeclared_placeholder_kept_literally(self) -> None:
        op = ParsedOperation(operation_id="odd", method=HTTPMethod.GET, path="/files/{name}")
        client_ts = render_client(ParsedApi(title="T", version="1", operations=(op,)), "TClient")
        assert "const path = `/files/{name}`;" in client_ts

    def test_form_body(self, swagger_api: ParsedApi) -> None:
        client_ts = render_client(swagger_api, "LegacyClient")
        block = _method_block(client_ts, "uploadPhoto")
        assert "(params: UploadPhotoParams, body: UploadPhotoRequest)" in block
        assert '"multipart/form-data")' in block
        assert "await this.request(" in block

    def test_api_without_operations(self) -> None:
        client_ts = render_client(ParsedApi(title="Empty", version="1"), "EmptyClient")
        assert "import type" not in client_ts
        assert "export class EmptyClient {" in client_ts


class TestGroupCollisions:
    """Tags whose client property names coincide."""

    @pytest.mark.parametrize(
        ("first_tags", "second_tags", "member"),
        [
            ((), ("Default",), "default"),
            (("pet-store",), ("petStore",), "petStore"),
        ],
    )
    def test_colliding_groups_rejected(
        self, first_tags: tuple[str, ...], second_tags: tuple[str, ...], member: str
    ) -> None:
        ops = (
            ParsedOperation(operation_id="a", method=HTTPMethod.GET, path="/a", tags=first_tags),
            ParsedOperation(operation_id="b", method=HTTPMethod.GET, path="/b", tags=second_tags),
        )
        api = ParsedApi(title="T", version="1", operations=ops)
        with pytest.raises(IdentifierCollision) as exc_info:
            render_client(api, "TClient")
        assert exc_info.value.identifier == member

    def test_same_tag_shares_one_group(self) -> None:
        ops = (
            ParsedOperation(operation_id="a", method=HTTPMethod.GET, path="/a"),
            ParsedOperation(operation_id="b", method=HTTPMethod.GET, path="/b", tags=("default",)),
        )
        client_ts = render_client(ParsedApi(title="T", version="1", operations=ops), "TClient")
        assert client_ts.count("  readonly default = {") == 1
