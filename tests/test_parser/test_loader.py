"""Tests for apimapper.parser.loader."""

from __future__ import annotations

import io
import json
import textwrap
from pathlib import Path

import httpx
import pytest

from apimapper.exceptions import FetchFailure, NotASpec
from apimapper.parser.loader import (
    ACCEPT_HEADER,
    detect_spec_version,
    fetch_candidate,
    load_local_spec,
    parse_content,
)

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"

MINIMAL_SPEC = {"openapi": "3.0.3", "info": {"title": "T", "version": "1"}, "paths": {}}


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


# ---------------------------------------------------------------------------
# parse_content
# ---------------------------------------------------------------------------


class TestParseContent:
    """JSON/YAML sniffing."""

    def test_json_by_content_type(self) -> None:
        assert parse_content('{"a": 1}', "application/json") == {"a": 1}

    def test_json_by_leading_brace(self) -> None:
        assert parse_content('  {"a": 1}') == {"a": 1}

    def test_yaml(self) -> None:
        content = textwrap.dedent("""\
            openapi: "3.0.3"
            info:
              title: YAML Test
        """)
        result = parse_content(content, "application/yaml")
        assert result["openapi"] == "3.0.3"
        assert result["info"]["title"] == "YAML Test"

    def test_json_content_type_with_yaml_body_falls_back(self) -> None:
        result = parse_content("openapi: 3.1.0\n", "application/json")
        assert result == {"openapi": "3.1.0"}

    def test_empty_document(self) -> None:
        with pytest.raises(NotASpec, match="Empty document"):
            parse_content("   \n")

    def test_unparseable(self) -> None:
        with pytest.raises(NotASpec, match="Could not parse"):
            parse_content("{not: [valid", "application/json")


# ---------------------------------------------------------------------------
# detect_spec_version
# ---------------------------------------------------------------------------


class TestDetectSpecVersion:
    """Version marker checks."""

    def test_openapi_3(self) -> None:
        assert detect_spec_version({"openapi": "3.1.0"}) == "3.1.0"

    def test_swagger_2(self) -> None:
        assert detect_spec_version({"swagger": "2.0"}) == "2.0"

    def test_swagger_yaml_float(self) -> None:
        assert detect_spec_version({"swagger": 2.0}) == "2.0"

    def test_unsupported_openapi_major(self) -> None:
        with pytest.raises(NotASpec, match="openapi: 3.x"):
            detect_spec_version({"openapi": "4.0.0"})

    def test_no_marker(self) -> None:
        with pytest.raises(NotASpec):
            detect_spec_version({"info": {"title": "HTML page?"}})

    def test_not_a_mapping(self) -> None:
        with pytest.raises(NotASpec, match="list"):
            detect_spec_version(["openapi", "3.0.0"])

    def test_none_document(self) -> None:
        with pytest.raises(NotASpec, match="empty document"):
            detect_spec_version(None)


# ---------------------------------------------------------------------------
# fetch_candidate
# ---------------------------------------------------------------------------


class TestFetchCandidate:
    """Fetch one URL through an injected client."""

    def test_returns_document(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=MINIMAL_SPEC)

        with _client(handler) as client:
            result = fetch_candidate(client, "https://api.example.com/openapi.json")

        assert result == MINIMAL_SPEC
        assert seen[0].headers["accept"] == ACCEPT_HEADER

    def test_yaml_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                text="swagger: '2.0'\ninfo:\n  title: T\n  version: '1'\npaths: {}\n",
                headers={"content-type": "application/yaml"},
            )

        with _client(handler) as client:
            result = fetch_candidate(client, "https://api.example.com/swagger.yaml")
        assert result["swagger"] == "2.0"

    def test_http_error_status(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        with _client(handler) as client:
            with pytest.raises(FetchFailure, match="HTTP 404") as exc_info:
                fetch_candidate(client, "https://api.example.com/openapi.json")
        assert exc_info.value.status_code == 404
        assert exc_info.value.url == "https://api.example.com/openapi.json"

    def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with _client(handler) as client:
            with pytest.raises(FetchFailure, match="connection refused") as exc_info:
                fetch_candidate(client, "https://api.example.com/openapi.json")
        assert exc_info.value.status_code is None

    def test_html_page_is_not_a_spec(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                text="<html><body>Docs</body></html>",
                headers={"content-type": "text/html"},
            )

        with _client(handler) as client:
            with pytest.raises(NotASpec):
                fetch_candidate(client, "https://api.example.com/")

    def test_json_without_marker(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"status": "ok"})

        with _client(handler) as client:
            with pytest.raises(NotASpec, match="no 'openapi"):
                fetch_candidate(client, "https://api.example.com/health")


# ---------------------------------------------------------------------------
# load_local_spec
# ---------------------------------------------------------------------------


class TestLoadLocalSpec:
    """Offline loading from files and stdin."""

    def test_json_file(self) -> None:
        result = load_local_spec(str(FIXTURES_DIR / "petstore_3.0.json"))
        assert result["openapi"] == "3.0.3"
        assert result["info"]["title"] == "Petstore API"

    def test_yaml_file(self, tmp_path: Path) -> None:
        spec_file = tmp_path / "spec.yaml"
        spec_file.write_text(
            "openapi: '3.0.3'\ninfo:\n  title: YAML\n  version: '1'\npaths: {}\n",
            encoding="utf-8",
        )
        assert load_local_spec(str(spec_file))["info"]["title"] == "YAML"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FetchFailure, match="file not found"):
            load_local_spec(str(tmp_path / "nope.json"))

    def test_stdin(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps(MINIMAL_SPEC)))
        assert load_local_spec("-") == MINIMAL_SPEC

    def test_file_without_marker(self, tmp_path: Path) -> None:
        spec_file = tmp_path / "package.json"
        spec_file.write_text('{"name": "not-a-spec"}', encoding="utf-8")
        with pytest.raises(NotASpec):
            load_local_spec(str(spec_file))
