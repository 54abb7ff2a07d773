"""Fetch and sniff candidate specification documents.

This module handles the I/O half of discovery: fetching one URL, turning the
body into a Python value (JSON or YAML, sniffed from the content type and the
first character) and checking the OpenAPI/Swagger version markers.

The public functions are:

* :func:`fetch_candidate` -- fetch one URL and return a document that carries
  a recognised version marker.
* :func:`parse_content` -- parse raw text as JSON or YAML.
* :func:`detect_spec_version` -- return the ``openapi``/``swagger`` marker.
* :func:`load_local_spec` -- read a document from a file path or stdin for
  offline generation.

Discovery across probe paths lives in :mod:`apimapper.parser.locator`.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import httpx
import yaml

from apimapper.exceptions import FetchFailure, NotASpec

ACCEPT_HEADER = "application/json, application/yaml, text/yaml, */*"


def fetch_candidate(client: httpx.Client, url: str) -> dict[str, Any]:
    """Fetch *url* and return the parsed document if it looks like a spec.

    Args:
        client: The HTTP client to use. Timeouts and transports are the
            caller's concern.
        url: Absolute HTTP(S) URL.

    Returns:
        The parsed document (a dict with an ``openapi`` 3.x or ``swagger``
        2.x marker).

    Raises:
        FetchFailure: On transport errors and non-2xx statuses.
        NotASpec: If the body cannot be parsed or lacks version markers.
    """
    try:
        response = client.get(url, headers={"Accept": ACCEPT_HEADER})
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        raise FetchFailure(
            url, f"HTTP {status} {exc.response.reason_phrase}".rstrip(), status_code=status
        ) from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise FetchFailure(url, str(exc) or type(exc).__name__) from exc

    data = parse_content(response.text, response.headers.get("content-type", ""))
    detect_spec_version(data)
    return data


def parse_content(content: str, content_type: str = "") -> Any:
    """Parse *content* as JSON or YAML.

    JSON is tried first when the content type mentions ``json`` or the body
    starts with ``{``; otherwise, or when JSON parsing fails, YAML is tried.

    Args:
        content: The raw body text.
        content_type: The response ``Content-Type`` header, if any.

    Returns:
        The parsed value (any JSON/YAML type).

    Raises:
        NotASpec: If the content is empty or parses as neither format.
    """
    if not content.strip():
        raise NotASpec("Empty document")

    json_error: Exception | None = None
    if "json" in content_type.lower() or content.lstrip().startswith("{"):
        try:
            return json.loads(content)
        except json.JSONDecodeError as exc:
            json_error = exc

    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as exc:
        msg = "Could not parse document as JSON or YAML"
        if json_error:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise NotASpec(msg) from exc


def detect_spec_version(data: Any) -> str:
    """Return the version marker of an OpenAPI 3.x or Swagger 2.x document.

    YAML may load ``swagger: 2.0`` as a float, so markers are stringified
    before the prefix check.

    Raises:
        NotASpec: If *data* is not a mapping or carries no recognised marker.
    """
    if not isinstance(data, dict):
        kind = type(data).__name__ if data is not None else "empty document"
        raise NotASpec(f"Document must be a JSON/YAML object (got {kind})")

    openapi = data.get("openapi")
    if openapi is not None and str(openapi).startswith("3."):
        return str(openapi)

    swagger = data.get("swagger")
    if swagger is not None and str(swagger).startswith("2."):
        return str(swagger)

    raise NotASpec(
        "Document has no 'openapi: 3.x' or 'swagger: 2.x' field"
    )


def load_local_spec(source: str) -> dict[str, Any]:
    """Load a document from a file path, or from stdin when *source* is ``-``.

    Raises:
        FetchFailure: If the file is missing or unreadable.
        NotASpec: If the content is not a recognisable spec.
    """
    if source == "-":
        content = sys.stdin.read()
        hint = ""
    else:
        path = Path(source)
        if not path.is_file():
            raise FetchFailure(source, "file not found")
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise FetchFailure(source, str(exc)) from exc
        hint = "json" if path.suffix.lower() == ".json" else ""

    data = parse_content(content, hint)
    detect_spec_version(data)
    return data
