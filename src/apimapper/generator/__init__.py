"""Artifact generation -- render the IR into types, client and docs.

Each renderer is a pure function of a :class:`~apimapper.models.ParsedApi`;
none of them mutates it, so they can run in any order (or in parallel)
against the same instance.

Typical usage::

    from apimapper.generator import render_artifacts

    artifacts = render_artifacts(api, "PetstoreClient")
    for file_name, text in artifacts.items():
        print(file_name, len(text))

Sub-modules:

* :mod:`~apimapper.generator.naming` -- identifier derivation shared by
  every renderer.
* :mod:`~apimapper.generator.typedefs` -- ``types.ts``.
* :mod:`~apimapper.generator.client` -- ``client.ts``.
* :mod:`~apimapper.generator.docs` -- ``API.md`` via Jinja2.
"""

from __future__ import annotations

from apimapper.generator.client import render_client
from apimapper.generator.docs import render_docs
from apimapper.generator.typedefs import render_types
from apimapper.models import ParsedApi

TYPES_FILE = "types.ts"
CLIENT_FILE = "client.ts"
DOCS_FILE = "API.md"


def render_artifacts(
    api: ParsedApi,
    client_name: str,
    *,
    types: bool = True,
    client: bool = True,
    docs: bool = True,
) -> dict[str, str]:
    """Render the selected artifacts and map file names to their text.

    The client imports from ``types.ts``, so requesting the client without
    the types yields a client that only compiles next to an existing
    ``types.ts`` from the same IR.
    """
    artifacts: dict[str, str] = {}
    if types:
        artifacts[TYPES_FILE] = render_types(api)
    if client:
        artifacts[CLIENT_FILE] = render_client(api, client_name)
    if docs:
        artifacts[DOCS_FILE] = render_docs(api, client_name)
    return artifacts


__all__ = [
    "CLIENT_FILE",
    "DOCS_FILE",
    "TYPES_FILE",
    "render_artifacts",
    "render_client",
    "render_docs",
    "render_types",
]
