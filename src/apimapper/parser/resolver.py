"""JSON-pointer lookup and full ``$ref`` dereferencing.

Two entry points:

* :func:`resolve_pointer` -- follow one internal ``$ref`` string
  (``#/components/schemas/Pet``) to its target. The normalizer uses it for
  parameters, request bodies, responses and anonymous schema fragments.
* :func:`resolve_refs` -- return a deep copy of a document with every
  internal ``$ref`` inlined. This is the optional dereferencing step of the
  validator collaborator (``--dereference``).

Only internal references (``#/...``) are supported. Circular references are
detected via a ``seen`` set and left unresolved, so a self-referencing tree
schema keeps its ``$ref`` dict at the cycle point.
"""

from __future__ import annotations

import copy
from typing import Any

from apimapper.exceptions import UnresolvableReference


def resolve_pointer(ref: str, root: dict[str, Any]) -> Any:
    """Return the value an internal ``$ref`` points to.

    Handles RFC 6901 escaping (``~1`` for ``/``, ``~0`` for ``~``).

    Raises:
        UnresolvableReference: If the reference is external or any segment
            does not exist in *root*.
    """
    if not ref.startswith("#/"):
        raise UnresolvableReference(ref, "only internal references (#/...) are supported")

    current: Any = root
    for raw_segment in ref[2:].split("/"):
        segment = raw_segment.replace("~1", "/").replace("~0", "~")
        if isinstance(current, dict):
            if segment not in current:
                raise UnresolvableReference(ref, f"key '{segment}' not found")
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise UnresolvableReference(ref, f"invalid array index '{segment}'") from exc
        else:
            raise UnresolvableReference(
                ref, f"cannot navigate into {type(current).__name__}"
            )
    return current


def resolve_refs(document: dict[str, Any]) -> dict[str, Any]:
    """Return a deep copy of *document* with every internal ``$ref`` inlined.

    Raises:
        UnresolvableReference: If a reference target is missing.
    """
    root = copy.deepcopy(document)
    return _deep_resolve(root, root, frozenset())


def _deep_resolve(obj: Any, root: dict[str, Any], seen: frozenset[str]) -> Any:
    if isinstance(obj, dict):
        ref = obj.get("$ref")
        if isinstance(ref, str):
            if ref in seen:
                return obj
            target = resolve_pointer(ref, root)
            return _deep_resolve(target, root, seen | {ref})
        return {key: _deep_resolve(value, root, seen) for key, value in obj.items()}

    if isinstance(obj, list):
        return [_deep_resolve(item, root, seen) for item in obj]

    return obj
