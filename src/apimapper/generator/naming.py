"""Derive identifiers for generated code from API names.

Every renderer imports its names from here; none re-implements case
conversion. Identical input therefore yields byte-identical identifiers in
``types.ts``, ``client.ts`` and ``API.md``.

Examples:
  pascal_case("find-pets-by-status")             -> FindPetsByStatus
  camel_case("FindPetsByStatus")                 -> findPetsByStatus
  type_name_for("getPetById", RESPONSE_SUFFIX)   -> GetPetByIdResponse
  synthesize_operation_id("GET", "/pet/{petId}/uploadImage") -> getPetUploadImage
"""

from __future__ import annotations

import re
from typing import Callable, Iterable

from apimapper.exceptions import IdentifierCollision

REQUEST_SUFFIX = "Request"
RESPONSE_SUFFIX = "Response"
PARAMS_SUFFIX = "Params"

_SEPARATORS = re.compile(r"[^A-Za-z0-9]+")
_TS_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def _upper_first(word: str) -> str:
    return word[:1].upper() + word[1:]


def _lower_first(word: str) -> str:
    return word[:1].lower() + word[1:]


def _guard_leading_digit(name: str) -> str:
    if name[:1].isdigit():
        return "_" + name
    return name


def pascal_case(value: str) -> str:
    """Convert *value* to PascalCase.

    Splits on ``-``, ``_`` and any other non-alphanumeric run, upper-cases the
    first letter of every piece and joins them. Existing inner capitals are
    kept, so ``"findPetsByStatus"`` becomes ``"FindPetsByStatus"``.
    """
    parts = [p for p in _SEPARATORS.split(value) if p]
    if not parts:
        return "Default"
    return _guard_leading_digit("".join(_upper_first(p) for p in parts))


def camel_case(value: str) -> str:
    """Convert *value* to camelCase (PascalCase with a lower-case first letter)."""
    pascal = pascal_case(value)
    if pascal.startswith("_"):
        return pascal
    return _lower_first(pascal)


def type_name_for(operation_id: str, suffix: str) -> str:
    """Name of a per-operation type, e.g. ``FindPetsByStatusParams``."""
    return pascal_case(operation_id) + suffix


def synthesize_operation_id(method: str, path: str) -> str:
    """Build an operation id from the method and non-parameter path segments.

    ``POST /user/createWithList`` -> ``postUserCreateWithList``.
    """
    segments = [
        s for s in path.split("/") if s and not (s.startswith("{") and s.endswith("}"))
    ]
    return method.lower() + "".join(pascal_case(s) for s in segments)


def group_name(tag: str) -> str:
    """Client property name of a tag group (``"store"`` -> ``store``)."""
    return camel_case(tag)


def client_class_name(name: str) -> str:
    """Client class name for an output name (``"petstore3.swagger.io"`` -> ``Petstore3SwaggerIoClient``)."""
    return pascal_case(name) + "Client"


def property_key(name: str) -> str:
    """Render an object key for TypeScript, quoting it when it is not an identifier."""
    if _TS_IDENTIFIER.match(name):
        return name
    return '"' + name.replace("\\", "\\\\").replace('"', '\\"') + '"'


def markdown_anchor(heading: str) -> str:
    """GitHub-style anchor for a Markdown heading text."""
    anchor = heading.strip().lower()
    anchor = re.sub(r"[^\w\- ]", "", anchor)
    return anchor.replace(" ", "-")


def member_access(target: str, name: str) -> str:
    """``params.petId``, or ``params["x-trace-id"]`` for non-identifier names."""
    if _TS_IDENTIFIER.match(name):
        return f"{target}.{name}"
    return f"{target}[{property_key(name)}]"


def schema_type_name(name: str) -> str:
    """TypeScript name of a named schema; kept verbatim when already an identifier."""
    if _TS_IDENTIFIER.match(name):
        return name
    return pascal_case(name)


def unique_identifiers(
    names: Iterable[str], derive: Callable[[str], str], kind: str
) -> dict[str, str]:
    """Map each of *names* to ``derive(name)``, in first-seen order.

    Raises:
        IdentifierCollision: If two distinct names derive the same identifier.
    """
    identifiers: dict[str, str] = {}
    owners: dict[str, str] = {}
    for name in names:
        if name in identifiers:
            continue
        identifier = derive(name)
        if identifier in owners:
            raise IdentifierCollision(kind, identifier, owners[identifier], name)
        owners[identifier] = name
        identifiers[name] = identifier
    return identifiers
