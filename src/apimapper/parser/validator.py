"""Validator collaborator: structural validation and optional dereferencing.

The locator hands every candidate document to a *validator*, a callable
``(document) -> validated_document`` that raises
:class:`~apimapper.exceptions.ValidationFailure` on rejection. The default
implementation here delegates to ``openapi-spec-validator``, which detects
OpenAPI 3.0, 3.1 and Swagger 2.0 documents and checks them against the
matching meta-schema.

Dereferencing is off by default so that named schemas reach the normalizer
as ``$ref`` pointers and render as named types. Pass ``dereference=True``
(or use :func:`make_validator`) to inline every internal reference first.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from openapi_spec_validator import validate as _validate_spec

from apimapper.exceptions import ValidationFailure
from apimapper.parser.resolver import resolve_refs

logger = logging.getLogger(__name__)

Validator = Callable[[dict[str, Any]], dict[str, Any]]


def validate_document(document: dict[str, Any], *, dereference: bool = False) -> dict[str, Any]:
    """Validate *document* and return it, dereferenced if requested.

    Args:
        document: A parsed candidate carrying an ``openapi``/``swagger`` marker.
        dereference: When ``True``, return a deep copy with every internal
            ``$ref`` inlined (circular references are kept as-is).

    Returns:
        The validated document. The input is never mutated.

    Raises:
        ValidationFailure: If the validator rejects the document for any
            reason, including unresolvable references.
    """
    try:
        _validate_spec(document)
    except Exception as exc:  # validator surfaces jsonschema and referencing errors alike
        message = getattr(exc, "message", None) or str(exc) or type(exc).__name__
        logger.debug("Validation rejected document: %s", message)
        raise ValidationFailure(f"Specification failed validation: {message}") from exc

    if dereference:
        return resolve_refs(document)
    return document


def make_validator(dereference: bool = False) -> Validator:
    """Return a :data:`Validator` bound to the given dereferencing mode."""

    def _validator(document: dict[str, Any]) -> dict[str, Any]:
        return validate_document(document, dereference=dereference)

    return _validator
