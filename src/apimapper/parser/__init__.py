"""Spec acquisition and normalization -- locate, validate and normalize.

This sub-package is the first half of the apimapper pipeline: turning an
imprecise starting URL into a validated OpenAPI/Swagger document and then
into the immutable :class:`~apimapper.models.ParsedApi` that every renderer
consumes.

Typical usage::

    from apimapper.parser import locate_spec, normalize

    located = locate_spec("https://petstore3.swagger.io")
    api = normalize(located.document, located.found_at_url)

Sub-modules:

* :mod:`~apimapper.parser.loader` -- fetch one URL, sniff JSON/YAML, check
  version markers; read local files.
* :mod:`~apimapper.parser.validator` -- the validator collaborator
  (openapi-spec-validator) with optional dereferencing.
* :mod:`~apimapper.parser.resolver` -- JSON-pointer lookup and full ``$ref``
  inlining.
* :mod:`~apimapper.parser.locator` -- start URL first, then ordered probe
  paths under the origin.
* :mod:`~apimapper.parser.normalizer` -- raw document to IR.
"""

from apimapper.parser.loader import load_local_spec
from apimapper.parser.locator import SpecLocator, locate_spec
from apimapper.parser.normalizer import normalize
from apimapper.parser.validator import make_validator, validate_document

__all__ = [
    "SpecLocator",
    "load_local_spec",
    "locate_spec",
    "make_validator",
    "normalize",
    "validate_document",
]
