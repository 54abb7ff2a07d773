"""Exception hierarchy for apimapper.

All exceptions inherit from :class:`ApiMapperError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`apimapper.exit_codes`.
The top-level error handler in :func:`apimapper.app.main` catches
``ApiMapperError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    ApiMapperError              (exit 1)
    +-- ConfigError             (exit 2)
    +-- SpecNotFound            (exit 4)
    +-- FetchFailure            (exit 6)
    +-- NotASpec                (exit 7)
    +-- ValidationFailure       (exit 7)
    +-- DuplicateOperationId    (exit 8)
    +-- UnresolvableReference   (exit 8)
    +-- IdentifierCollision     (exit 8)
    +-- OutputError             (exit 1)

``FetchFailure``, ``NotASpec`` and ``ValidationFailure`` raised while probing
are recovered inside :class:`~apimapper.parser.locator.SpecLocator`; only
:class:`SpecNotFound` escapes discovery.
"""

from __future__ import annotations

from typing import Optional, Sequence

from apimapper.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_GENERATION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SPEC_INVALID,
    EXIT_SPEC_NOT_FOUND,
)


class ApiMapperError(Exception):
    """Base exception for all apimapper errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`apimapper.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(ApiMapperError):
    """Raised for configuration problems (invalid project file, bad env values)."""

    exit_code = EXIT_INVALID_USAGE


class FetchFailure(ApiMapperError):
    """Raised when a URL cannot be fetched (transport error or non-2xx status)."""

    exit_code = EXIT_CONNECTION_ERROR

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        super().__init__(f"Could not fetch {url}: {reason}")
        self.url = url
        self.reason = reason
        self.status_code = status_code


class NotASpec(ApiMapperError):
    """Raised when a fetched body parses but carries no ``openapi``/``swagger`` marker."""

    exit_code = EXIT_SPEC_INVALID


class ValidationFailure(ApiMapperError):
    """Raised when the validator collaborator rejects a candidate document."""

    exit_code = EXIT_SPEC_INVALID


class SpecNotFound(ApiMapperError):
    """Raised when the start URL and every probe path failed to yield a spec.

    Args:
        url: The URL discovery started from.
        origin: The ``scheme://host[:port]`` the probe paths were joined to.
        attempted_urls: Every URL fetched, in order (start URL first).
        reasons: Failure reason for each attempted URL, same order.
    """

    exit_code = EXIT_SPEC_NOT_FOUND

    def __init__(
        self,
        url: str,
        origin: str,
        attempted_urls: Sequence[str],
        reasons: Sequence[str] = (),
    ):
        self.url = url
        self.origin = origin
        self.attempted_urls = list(attempted_urls)
        self.reasons = list(reasons)

        lines = [
            "Could not find an OpenAPI specification.",
            "",
            f"Start URL: {url}",
            f"Probed origin: {origin}",
            "Tried:",
        ]
        for index, attempted in enumerate(self.attempted_urls):
            reason = self.reasons[index] if index < len(self.reasons) else ""
            lines.append(f"  {index + 1}. {attempted}" + (f" ({reason})" if reason else ""))
        lines.append("")
        lines.append(
            "Make sure the URL points to an OpenAPI 3.x or Swagger 2.x document, "
            "or that the API exposes one at a conventional location."
        )
        super().__init__("\n".join(lines))


class DuplicateOperationId(ApiMapperError):
    """Raised when two operations resolve to the same generated identifier."""

    exit_code = EXIT_GENERATION_ERROR

    def __init__(self, operation_id: str, first: str, second: str):
        super().__init__(
            f"Duplicate operation id '{operation_id}': "
            f"{first} and {second} resolve to the same identifier"
        )
        self.operation_id = operation_id
        self.first = first
        self.second = second


class UnresolvableReference(ApiMapperError):
    """Raised when a ``$ref`` target is absent from the document."""

    exit_code = EXIT_GENERATION_ERROR

    def __init__(self, ref: str, reason: str = "target not found"):
        super().__init__(f"Cannot resolve $ref '{ref}': {reason}")
        self.ref = ref


class IdentifierCollision(ApiMapperError):
    """Raised when two distinct API names render as the same identifier.

    Covers schema names (``Pet.Info`` and ``PetInfo`` both become
    ``PetInfo``) and tag groups (an untagged operation and the tag
    ``Default`` both become the ``default`` client property).
    """

    exit_code = EXIT_GENERATION_ERROR

    def __init__(self, kind: str, identifier: str, first: str, second: str):
        super().__init__(
            f"{kind} names '{first}' and '{second}' both render as '{identifier}'"
        )
        self.kind = kind
        self.identifier = identifier
        self.first = first
        self.second = second


class OutputError(ApiMapperError):
    """Raised when generated artifacts cannot be written to disk."""

    exit_code = EXIT_GENERIC_FAILURE
