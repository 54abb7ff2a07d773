"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~apimapper.exceptions.ApiMapperError` subclass.
Wrapper scripts can inspect the exit code to tell a missing spec apart from
a malformed one without parsing stderr.

Example::

    $ apimapper generate https://example.com
    $ echo $?
    4   # EXIT_SPEC_NOT_FOUND -- no spec at the URL or any probe path
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or configuration."""

EXIT_SPEC_NOT_FOUND = 4
"""No specification was found at the start URL or any probe path."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_SPEC_INVALID = 7
"""A document was found but is not a valid OpenAPI/Swagger specification."""

EXIT_GENERATION_ERROR = 8
"""The specification is valid but cannot be turned into consistent artifacts."""
