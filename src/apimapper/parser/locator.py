"""Locate a valid specification document from an imprecise starting URL.

:class:`SpecLocator` first tries the start URL itself. When that fails for
any reason (network error, non-2xx status, unparseable body, no version
marker, validator rejection) it derives the origin (``scheme://host[:port]``)
and probes a fixed, ordered list of conventional paths, one at a time. The
first path that yields a validated document wins; probe order encodes
priority, so probes are never raced.

Typical usage::

    from apimapper.parser.locator import locate_spec

    located = locate_spec("https://petstore3.swagger.io")
    print(located.found_at_url)   # https://petstore3.swagger.io/api/v3/openapi.json

Timeouts are a collaborator concern: pass ``timeout=`` or inject a
pre-configured :class:`httpx.Client`. A hung fetch otherwise blocks the run.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import httpx

from apimapper.exceptions import ApiMapperError, SpecNotFound
from apimapper.models import DEFAULT_PROBE_PATHS, GeneratorConfig, LocatedSpec, ProbeAttempt
from apimapper.parser.loader import fetch_candidate
from apimapper.parser.validator import Validator, make_validator, validate_document

logger = logging.getLogger(__name__)


def origin_of(url: str) -> str:
    """Return ``scheme://host[:port]`` for *url*.

    Falls back to *url* itself (minus a trailing slash) when it has no
    scheme or host, so probing still produces diagnosable attempts.
    """
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL:
        return url.rstrip("/")
    if not parsed.scheme or not parsed.host:
        return url.rstrip("/")

    host = parsed.host
    if ":" in host:
        host = f"[{host}]"
    port = f":{parsed.port}" if parsed.port is not None else ""
    return f"{parsed.scheme}://{host}{port}"


class SpecLocator:
    """Find, fetch and validate an OpenAPI/Swagger document.

    Args:
        client: Optional HTTP client. When omitted, a client with
            ``timeout`` and redirect following is created per
            :meth:`locate` call and closed afterwards. An injected client is
            never closed by the locator.
        timeout: Per-request timeout in seconds for locator-owned clients.
        probe_paths: Conventional suffixes tried against the origin, in
            priority order.
        validator: Collaborator that validates (and optionally
            dereferences) a candidate. Must raise
            :class:`~apimapper.exceptions.ValidationFailure` on rejection.

    Example::

        with httpx.Client(timeout=5.0) as client:
            located = SpecLocator(client).locate("https://api.example.com/docs")
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        *,
        timeout: float = 30.0,
        probe_paths: Sequence[str] = DEFAULT_PROBE_PATHS,
        validator: Validator = validate_document,
    ) -> None:
        self._client = client
        self._timeout = timeout
        self._probe_paths = tuple(probe_paths)
        self._validator = validator

    @property
    def probe_paths(self) -> tuple[str, ...]:
        return self._probe_paths

    def locate(self, start_url: str) -> LocatedSpec:
        """Return the validated document reachable from *start_url*.

        Raises:
            SpecNotFound: If the start URL and every probe path failed. The
                exception lists every attempted URL in order.
        """
        if self._client is not None:
            return self._locate(self._client, start_url)
        with httpx.Client(timeout=self._timeout, follow_redirects=True) as client:
            return self._locate(client, start_url)

    def _locate(self, client: httpx.Client, start_url: str) -> LocatedSpec:
        attempts: list[ProbeAttempt] = []

        document = self._attempt(client, start_url, attempts)
        if document is not None:
            logger.info("Valid specification found at %s", start_url)
            return LocatedSpec(document=document, found_at_url=start_url, attempts=attempts)

        origin = origin_of(start_url)
        logger.info("Probing conventional spec locations under %s", origin)
        for path in self._probe_paths:
            url = origin + path
            document = self._attempt(client, url, attempts)
            if document is not None:
                logger.info("Valid specification found at %s", url)
                return LocatedSpec(document=document, found_at_url=url, attempts=attempts)

        raise SpecNotFound(
            start_url,
            origin,
            [attempt.url for attempt in attempts],
            [attempt.error or "" for attempt in attempts],
        )

    def _attempt(
        self,
        client: httpx.Client,
        url: str,
        attempts: list[ProbeAttempt],
    ) -> Optional[dict[str, Any]]:
        """Run fetch, sniff and validate for one URL; record and swallow failures."""
        logger.info("Trying %s", url)
        try:
            candidate = fetch_candidate(client, url)
            document = self._validator(candidate)
        except ApiMapperError as exc:
            reason = str(exc).splitlines()[0]
            logger.debug("Rejected %s: %s", url, reason)
            attempts.append(ProbeAttempt(url=url, error=reason))
            return None

        attempts.append(ProbeAttempt(url=url))
        return document


def locate_spec(
    start_url: str,
    config: Optional[GeneratorConfig] = None,
    client: Optional[httpx.Client] = None,
) -> LocatedSpec:
    """Locate a spec using settings from *config* (defaults when omitted)."""
    config = config or GeneratorConfig()
    locator = SpecLocator(
        client,
        timeout=config.timeout,
        probe_paths=config.probe_paths,
        validator=make_validator(config.dereference),
    )
    return locator.locate(start_url)
