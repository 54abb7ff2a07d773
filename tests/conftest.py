"""Shared test fixtures for apimapper.

Provides reusable fixtures for loading spec fixtures, isolating the
environment from real user configuration, building the IR and running CLI
commands. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from apimapper.models import ParsedApi
from apimapper.output import LOGGER_NAME


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Reset the package logger between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_logging_between_tests() -> None:
    """Drop handlers installed by ``configure_logging`` after every test.

    The CLI callback binds a RichHandler to the stderr stream that Typer's
    CliRunner swaps in for the duration of one invocation. Leaving it
    attached would write to a closed stream in the next test, and
    ``propagate=False`` would hide records from ``caplog``.
    """
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# ---------------------------------------------------------------------------
# Raw spec fixtures (plain dicts loaded from JSON files)
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_30_raw() -> dict[str, Any]:
    """Load raw petstore 3.0 spec dict."""
    with open(FIXTURES_DIR / "petstore_3.0.json") as f:
        return json.load(f)


@pytest.fixture
def swagger_20_raw() -> dict[str, Any]:
    """Load raw Swagger 2.0 spec dict."""
    with open(FIXTURES_DIR / "swagger_2.0.json") as f:
        return json.load(f)


# ---------------------------------------------------------------------------
# Parsed IR fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_api(petstore_30_raw: dict[str, Any]) -> ParsedApi:
    """Normalized petstore 3.0 IR, as if found at petstore.example.com."""
    from apimapper.parser.normalizer import normalize

    return normalize(petstore_30_raw, "https://petstore.example.com/api/v3/openapi.json")


@pytest.fixture
def swagger_api(swagger_20_raw: dict[str, Any]) -> ParsedApi:
    """Normalized Swagger 2.0 IR."""
    from apimapper.parser.normalizer import normalize

    return normalize(swagger_20_raw)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_DATA_HOME to a subdirectory of tmp_path so that crash logs
    never touch the real user directory, clears all APIMAPPER_* environment
    variables and changes the working directory to tmp_path (so the
    default ``./api-clients`` output lands there too).

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ["APIMAPPER_OUTPUT_DIR", "APIMAPPER_TIMEOUT", "NO_COLOR"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()
