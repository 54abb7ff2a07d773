"""Configuration resolution with XDG paths and a precedence chain.

* **Directory layout** -- crash logs live under the XDG data directory on
  Linux/BSD and under ``~/.apimapper/`` on macOS and Windows. See
  :func:`get_data_dir` and :func:`get_logs_dir`.
* **Project config** -- an optional ``./apimapper.json`` with any of the
  :class:`~apimapper.models.GeneratorConfig` fields.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, the project file and defaults into one
  :class:`~apimapper.models.GeneratorConfig`, which the CLI then passes
  explicitly to the locator and writer.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from apimapper.exceptions import ConfigError
from apimapper.models import GeneratorConfig

_APP_NAME = "apimapper"
_PROJECT_CONFIG_FILENAME = "apimapper.json"

ENV_OUTPUT_DIR = "APIMAPPER_OUTPUT_DIR"
ENV_TIMEOUT = "APIMAPPER_TIMEOUT"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory, creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/apimapper/`` (default
    ``~/.local/share/apimapper/``). On macOS/Windows: ``~/.apimapper/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_logs_dir() -> Path:
    """Return ``<data_dir>/logs/`` (crash logs), creating it if necessary."""
    path = get_data_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Project-local config ---


def load_project_config(directory: Optional[Path] = None) -> Optional[dict[str, Any]]:
    """Load ``apimapper.json`` from *directory* (default: the working directory).

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = (directory or Path.cwd()) / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def resolve_config(
    cli_output_dir: Optional[str] = None,
    cli_timeout: Optional[float] = None,
    cli_dereference: Optional[bool] = None,
    cli_docs: Optional[bool] = None,
    project_dir: Optional[Path] = None,
) -> GeneratorConfig:
    """Resolve the effective generator configuration.

    Precedence (high to low):
        1. CLI flags (``cli_*`` arguments that are not ``None``)
        2. Environment variables (``APIMAPPER_OUTPUT_DIR``, ``APIMAPPER_TIMEOUT``)
        3. Project config (``./apimapper.json``)
        4. Defaults

    Raises:
        ConfigError: If the project file or an environment value is invalid.
    """
    values: dict[str, Any] = {}

    # 3. Project-local config
    project = load_project_config(project_dir)
    if project is not None:
        values.update(project)

    # 2. Environment variables
    env_output_dir = os.environ.get(ENV_OUTPUT_DIR)
    if env_output_dir:
        values["output_dir"] = env_output_dir
    env_timeout = os.environ.get(ENV_TIMEOUT)
    if env_timeout:
        try:
            values["timeout"] = float(env_timeout)
        except ValueError as exc:
            raise ConfigError(f"{ENV_TIMEOUT} must be a number, got '{env_timeout}'") from exc

    # 1. CLI flags
    cli_values = {
        "output_dir": cli_output_dir,
        "timeout": cli_timeout,
        "dereference": cli_dereference,
        "docs": cli_docs,
    }
    values.update({key: value for key, value in cli_values.items() if value is not None})

    try:
        return GeneratorConfig.model_validate(values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
