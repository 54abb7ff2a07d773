"""Write generated artifacts and their manifest to disk.

Layout under the output root::

    api-clients/
        petstore3.swagger.io/
            types.ts
            client.ts
            API.md
            manifest.json

A generation run never leaves a half-written directory behind. Files are
written into a hidden staging directory next to the target and the whole
directory is swapped in with :func:`os.replace` once every file is on disk.
A previous generation for the same name is moved aside first and only
deleted after the swap succeeded; on failure it is restored.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import httpx
from pydantic import ValidationError

from apimapper.exceptions import OutputError
from apimapper.models import Manifest, ParsedApi

logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.json"
UNKNOWN_NAME = "unknown-api"


def default_output_name(url: str) -> str:
    """Directory name for a spec found at *url*: its hostname, or ``unknown-api``."""
    try:
        host = httpx.URL(url).host
    except httpx.InvalidURL:
        return UNKNOWN_NAME
    return host or UNKNOWN_NAME


def build_manifest(
    api: ParsedApi,
    name: str,
    source_url: str,
    files: list[str],
    generated_at: Optional[datetime] = None,
) -> Manifest:
    """Assemble the manifest record; counters come from :meth:`ParsedApi.stats`."""
    timestamp = (generated_at or datetime.now(timezone.utc)).isoformat().replace("+00:00", "Z")
    return Manifest(
        name=name,
        title=api.title,
        version=api.version,
        description=api.description,
        source_url=source_url,
        base_url=api.base_url,
        generated_at=timestamp,
        files=files,
        stats=api.stats(),
    )


def write_artifacts(
    output_root: str | Path,
    name: str,
    artifacts: dict[str, str],
    manifest: Manifest,
) -> Path:
    """Write *artifacts* plus ``manifest.json`` to ``<output_root>/<name>/``.

    Args:
        output_root: Root directory holding one sub-directory per API.
        name: Sub-directory name (a single path segment).
        artifacts: File name to text, as returned by
            :func:`~apimapper.generator.render_artifacts`.
        manifest: The manifest to serialise next to the artifacts.

    Returns:
        The target directory.

    Raises:
        OutputError: If *name* is not a plain directory name or any file
            operation fails. The target is left as it was before the call.
    """
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise OutputError(f"Invalid output name '{name}': must be a single directory name")

    root = Path(output_root)
    target = root / name
    try:
        root.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=f".{name}.", suffix=".staging", dir=root))
    except OSError as exc:
        raise OutputError(f"Cannot create output directory {root}: {exc}") from exc

    backup = staging.with_name(staging.name + ".previous")
    try:
        for file_name, text in artifacts.items():
            (staging / file_name).write_text(text, encoding="utf-8")
        (staging / MANIFEST_FILE).write_text(
            manifest.model_dump_json(by_alias=True, indent=2) + "\n", encoding="utf-8"
        )

        if target.exists():
            os.replace(target, backup)
        os.replace(staging, target)
    except (OSError, UnicodeError) as exc:
        if backup.exists() and not target.exists():
            os.replace(backup, target)
        raise OutputError(f"Cannot write artifacts to {target}: {exc}") from exc
    finally:
        if staging.exists():
            shutil.rmtree(staging, ignore_errors=True)
        if backup.exists() and target.exists():
            shutil.rmtree(backup, ignore_errors=True)

    logger.info("Wrote %d files to %s", len(artifacts) + 1, target)
    return target


def read_manifest(directory: Path) -> Optional[Manifest]:
    """Load ``manifest.json`` from *directory*; ``None`` when missing or unreadable."""
    path = directory / MANIFEST_FILE
    if not path.is_file():
        return None
    try:
        return Manifest.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as exc:
        logger.debug("Unreadable manifest %s: %s", path, exc)
        return None


def list_manifests(output_root: str | Path) -> list[tuple[str, Optional[Manifest]]]:
    """Return ``(directory name, manifest or None)`` for every generated client.

    Hidden directories (staging leftovers) are skipped. Results are sorted by
    directory name. A missing output root yields an empty list.
    """
    root = Path(output_root)
    if not root.is_dir():
        return []
    return [
        (entry.name, read_manifest(entry))
        for entry in sorted(root.iterdir(), key=lambda p: p.name)
        if entry.is_dir() and not entry.name.startswith(".")
    ]
