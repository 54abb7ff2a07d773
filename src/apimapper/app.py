"""Typer application and CLI entry point for apimapper.

Commands:

* ``generate SOURCE`` -- locate (or load) a spec, normalize it, render
  ``types.ts``, ``client.ts`` and ``API.md`` and write them with a manifest.
* ``list`` -- list generated clients from their manifests.
* ``inspect SOURCE`` -- locate and normalize a spec, print an IR summary.

``SOURCE`` is an HTTP(S) URL (probed for conventional spec locations when
it does not point at a spec itself), a local file path, or ``-`` for stdin.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. :class:`~apimapper.exceptions.ApiMapperError` exits with
the error's code; anything else is written to a crash log under the data
directory.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer

from apimapper import __version__
from apimapper.exceptions import ApiMapperError, ConfigError
from apimapper.exit_codes import EXIT_GENERIC_FAILURE
from apimapper.models import GeneratorConfig, ParsedApi
from apimapper.output import OutputFormat, OutputManager, configure_logging

app = typer.Typer(
    name="apimapper",
    help="Generate typed TypeScript API clients and docs from OpenAPI/Swagger specs.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"apimapper {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output (probe attempts, rejections)."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Builds the :class:`~apimapper.output.OutputManager` from the global
    flags, installs the Rich log handler and stores the manager in
    ``ctx.obj`` for the sub-commands.
    """
    output = OutputManager(
        format=OutputFormat.JSON if json_output else OutputFormat.AUTO,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
    )
    configure_logging(verbose=verbose, quiet=quiet, no_color=output.no_color)

    ctx.ensure_object(dict)
    ctx.obj["output"] = output


def _get_output(ctx: typer.Context) -> OutputManager:
    if isinstance(ctx.obj, dict) and isinstance(ctx.obj.get("output"), OutputManager):
        return ctx.obj["output"]
    return OutputManager()


def _fail(output: OutputManager, exc: ApiMapperError) -> NoReturn:
    output.error(str(exc))
    raise typer.Exit(code=exc.exit_code)


def _is_local_source(source: str) -> bool:
    return source == "-" or Path(source).is_file()


def _acquire(source: str, config: GeneratorConfig, output: OutputManager) -> tuple[ParsedApi, str]:
    """Locate or load, validate and normalize *source*; return the IR and where it came from."""
    from apimapper.parser import load_local_spec, locate_spec, make_validator, normalize

    if _is_local_source(source):
        output.info(f"Loading specification from {'stdin' if source == '-' else source}...")
        document = make_validator(config.dereference)(load_local_spec(source))
        found_at = source if source == "-" else str(Path(source).resolve())
        return normalize(document), found_at

    output.info(f"Locating specification from {source}...")
    located = locate_spec(source, config)
    output.debug(f"Found after {len(located.attempts)} attempt(s)")
    return normalize(located.document, located.found_at_url), located.found_at_url


@app.command()
def generate(
    ctx: typer.Context,
    source: str = typer.Argument(
        ..., help="Spec URL, API base URL, local file, or '-' for stdin."
    ),
    output_dir: Optional[str] = typer.Option(
        None, "--output", "-o", help="Output directory (default: ./api-clients)."
    ),
    name: Optional[str] = typer.Option(
        None, "--name", "-n", help="Override the output folder name (default: hostname)."
    ),
    docs_only: bool = typer.Option(
        False, "--docs-only", help="Generate only the Markdown documentation."
    ),
    docs: Optional[bool] = typer.Option(
        None, "--docs/--no-docs", help="Generate API.md (default: yes)."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Per-request timeout in seconds."
    ),
    dereference: Optional[bool] = typer.Option(
        None,
        "--dereference/--no-dereference",
        help="Inline every $ref before normalization.",
    ),
) -> None:
    """Generate types, client and docs from an OpenAPI/Swagger spec.

    Example::

        apimapper generate https://petstore3.swagger.io
        apimapper generate ./openapi.yaml -n petstore --no-docs
    """
    from apimapper.generator import render_artifacts
    from apimapper.generator.naming import client_class_name
    from apimapper.writer import build_manifest, default_output_name, write_artifacts

    output = _get_output(ctx)
    try:
        config = _resolve_config(
            output_dir=output_dir, timeout=timeout, dereference=dereference, docs=docs
        )
        if docs_only and docs is False:
            raise ConfigError("--docs-only and --no-docs cannot be combined")

        api, found_at = _acquire(source, config, output)
        if name:
            target_name = name
        elif _is_local_source(source):
            target_name = "stdin-api" if source == "-" else Path(source).stem
        else:
            target_name = default_output_name(found_at)

        artifacts = render_artifacts(
            api,
            client_class_name(target_name),
            types=not docs_only,
            client=not docs_only,
            docs=docs_only or config.docs,
        )
        manifest = build_manifest(api, target_name, found_at, list(artifacts))
        target = write_artifacts(config.output_dir, target_name, artifacts, manifest)
    except ApiMapperError as exc:
        _fail(output, exc)

    if output.format == OutputFormat.JSON:
        record = manifest.model_dump(by_alias=True, mode="json")
        record["outputDir"] = str(target)
        output.print_json(record)
        return

    stats = api.stats()
    output.info(f"API: {api.title} v{api.version}")
    if api.base_url:
        output.info(f"Base URL: {api.base_url}")
    output.info(f"Source: {found_at}")
    output.info(
        f"Found {stats.operations} operations, {stats.schemas} schemas, {stats.tags} tags"
    )
    for file_name in manifest.files:
        output.success(f"  ✓ {file_name}")
    output.success("  ✓ manifest.json")
    output.print_data(str(target))


@app.command("list")
def list_clients(
    ctx: typer.Context,
    output_dir: Optional[str] = typer.Option(
        None, "--output", "-o", help="Output directory (default: ./api-clients)."
    ),
) -> None:
    """List generated API clients.

    Example::

        apimapper list
        apimapper --json list -o ./clients
    """
    from apimapper.writer import list_manifests

    output = _get_output(ctx)
    try:
        config = _resolve_config(output_dir=output_dir)
    except ApiMapperError as exc:
        _fail(output, exc)

    entries = list_manifests(config.output_dir)

    if output.format == OutputFormat.JSON:
        records: list[dict[str, Any]] = []
        for entry_name, manifest in entries:
            if manifest is None:
                records.append({"name": entry_name, "error": "missing or unreadable manifest"})
            else:
                records.append(manifest.model_dump(by_alias=True, mode="json"))
        output.print_json(records)
        return

    if not entries:
        output.info(f"No generated clients found in {config.output_dir}")
        output.suggest("Run: apimapper generate <url>")
        return

    headers = ["Name", "Title", "Version", "Operations", "Schemas", "Tags", "Generated"]
    rows: list[list[str]] = []
    for entry_name, manifest in entries:
        if manifest is None:
            rows.append([entry_name, "(no manifest)", "-", "-", "-", "-", "-"])
            continue
        rows.append([
            entry_name,
            manifest.title,
            manifest.version,
            str(manifest.stats.operations),
            str(manifest.stats.schemas),
            str(manifest.stats.tags),
            manifest.generated_at,
        ])
    output.print_table(headers, rows, title=f"Generated clients ({len(rows)})")


@app.command("inspect")
def inspect_command(
    ctx: typer.Context,
    source: str = typer.Argument(
        ..., help="Spec URL, API base URL, local file, or '-' for stdin."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Per-request timeout in seconds."
    ),
    dereference: Optional[bool] = typer.Option(
        None,
        "--dereference/--no-dereference",
        help="Inline every $ref before normalization.",
    ),
) -> None:
    """Show what would be generated, without writing anything.

    Example::

        apimapper inspect https://petstore3.swagger.io
    """
    from apimapper.generator.naming import camel_case, group_name

    output = _get_output(ctx)
    try:
        config = _resolve_config(timeout=timeout, dereference=dereference)
        api, found_at = _acquire(source, config, output)
    except ApiMapperError as exc:
        _fail(output, exc)

    stats = api.stats()
    if output.format == OutputFormat.JSON:
        output.print_json({
            "title": api.title,
            "version": api.version,
            "description": api.description,
            "baseUrl": api.base_url,
            "sourceUrl": found_at,
            "stats": stats.model_dump(by_alias=True),
            "operations": [
                {
                    "operationId": op.operation_id,
                    "method": op.method.value.upper(),
                    "path": op.path,
                    "group": op.group,
                    "clientMethod": f"{group_name(op.group)}.{camel_case(op.operation_id)}",
                    "deprecated": op.deprecated,
                }
                for op in api.operations
            ],
            "schemas": list(api.schemas),
        })
        return

    output.info(f"{api.title} v{api.version}")
    output.info(f"Source: {found_at}")
    output.info(f"Base URL: {api.base_url or '-'}")
    output.info(
        f"{stats.operations} operations, {stats.schemas} schemas, {stats.tags} tags"
    )

    headers = ["Method", "Path", "Client method", "Response", "Deprecated"]
    rows: list[list[str]] = []
    for op in api.operations:
        success = op.success_response()
        rows.append([
            op.method.value.upper(),
            op.path,
            f"{group_name(op.group)}.{camel_case(op.operation_id)}",
            success.status_code if success else "void",
            "Yes" if op.deprecated else "",
        ])
    output.print_table(headers, rows, title=f"{api.title} -- Operations ({len(rows)})")


def _resolve_config(
    output_dir: Optional[str] = None,
    timeout: Optional[float] = None,
    dereference: Optional[bool] = None,
    docs: Optional[bool] = None,
) -> GeneratorConfig:
    """Resolve the configuration from CLI flags, environment and ``./apimapper.json``."""
    from apimapper.config import resolve_config

    return resolve_config(
        cli_output_dir=output_dir,
        cli_timeout=timeout,
        cli_dereference=dereference,
        cli_docs=docs,
    )


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to the logs directory and return its path."""
    from apimapper.config import get_logs_dir

    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = get_logs_dir() / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        encoding="utf-8",
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``apimapper`` console script.

    Unhandled :class:`~apimapper.exceptions.ApiMapperError` instances cause
    a clean exit with the error's ``exit_code``. All other exceptions
    produce a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        output = OutputManager()
        if isinstance(exc, ApiMapperError):
            output.error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        output.error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
