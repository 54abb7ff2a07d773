"""apimapper -- Generate TypeScript clients and Markdown docs from OpenAPI specs.

This package turns an OpenAPI 3.x or Swagger 2.0 document into three text
artifacts that never disagree with each other: ``types.ts`` (named types and
per-operation parameter/request/response types), ``client.ts`` (a typed,
tag-grouped ``fetch`` client) and ``API.md`` (human-readable reference).

Typical workflow::

    apimapper generate https://petstore3.swagger.io   # discover, parse, render
    apimapper list                                    # show generated clients

The pipeline is strictly sequential: locate the spec, normalize it into an
immutable intermediate representation (:class:`~apimapper.models.ParsedApi`),
then run the renderers against that single IR instance.

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models for the IR, configuration and manifest.
    parser: Spec discovery, validation and normalization.
    generator: Identifier derivation and the three renderers.
    writer: Atomic artifact and manifest writing.
    config: Configuration precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting with Rich support.
"""

__version__ = "1.0.0"
