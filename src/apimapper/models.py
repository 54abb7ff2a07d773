"""Canonical Pydantic models shared across all apimapper modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**Intermediate representation (IR)** -- produced once per run by
:func:`~apimapper.parser.normalizer.normalize` and consumed read-only by every
renderer:
    :class:`SchemaKind`, :class:`ParsedSchema`, :class:`HTTPMethod`,
    :class:`ParameterLocation`, :class:`ParsedParameter`,
    :class:`ParsedRequestBody`, :class:`ParsedResponse`,
    :class:`ParsedOperation`, :class:`TagInfo` and :class:`ParsedApi`.

**Discovery results** -- :class:`ProbeAttempt` and :class:`LocatedSpec`.

**Configuration and bookkeeping** -- :class:`GeneratorConfig`,
:class:`ManifestStats` and :class:`Manifest`.

All IR models are frozen. Sequences are stored as tuples so that a
``ParsedApi`` cannot be mutated after construction; the three renderers rely
on that to stay consistent with each other.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


# --- Schemas ---


class SchemaKind(str, enum.Enum):
    """Discriminant of a :class:`ParsedSchema` node."""

    PRIMITIVE = "primitive"
    ENUM = "enum"
    ARRAY = "array"
    OBJECT = "object"
    REFERENCE = "reference"


PRIMITIVE_TYPES = frozenset({"string", "integer", "number", "boolean", "null", "unknown"})
"""Values accepted for :attr:`ParsedSchema.primitive_type`."""


class ParsedSchema(BaseModel):
    """A recursive description of a value's shape.

    Exactly one variant payload is populated, selected by :attr:`kind`:

    * ``primitive`` -- :attr:`primitive_type`
    * ``enum`` -- :attr:`enum_values`
    * ``array`` -- :attr:`items`
    * ``object`` -- :attr:`properties` (plus optional :attr:`required_fields`
      and :attr:`additional_properties`)
    * ``reference`` -- :attr:`reference_name`

    A node is never simultaneously a reference and an inline shape; the
    validator below rejects any other combination at construction time.

    Example::

        ParsedSchema.object_of(
            {"name": ParsedSchema.primitive("string")},
            required=["name"],
        )
    """

    model_config = ConfigDict(frozen=True)

    kind: SchemaKind
    primitive_type: Optional[str] = None
    format: Optional[str] = None
    description: Optional[str] = None
    nullable: bool = False
    properties: Optional[dict[str, ParsedSchema]] = None
    required_fields: frozenset[str] = frozenset()
    additional_properties: Optional[ParsedSchema] = None
    items: Optional[ParsedSchema] = None
    enum_values: Optional[tuple[str, ...]] = None
    reference_name: Optional[str] = None

    @model_validator(mode="after")
    def _check_single_variant(self) -> ParsedSchema:
        populated = {
            SchemaKind.PRIMITIVE: self.primitive_type is not None,
            SchemaKind.ENUM: self.enum_values is not None,
            SchemaKind.ARRAY: self.items is not None,
            SchemaKind.OBJECT: self.properties is not None,
            SchemaKind.REFERENCE: self.reference_name is not None,
        }
        active = [kind for kind, present in populated.items() if present]
        if active != [self.kind]:
            names = ", ".join(kind.value for kind in active) or "none"
            raise ValueError(
                f"{self.kind.value} schema must populate exactly its own variant "
                f"(populated: {names})"
            )
        if self.kind != SchemaKind.OBJECT and (
            self.required_fields or self.additional_properties is not None
        ):
            raise ValueError("required_fields/additional_properties are object-only")
        if self.primitive_type is not None and self.primitive_type not in PRIMITIVE_TYPES:
            raise ValueError(f"Unknown primitive type: {self.primitive_type}")
        return self

    # Convenience constructors keep call sites short and always valid.

    @classmethod
    def primitive(cls, type_: str, **extra: Any) -> ParsedSchema:
        return cls(kind=SchemaKind.PRIMITIVE, primitive_type=type_, **extra)

    @classmethod
    def enum_of(cls, values: list[str] | tuple[str, ...], **extra: Any) -> ParsedSchema:
        return cls(kind=SchemaKind.ENUM, enum_values=tuple(values), **extra)

    @classmethod
    def array_of(cls, items: ParsedSchema, **extra: Any) -> ParsedSchema:
        return cls(kind=SchemaKind.ARRAY, items=items, **extra)

    @classmethod
    def object_of(
        cls,
        properties: dict[str, ParsedSchema],
        required: list[str] | tuple[str, ...] | frozenset[str] = (),
        **extra: Any,
    ) -> ParsedSchema:
        return cls(
            kind=SchemaKind.OBJECT,
            properties=dict(properties),
            required_fields=frozenset(required),
            **extra,
        )

    @classmethod
    def reference_to(cls, name: str, **extra: Any) -> ParsedSchema:
        return cls(kind=SchemaKind.REFERENCE, reference_name=name, **extra)

    @property
    def is_reference(self) -> bool:
        return self.kind == SchemaKind.REFERENCE


# --- Operations ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised in OpenAPI/Swagger path-item objects.

    Declaration order is the order in which methods are scanned within one
    path item.
    """

    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"
    HEAD = "head"
    OPTIONS = "options"
    TRACE = "trace"


class ParameterLocation(str, enum.Enum):
    """Locations where an API parameter can appear, per OpenAPI ``in`` field."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


class ParsedParameter(BaseModel):
    """A single non-body parameter of an operation.

    Path parameters are always required: HTTP routing cannot omit a path
    segment, so ``required`` is forced to ``True`` for ``location == path``
    whatever the source document says.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    location: ParameterLocation
    required: bool = False
    schema_type: str = Field(default="string", description="JSON Schema primitive type")
    schema_format: Optional[str] = None
    items_type: Optional[str] = Field(
        default=None, description="Element primitive type when schema_type is array"
    )
    description: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _path_parameters_are_required(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("location") in (
            ParameterLocation.PATH,
            ParameterLocation.PATH.value,
        ):
            data = {**data, "required": True}
        return data


class ParsedRequestBody(BaseModel):
    """Request body of an operation: one content type and its schema."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    required: bool = False
    description: Optional[str] = None
    content_type: str = "application/json"
    schema_: ParsedSchema = Field(alias="schema")


class ParsedResponse(BaseModel):
    """One declared response, keyed by status code (``"200"``, ``"default"``, ...)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    status_code: str
    description: str = ""
    content_type: Optional[str] = None
    schema_: Optional[ParsedSchema] = Field(default=None, alias="schema")


DEFAULT_GROUP = "default"
"""Grouping key used for operations without tags."""


class ParsedOperation(BaseModel):
    """A single API operation (one URL path + HTTP method pair).

    ``parameters`` holds path, query, header and cookie parameters already
    merged from the path-item and operation levels and de-duplicated by name.
    """

    model_config = ConfigDict(frozen=True)

    operation_id: str
    method: HTTPMethod
    path: str
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: tuple[str, ...] = ()
    parameters: tuple[ParsedParameter, ...] = ()
    request_body: Optional[ParsedRequestBody] = None
    responses: tuple[ParsedResponse, ...] = ()
    deprecated: bool = False

    @property
    def group(self) -> str:
        """The grouping key: the first tag, or ``"default"`` when untagged."""
        return self.tags[0] if self.tags else DEFAULT_GROUP

    @property
    def label(self) -> str:
        """``"GET /pet/{petId}"`` -- used in diagnostics."""
        return f"{self.method.value.upper()} {self.path}"

    def path_parameters(self) -> list[ParsedParameter]:
        return [p for p in self.parameters if p.location == ParameterLocation.PATH]

    def query_parameters(self) -> list[ParsedParameter]:
        return [p for p in self.parameters if p.location == ParameterLocation.QUERY]

    def header_parameters(self) -> list[ParsedParameter]:
        return [p for p in self.parameters if p.location == ParameterLocation.HEADER]

    def params_type_parameters(self) -> list[ParsedParameter]:
        """Path and query parameters, in declaration order.

        These are the fields of the generated ``<Op>Params`` type; the
        params type exists iff this list is non-empty.
        """
        return [
            p
            for p in self.parameters
            if p.location in (ParameterLocation.PATH, ParameterLocation.QUERY)
        ]

    def success_response(self) -> Optional[ParsedResponse]:
        """Return the canonical success response, or ``None`` for "no value".

        The first response whose status code starts with ``"2"`` and which
        carries a schema wins. Both the type and client renderers call this
        so they always agree on the response type.
        """
        for response in self.responses:
            if response.status_code.startswith("2") and response.schema_ is not None:
                return response
        return None


class TagInfo(BaseModel):
    """A tag declared at the document level."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: Optional[str] = None


class ManifestStats(BaseModel):
    """Counters reported in the manifest, computed from the IR."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    operations: int
    schemas: int
    tags: int


class ParsedApi(BaseModel):
    """Root of the intermediate representation.

    Constructed once per generation run by the normalizer and never mutated
    afterwards. Every renderer takes this object as its only data input.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    version: str
    description: Optional[str] = None
    base_url: Optional[str] = None
    operations: tuple[ParsedOperation, ...] = ()
    schemas: dict[str, ParsedSchema] = Field(default_factory=dict)
    tags: tuple[TagInfo, ...] = ()

    def stats(self) -> ManifestStats:
        return ManifestStats(
            operations=len(self.operations),
            schemas=len(self.schemas),
            tags=len(self.tags),
        )

    def tag_description(self, name: str) -> Optional[str]:
        for tag in self.tags:
            if tag.name == name:
                return tag.description
        return None

    def grouped_operations(self) -> dict[str, list[ParsedOperation]]:
        """Operations grouped by :attr:`ParsedOperation.group`, first-seen order."""
        groups: dict[str, list[ParsedOperation]] = {}
        for operation in self.operations:
            groups.setdefault(operation.group, []).append(operation)
        return groups


# --- Discovery ---


class ProbeAttempt(BaseModel):
    """One fetch-sniff-validate attempt made during spec discovery."""

    url: str
    error: Optional[str] = Field(default=None, description="Failure reason, None on success")


class LocatedSpec(BaseModel):
    """A validated specification document and where it was found."""

    document: dict[str, Any]
    found_at_url: str
    attempts: list[ProbeAttempt] = Field(default_factory=list)


# --- Configuration ---


DEFAULT_PROBE_PATHS: tuple[str, ...] = (
    "/openapi.json",
    "/openapi.yaml",
    "/swagger.json",
    "/swagger.yaml",
    "/api-docs",
    "/v3/api-docs",
    "/v2/api-docs",
    "/api/v3/openapi.json",
    "/api/v3/openapi.yaml",
    "/api/v2/swagger.json",
    "/docs/openapi.json",
    "/docs/swagger.json",
    "/api/openapi.json",
    "/api/swagger.json",
    "/.well-known/openapi.json",
)
"""Conventional spec locations, highest priority first."""


class GeneratorConfig(BaseModel):
    """Effective settings for one generation run.

    Resolved by :func:`~apimapper.config.resolve_config` from CLI flags,
    environment variables and ``./apimapper.json``, then passed explicitly to
    the locator and writer.
    """

    output_dir: str = Field(default="./api-clients", description="Root directory for generated clients")
    timeout: float = Field(default=30.0, gt=0, description="Per-fetch timeout in seconds")
    probe_paths: list[str] = Field(default_factory=lambda: list(DEFAULT_PROBE_PATHS))
    dereference: bool = Field(
        default=False, description="Inline every $ref before normalization"
    )
    docs: bool = Field(default=True, description="Generate API.md")


# --- Manifest ---


class Manifest(BaseModel):
    """Bookkeeping record written next to the generated artifacts.

    Serialised with camelCase keys (``sourceUrl``, ``generatedAt``, ...).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    title: str
    version: str
    description: Optional[str] = None
    source_url: str
    base_url: Optional[str] = None
    generated_at: str
    files: list[str] = Field(default_factory=list)
    stats: ManifestStats
