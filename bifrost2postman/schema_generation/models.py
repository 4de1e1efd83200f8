"""
bifrost2postman/schema_generation/models.py

Data models for the schema generation pipeline.

Contains Pydantic models for:
- Syntax: SyntaxToken, TypeRef, AttributeSyntax, MemberSyntax, MethodSyntax,
  TypeDeclarationSyntax, CompilationUnitSyntax (output of the C# parser)
- Symbols: TypeSymbol, MemberSymbol, Classification (output of the compilation)
- Samples: ScalarSample, ListSample, MapSample, CircularReferenceSample
- Results: EndpointRecord, SourceDiagnostic, ExtractionResult, RequestSchema, GenerationResult
"""

from enum import StrEnum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Syntax
# ---------------------------------------------------------------------------

class TokenKind(StrEnum):
    """Lexical category of a C# token."""
    IDENTIFIER = "identifier"
    STRING = "string"
    CHAR = "char"
    NUMBER = "number"
    PUNCTUATION = "punctuation"


class SyntaxToken(BaseModel):
    """A single lexical token of C# source."""
    model_config = ConfigDict(frozen=True)

    kind: TokenKind
    text: str = Field(description="Token text as written (string tokens keep their quotes)")
    line: int = Field(description="1-based line the token starts on")
    value: str | None = Field(
        default=None,
        description="Decoded value of a string/char literal; None for interpolated strings"
    )


class TypeRef(BaseModel):
    """
    A type as written in source, before resolution.

    Arrays wrap their element: `int[]` is TypeRef(element=TypeRef(name="int"), rank=1).
    """
    name: str = Field(default="", description="Dotted type name as written (global:: stripped)")
    type_arguments: list["TypeRef"] = Field(default_factory=list)
    nullable: bool = Field(default=False, description="Written with a trailing '?'")
    element: "TypeRef | None" = Field(default=None, description="Element type when this is an array")
    rank: int = Field(default=0, description="Array rank (1 for T[], 2 for T[,])")

    @property
    def is_array(self) -> bool:
        return self.element is not None

    def display(self) -> str:
        """Render the reference back to C#-like text."""
        if self.element is not None:
            text = f"{self.element.display()}[{',' * (self.rank - 1)}]"
        elif self.type_arguments:
            args = ", ".join(arg.display() for arg in self.type_arguments)
            text = f"{self.name}<{args}>"
        else:
            text = self.name
        return f"{text}?" if self.nullable else text


class AttributeArgument(BaseModel):
    """One argument of an attribute usage, kept as raw tokens."""
    name: str | None = Field(default=None, description="Argument name for `Name = x` or `name: x` forms")
    tokens: list[SyntaxToken] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return " ".join(token.text for token in self.tokens)


class AttributeSyntax(BaseModel):
    """An attribute usage such as [BifrostPath("/bifrost/x")]."""
    name: str
    arguments: list[AttributeArgument] = Field(default_factory=list)
    line: int = -1


class MemberKind(StrEnum):
    PROPERTY = "property"
    FIELD = "field"


class MemberSyntax(BaseModel):
    """A property or field declaration."""
    kind: MemberKind
    name: str
    type: TypeRef
    modifiers: list[str] = Field(default_factory=list)
    is_readable: bool = Field(default=True, description="Has an accessible getter (always True for fields)")
    is_explicit_implementation: bool = False
    initializer: list[SyntaxToken] = Field(
        default_factory=list,
        description="Initializer tokens, kept for const fields"
    )
    line: int = -1


class ParameterSyntax(BaseModel):
    name: str
    type: TypeRef
    modifiers: list[str] = Field(default_factory=list)


class MethodSyntax(BaseModel):
    """A method declaration (bodies are not retained)."""
    name: str
    attributes: list[AttributeSyntax] = Field(default_factory=list)
    modifiers: list[str] = Field(default_factory=list)
    type_parameters: list[str] = Field(default_factory=list)
    parameters: list[ParameterSyntax] = Field(default_factory=list)
    return_type: TypeRef | None = None
    line: int = -1


class DeclarationKind(StrEnum):
    CLASS = "class"
    INTERFACE = "interface"
    STRUCT = "struct"
    RECORD = "record"
    RECORD_STRUCT = "record struct"
    ENUM = "enum"


class TypeDeclarationSyntax(BaseModel):
    """A single (possibly partial) type declaration."""
    kind: DeclarationKind
    name: str
    namespace: str = ""
    containing_types: list[str] = Field(default_factory=list, description="Outer type names, outermost first")
    type_parameters: list[str] = Field(default_factory=list)
    base_types: list[TypeRef] = Field(default_factory=list)
    modifiers: list[str] = Field(default_factory=list)
    attributes: list[AttributeSyntax] = Field(default_factory=list)
    record_parameters: list[ParameterSyntax] = Field(
        default_factory=list,
        description="Positional record parameters, exposed as public properties"
    )
    members: list[MemberSyntax] = Field(default_factory=list)
    methods: list[MethodSyntax] = Field(default_factory=list)
    line: int = -1

    @property
    def full_name(self) -> str:
        return ".".join(part for part in (self.namespace, *self.containing_types, self.name) if part)

    @property
    def metadata_name(self) -> str:
        """Full name with generic arity suffix, e.g. Models.Page`1."""
        if self.type_parameters:
            return f"{self.full_name}`{len(self.type_parameters)}"
        return self.full_name


class CompilationUnitSyntax(BaseModel):
    """Everything the parser keeps from one .cs file."""
    file_path: str
    usings: list[str] = Field(default_factory=list)
    using_aliases: dict[str, TypeRef] = Field(default_factory=dict)
    types: list[TypeDeclarationSyntax] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Symbols
# ---------------------------------------------------------------------------

class TypeKind(StrEnum):
    """Declared kind of a resolved type."""
    CLASS = "class"
    STRUCT = "struct"
    INTERFACE = "interface"
    ENUM = "enum"
    ARRAY = "array"
    TYPE_PARAMETER = "type_parameter"
    ERROR = "error"


class SpecialType(StrEnum):
    """Built-in types with a dedicated tag, keyed by their metadata name."""
    OBJECT = "System.Object"
    STRING = "System.String"
    BOOLEAN = "System.Boolean"
    CHAR = "System.Char"
    SBYTE = "System.SByte"
    BYTE = "System.Byte"
    INT16 = "System.Int16"
    UINT16 = "System.UInt16"
    INT32 = "System.Int32"
    UINT32 = "System.UInt32"
    INT64 = "System.Int64"
    UINT64 = "System.UInt64"
    SINGLE = "System.Single"
    DOUBLE = "System.Double"
    DECIMAL = "System.Decimal"
    DATETIME = "System.DateTime"
    NULLABLE_T = "System.Nullable`1"


class TypeSymbol(BaseModel):
    """
    A resolved type, produced by the Compilation.

    Symbols are immutable value objects: two symbols for the same constructed
    type compare equal and share the same `identity`.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Simple name, e.g. List or Order")
    full_name: str = Field(description="Namespace-qualified name without arity, e.g. System.Collections.Generic.List")
    kind: TypeKind
    special_type: SpecialType | None = None
    type_arguments: tuple["TypeSymbol", ...] = ()
    element_type: "TypeSymbol | None" = None
    array_rank: int = 0
    interfaces: tuple[str, ...] = Field(
        default=(),
        description="Metadata names of every interface implemented, transitively"
    )
    declaration_key: str | None = Field(default=None, description="Metadata name of a source declaration")
    is_value_type: bool = False

    @property
    def metadata_name(self) -> str:
        if self.type_arguments:
            return f"{self.full_name}`{len(self.type_arguments)}"
        return self.full_name

    @property
    def identity(self) -> str:
        """Fully-qualified display string; equal for equal constructed types."""
        if self.kind == TypeKind.ARRAY and self.element_type is not None:
            return f"{self.element_type.identity}[{',' * (self.array_rank - 1)}]"
        if self.type_arguments:
            args = ", ".join(arg.identity for arg in self.type_arguments)
            return f"{self.full_name}<{args}>"
        return self.full_name

    @property
    def is_unresolved(self) -> bool:
        return self.kind in (TypeKind.ERROR, TypeKind.TYPE_PARAMETER)

    def __str__(self) -> str:
        return self.identity


class MemberSymbol(BaseModel):
    """A property or field of a resolved type, with its type substituted."""
    model_config = ConfigDict(frozen=True)

    name: str
    type: TypeSymbol | None = None
    is_field: bool = False
    is_public: bool = True
    is_static: bool = False
    is_readable: bool = True
    declaring_type: str = ""


class TypeCategory(StrEnum):
    """Classification outcome driving sample synthesis."""
    PRIMITIVE = "primitive"
    NULLABLE = "nullable"
    COLLECTION = "collection"
    ENUM = "enum"
    COMPOSITE = "composite"


class Classification(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: TypeCategory
    inner: TypeSymbol | None = Field(
        default=None,
        description="Wrapped type for NULLABLE, element type for COLLECTION"
    )


# ---------------------------------------------------------------------------
# Samples
# ---------------------------------------------------------------------------

CIRCULAR_REFERENCE_TEMPLATE = "!!CircularReference {type_name}!!>"


class ScalarSample(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["scalar"] = "scalar"
    value: bool | int | float | str

    def to_json(self) -> Any:
        return self.value


class ListSample(BaseModel):
    """One representative element of a collection."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["list"] = "list"
    items: list["SampleValue | None"] = Field(default_factory=list)

    def to_json(self) -> Any:
        return [sample_to_json(item) for item in self.items]


class MapSample(BaseModel):
    """Member name to sample, in member resolution order."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["map"] = "map"
    entries: dict[str, "SampleValue | None"] = Field(default_factory=dict)

    def to_json(self) -> Any:
        return {name: sample_to_json(value) for name, value in self.entries.items()}


class CircularReferenceSample(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["circular_reference"] = "circular_reference"
    type_name: str

    def to_json(self) -> Any:
        return CIRCULAR_REFERENCE_TEMPLATE.format(type_name=self.type_name)


SampleValue = Annotated[
    Union[ScalarSample, ListSample, MapSample, CircularReferenceSample],
    Field(discriminator="kind"),
]

ListSample.model_rebuild()
MapSample.model_rebuild()


def sample_to_json(sample: ScalarSample | ListSample | MapSample | CircularReferenceSample | None) -> Any:
    """Convert a sample tree into plain JSON-compatible Python values."""
    if sample is None:
        return None
    return sample.to_json()


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class EndpointRecord(BaseModel):
    """A method carrying the route attribute."""
    model_config = ConfigDict(frozen=True)

    group_key: str = Field(description="Name of the enclosing type, e.g. ITicketedEventService")
    method_name: str
    route: str = Field(min_length=1)
    parameter_type: TypeSymbol | None = Field(
        default=None,
        description="Resolved type of the first parameter; None when the method has no parameters"
    )
    source_file: str = ""
    line: int = -1


class SourceDiagnostic(BaseModel):
    """A source unit that could not be parsed or analyzed."""
    file_path: str
    message: str
    error_type: str = ""
    line: int | None = None


class ExtractionResult(BaseModel):
    endpoints: list[EndpointRecord] = Field(default_factory=list)
    diagnostics: list[SourceDiagnostic] = Field(default_factory=list)


class RequestSchema(BaseModel):
    """An endpoint paired with its synthesized request sample."""
    group_key: str
    method_name: str
    endpoint: str = Field(description="Route string, e.g. /bifrost/order-service/get-order")
    sample: SampleValue | None = None
    sample_json: str = Field(default="null", description="Indented JSON text of the sample")


class GenerationResult(BaseModel):
    """Aggregated output of a schema generation run."""
    requests_by_group: dict[str, list[RequestSchema]] = Field(default_factory=dict)
    diagnostics: list[SourceDiagnostic] = Field(default_factory=list)
    total_files_parsed: int = 0
    total_endpoints: int = 0
