"""
bifrost2postman/schema_generation/compilation.py

Corpus-wide symbol table built from parsed compilation units.

The Compilation is the type introspection facility used by the classifier,
property resolver, sampler and extractor. It answers:
- what a written TypeRef resolves to (TypeSymbol), in the scope it was written in
- the kind, special-type tag, type arguments and transitive interfaces of a type
- the members (with visibility / staticness / readability) declared on a type
- the base class of a type
- the value of `const` fields (used for routes written as constants)

It is built once, up front, and is read-only afterwards.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from bifrost2postman.schema_generation.models import (
    CompilationUnitSyntax,
    DeclarationKind,
    MemberKind,
    MemberSymbol,
    MemberSyntax,
    SpecialType,
    TypeDeclarationSyntax,
    TypeKind,
    TypeRef,
    TypeSymbol,
)
from bifrost2postman.utils.logger import get_logger

logger = get_logger(name=__name__)

# ---------------------------------------------------------------------------
# Built-in types
# ---------------------------------------------------------------------------

_SPECIAL_KEYWORDS: dict[str, SpecialType] = {
    "object": SpecialType.OBJECT,
    "dynamic": SpecialType.OBJECT,
    "string": SpecialType.STRING,
    "bool": SpecialType.BOOLEAN,
    "char": SpecialType.CHAR,
    "sbyte": SpecialType.SBYTE,
    "byte": SpecialType.BYTE,
    "short": SpecialType.INT16,
    "ushort": SpecialType.UINT16,
    "int": SpecialType.INT32,
    "uint": SpecialType.UINT32,
    "long": SpecialType.INT64,
    "ulong": SpecialType.UINT64,
    "float": SpecialType.SINGLE,
    "double": SpecialType.DOUBLE,
    "decimal": SpecialType.DECIMAL,
}

_SPECIAL_BY_NAME: dict[str, SpecialType] = {
    special.value: special for special in SpecialType if special != SpecialType.NULLABLE_T
}

_REFERENCE_SPECIALS = {SpecialType.OBJECT, SpecialType.STRING}

_GENERIC = "System.Collections.Generic"
ENUMERABLE_OF_T = f"{_GENERIC}.IEnumerable`1"
_ENUMERABLE = "System.Collections.IEnumerable"
_NULLABLE = "System.Nullable`1"

_SEQUENCE = (ENUMERABLE_OF_T, _ENUMERABLE)
_COLLECTION = (f"{_GENERIC}.ICollection`1", *_SEQUENCE)
_READ_ONLY_COLLECTION = (f"{_GENERIC}.IReadOnlyCollection`1", *_SEQUENCE)
_LIST = (f"{_GENERIC}.IList`1", f"{_GENERIC}.IReadOnlyList`1", f"{_GENERIC}.IReadOnlyCollection`1", *_COLLECTION)
_SET = (f"{_GENERIC}.ISet`1", f"{_GENERIC}.IReadOnlySet`1", f"{_GENERIC}.IReadOnlyCollection`1", *_COLLECTION)
_DICTIONARY = (
    f"{_GENERIC}.IDictionary`2", f"{_GENERIC}.IReadOnlyDictionary`2",
    f"{_GENERIC}.IReadOnlyCollection`1", *_COLLECTION,
)


@dataclass(frozen=True)
class _BuiltinType:
    """A well-known framework type the corpus can reference without declaring."""
    full_name: str
    arity: int
    kind: TypeKind
    interfaces: tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return self.full_name.rsplit(".", 1)[-1]

    @property
    def metadata_name(self) -> str:
        return f"{self.full_name}`{self.arity}" if self.arity else self.full_name


_BUILTIN_TYPES: dict[str, _BuiltinType] = {
    builtin.metadata_name: builtin for builtin in (
        _BuiltinType("System.Nullable", 1, TypeKind.STRUCT),
        _BuiltinType("System.Guid", 0, TypeKind.STRUCT),
        _BuiltinType("System.DateTimeOffset", 0, TypeKind.STRUCT),
        _BuiltinType("System.TimeSpan", 0, TypeKind.STRUCT),
        _BuiltinType("System.DateOnly", 0, TypeKind.STRUCT),
        _BuiltinType("System.TimeOnly", 0, TypeKind.STRUCT),
        _BuiltinType("System.Uri", 0, TypeKind.CLASS),
        _BuiltinType("System.Threading.CancellationToken", 0, TypeKind.STRUCT),
        _BuiltinType("System.Threading.Tasks.Task", 0, TypeKind.CLASS),
        _BuiltinType("System.Threading.Tasks.Task", 1, TypeKind.CLASS),
        _BuiltinType("System.Collections.IEnumerable", 0, TypeKind.INTERFACE),
        _BuiltinType("System.Collections.ArrayList", 0, TypeKind.CLASS, (_ENUMERABLE,)),
        # an IEnumerable<T> is itself a sequence of T
        _BuiltinType(f"{_GENERIC}.IEnumerable", 1, TypeKind.INTERFACE, _SEQUENCE),
        _BuiltinType(f"{_GENERIC}.ICollection", 1, TypeKind.INTERFACE, _SEQUENCE),
        _BuiltinType(f"{_GENERIC}.IList", 1, TypeKind.INTERFACE, _COLLECTION),
        _BuiltinType(f"{_GENERIC}.IReadOnlyCollection", 1, TypeKind.INTERFACE, _SEQUENCE),
        _BuiltinType(f"{_GENERIC}.IReadOnlyList", 1, TypeKind.INTERFACE, _READ_ONLY_COLLECTION),
        _BuiltinType(f"{_GENERIC}.ISet", 1, TypeKind.INTERFACE, _COLLECTION),
        _BuiltinType(f"{_GENERIC}.IReadOnlySet", 1, TypeKind.INTERFACE, _READ_ONLY_COLLECTION),
        _BuiltinType(f"{_GENERIC}.IDictionary", 2, TypeKind.INTERFACE, _COLLECTION),
        _BuiltinType(f"{_GENERIC}.IReadOnlyDictionary", 2, TypeKind.INTERFACE, _READ_ONLY_COLLECTION),
        _BuiltinType(f"{_GENERIC}.List", 1, TypeKind.CLASS, _LIST),
        _BuiltinType(f"{_GENERIC}.LinkedList", 1, TypeKind.CLASS, _COLLECTION),
        _BuiltinType(f"{_GENERIC}.HashSet", 1, TypeKind.CLASS, _SET),
        _BuiltinType(f"{_GENERIC}.SortedSet", 1, TypeKind.CLASS, _SET),
        _BuiltinType(f"{_GENERIC}.Queue", 1, TypeKind.CLASS, _READ_ONLY_COLLECTION),
        _BuiltinType(f"{_GENERIC}.Stack", 1, TypeKind.CLASS, _READ_ONLY_COLLECTION),
        _BuiltinType(f"{_GENERIC}.Dictionary", 2, TypeKind.CLASS, _DICTIONARY),
        _BuiltinType(f"{_GENERIC}.SortedDictionary", 2, TypeKind.CLASS, _DICTIONARY),
        _BuiltinType(f"{_GENERIC}.SortedList", 2, TypeKind.CLASS, _DICTIONARY),
        _BuiltinType(f"{_GENERIC}.KeyValuePair", 2, TypeKind.STRUCT),
        _BuiltinType("System.Collections.ObjectModel.Collection", 1, TypeKind.CLASS, _LIST),
        _BuiltinType("System.Collections.ObjectModel.ReadOnlyCollection", 1, TypeKind.CLASS, _LIST),
        _BuiltinType("System.Collections.ObjectModel.ObservableCollection", 1, TypeKind.CLASS, _LIST),
        _BuiltinType("System.Collections.Immutable.ImmutableArray", 1, TypeKind.STRUCT, _LIST),
        _BuiltinType("System.Collections.Immutable.ImmutableList", 1, TypeKind.CLASS, _LIST),
        _BuiltinType("System.Collections.Immutable.IImmutableList", 1, TypeKind.INTERFACE, _LIST),
        _BuiltinType("System.Collections.Immutable.ImmutableHashSet", 1, TypeKind.CLASS, _SET),
        _BuiltinType("System.Collections.Immutable.ImmutableDictionary", 2, TypeKind.CLASS, _DICTIONARY),
    )
}

_BUILTIN_BY_SIMPLE_NAME: dict[tuple[str, int], _BuiltinType] = {
    (builtin.name, builtin.arity): builtin for builtin in _BUILTIN_TYPES.values()
}
_SPECIAL_BY_SIMPLE_NAME: dict[str, SpecialType] = {
    special.value.rsplit(".", 1)[-1]: special for special in _SPECIAL_BY_NAME.values()
}


def _metadata_name(full_name: str, arity: int) -> str:
    return f"{full_name}`{arity}" if arity else full_name


def _namespace_chain(namespace: str) -> list[str]:
    """'A.B.C' -> ['A.B.C', 'A.B', 'A']"""
    parts = namespace.split(".") if namespace else []
    return [".".join(parts[:i]) for i in range(len(parts), 0, -1)]


def special_symbol(special: SpecialType) -> TypeSymbol:
    full_name = special.value
    is_value_type = special not in _REFERENCE_SPECIALS
    return TypeSymbol(
        name=full_name.rsplit(".", 1)[-1],
        full_name=full_name,
        kind=TypeKind.STRUCT if is_value_type else TypeKind.CLASS,
        special_type=special,
        is_value_type=is_value_type,
    )


def nullable_symbol(inner: TypeSymbol) -> TypeSymbol:
    return TypeSymbol(
        name="Nullable",
        full_name="System.Nullable",
        kind=TypeKind.STRUCT,
        special_type=SpecialType.NULLABLE_T,
        type_arguments=(inner,),
        is_value_type=True,
    )


def error_symbol(name: str) -> TypeSymbol:
    return TypeSymbol(name=name.rsplit(".", 1)[-1], full_name=name, kind=TypeKind.ERROR)


def _type_parameter_symbol(name: str) -> TypeSymbol:
    return TypeSymbol(name=name, full_name=name, kind=TypeKind.TYPE_PARAMETER)


# ---------------------------------------------------------------------------
# Declarations and scopes
# ---------------------------------------------------------------------------

@dataclass
class DeclaredType:
    """A source-declared type, merged across its partial declarations."""
    metadata_name: str
    full_name: str
    name: str
    kind: DeclarationKind
    type_parameters: list[str]
    parts: list[tuple[TypeDeclarationSyntax, CompilationUnitSyntax]] = field(default_factory=list)


@dataclass
class ResolutionScope:
    """Everything needed to resolve a name written inside a declaration."""
    namespace: str = ""
    containing: tuple[str, ...] = ()
    usings: tuple[str, ...] = ()
    aliases: dict[str, TypeRef] = field(default_factory=dict)
    type_parameters: dict[str, TypeSymbol] = field(default_factory=dict)


_GLOBAL_SCOPE = ResolutionScope()


class Compilation:
    """
    Symbol table over a parsed source corpus.

    Usage:
        compilation = Compilation([parse_file(p) for p in paths])
        scope = compilation.scope_for(declaration, unit)
        symbol = compilation.resolve_type(parameter.type, scope)
    """

    def __init__(self, units: Iterable[CompilationUnitSyntax]) -> None:
        self._units = list(units)
        self._types: dict[str, DeclaredType] = {}
        self._interface_cache: dict[str, tuple[str, ...]] = {}
        self._interfaces_in_progress: set[str] = set()

        for unit in self._units:
            for declaration in unit.types:
                key = declaration.metadata_name
                declared = self._types.get(key)
                if declared is None:
                    declared = DeclaredType(
                        metadata_name=key,
                        full_name=declaration.full_name,
                        name=declaration.name,
                        kind=declaration.kind,
                        type_parameters=list(declaration.type_parameters),
                    )
                    self._types[key] = declared
                declared.parts.append((declaration, unit))

        logger.debug(
            "Compilation built from %d units with %d declared types",
            len(self._units), len(self._types),
        )

    # -- corpus access -----------------------------------------------------

    @property
    def units(self) -> list[CompilationUnitSyntax]:
        return list(self._units)

    def get_declared_type(self, metadata_name: str) -> DeclaredType | None:
        return self._types.get(metadata_name)

    def iter_declared_types(self) -> Iterator[DeclaredType]:
        return iter(self._types.values())

    def scope_for(
        self,
        declaration: TypeDeclarationSyntax,
        unit: CompilationUnitSyntax,
        type_arguments: tuple[TypeSymbol, ...] = (),
        method_type_parameters: Iterable[str] = (),
    ) -> ResolutionScope:
        """
        Build the resolution scope for names written inside `declaration`.
        Type parameters are bound to `type_arguments` when given, and left as
        unresolved type parameters otherwise.
        """
        containing = [declaration.full_name]
        outer = declaration.containing_types
        for depth in range(len(outer), 0, -1):
            containing.append(".".join(part for part in (declaration.namespace, *outer[:depth]) if part))

        type_parameters: dict[str, TypeSymbol] = {}
        for index, name in enumerate(declaration.type_parameters):
            if index < len(type_arguments):
                type_parameters[name] = type_arguments[index]
            else:
                type_parameters[name] = _type_parameter_symbol(name)
        for name in method_type_parameters:
            type_parameters[name] = _type_parameter_symbol(name)

        return ResolutionScope(
            namespace=declaration.namespace,
            containing=tuple(containing),
            usings=tuple(unit.usings),
            aliases=dict(unit.using_aliases),
            type_parameters=type_parameters,
        )

    # -- type resolution ---------------------------------------------------

    def resolve_type(self, type_ref: TypeRef, scope: ResolutionScope) -> TypeSymbol:
        """
        Resolve a written type. Never raises: names that cannot be found
        resolve to a TypeSymbol of kind ERROR.
        """
        if type_ref.element is not None:
            element = self.resolve_type(type_ref.element, scope)
            rank = max(type_ref.rank, 1)
            return TypeSymbol(
                name=f"{element.name}[{',' * (rank - 1)}]",
                full_name=f"{element.full_name}[{',' * (rank - 1)}]",
                kind=TypeKind.ARRAY,
                element_type=element,
                array_rank=rank,
                interfaces=_LIST,
            )

        arguments = tuple(self.resolve_type(arg, scope) for arg in type_ref.type_arguments)
        symbol = self._resolve_named(type_ref.name, arguments, scope)
        if type_ref.nullable and symbol.is_value_type and symbol.special_type != SpecialType.NULLABLE_T:
            # `T?` on a value type is Nullable<T>; on a reference type it is only an annotation
            symbol = nullable_symbol(symbol)
        return symbol

    def _resolve_named(
        self,
        name: str,
        arguments: tuple[TypeSymbol, ...],
        scope: ResolutionScope,
    ) -> TypeSymbol:
        if not arguments:
            if name in _SPECIAL_KEYWORDS:
                return special_symbol(_SPECIAL_KEYWORDS[name])
            if name in scope.type_parameters:
                return scope.type_parameters[name]
            if name in scope.aliases:
                return self.resolve_type(scope.aliases[name], _GLOBAL_SCOPE)

        definition = self._lookup_definition(name, len(arguments), scope)
        if definition is None:
            logger.debug("Unresolved type %s (arity %d)", name, len(arguments))
            return error_symbol(name)
        if isinstance(definition, SpecialType):
            return special_symbol(definition)
        if isinstance(definition, _BuiltinType):
            if definition.metadata_name == _NULLABLE:
                return nullable_symbol(arguments[0])
            return TypeSymbol(
                name=definition.name,
                full_name=definition.full_name,
                kind=definition.kind,
                type_arguments=arguments,
                interfaces=definition.interfaces,
                is_value_type=definition.kind == TypeKind.STRUCT,
            )
        return self._declared_symbol(definition, arguments)

    def _lookup_definition(
        self,
        name: str,
        arity: int,
        scope: ResolutionScope,
    ) -> DeclaredType | _BuiltinType | SpecialType | None:
        """Find the definition a (possibly dotted) name refers to from `scope`."""
        candidates: list[str] = []
        first, _, rest = name.partition(".")
        if rest and first in scope.aliases:
            candidates.append(f"{scope.aliases[first].name}.{rest}")
        candidates.extend(f"{outer}.{name}" for outer in scope.containing)
        candidates.extend(f"{namespace}.{name}" for namespace in _namespace_chain(scope.namespace))
        candidates.append(name)
        candidates.extend(f"{using}.{name}" for using in scope.usings)

        for candidate in candidates:
            key = _metadata_name(candidate, arity)
            if key in self._types:
                return self._types[key]
            if key in _BUILTIN_TYPES:
                return _BUILTIN_TYPES[key]
            if arity == 0 and key in _SPECIAL_BY_NAME:
                return _SPECIAL_BY_NAME[key]

        # framework types are accepted without their using directive
        if not rest:
            if (name, arity) in _BUILTIN_BY_SIMPLE_NAME:
                return _BUILTIN_BY_SIMPLE_NAME[(name, arity)]
            if arity == 0 and name in _SPECIAL_BY_SIMPLE_NAME:
                return _SPECIAL_BY_SIMPLE_NAME[name]
        return None

    def _declared_symbol(self, declared: DeclaredType, arguments: tuple[TypeSymbol, ...]) -> TypeSymbol:
        kind = {
            DeclarationKind.CLASS: TypeKind.CLASS,
            DeclarationKind.RECORD: TypeKind.CLASS,
            DeclarationKind.STRUCT: TypeKind.STRUCT,
            DeclarationKind.RECORD_STRUCT: TypeKind.STRUCT,
            DeclarationKind.INTERFACE: TypeKind.INTERFACE,
            DeclarationKind.ENUM: TypeKind.ENUM,
        }[declared.kind]
        return TypeSymbol(
            name=declared.name,
            full_name=declared.full_name,
            kind=kind,
            type_arguments=arguments,
            interfaces=self._interfaces_of(declared),
            declaration_key=declared.metadata_name,
            is_value_type=kind in (TypeKind.STRUCT, TypeKind.ENUM),
        )

    def _interfaces_of(self, declared: DeclaredType) -> tuple[str, ...]:
        """Transitive interface set of a declared type, by metadata name."""
        key = declared.metadata_name
        if key in self._interface_cache:
            return self._interface_cache[key]
        if key in self._interfaces_in_progress:
            # inheritance cycle, or a base list mentioning the type itself
            return ()

        self._interfaces_in_progress.add(key)
        try:
            interfaces: list[str] = []
            for declaration, unit in declared.parts:
                scope = self.scope_for(declaration, unit)
                for base_ref in declaration.base_types:
                    base = self.resolve_type(base_ref, scope)
                    if base.kind == TypeKind.INTERFACE:
                        interfaces.append(base.metadata_name)
                    interfaces.extend(base.interfaces)
            result = tuple(dict.fromkeys(interfaces))
        finally:
            self._interfaces_in_progress.discard(key)

        self._interface_cache[key] = result
        return result

    # -- members -----------------------------------------------------------

    def get_members(self, symbol: TypeSymbol) -> list[MemberSymbol]:
        """
        Properties and fields declared directly on `symbol` (all partial
        declarations, declaration order), with generic arguments substituted.
        Framework and built-in types expose no members.
        """
        declared = self._types.get(symbol.declaration_key or "")
        if declared is None:
            return []

        members: list[MemberSymbol] = []
        for declaration, unit in declared.parts:
            scope = self.scope_for(declaration, unit, symbol.type_arguments)
            for parameter in declaration.record_parameters:
                members.append(MemberSymbol(
                    name=parameter.name,
                    type=self.resolve_type(parameter.type, scope),
                    declaring_type=declared.full_name,
                ))
            for member in declaration.members:
                members.append(MemberSymbol(
                    name=member.name,
                    type=self.resolve_type(member.type, scope),
                    is_field=member.kind == MemberKind.FIELD,
                    is_public=self._is_public(member, declaration),
                    is_static="static" in member.modifiers or "const" in member.modifiers,
                    is_readable=member.is_readable,
                    declaring_type=declared.full_name,
                ))
        return members

    @staticmethod
    def _is_public(member: MemberSyntax, declaration: TypeDeclarationSyntax) -> bool:
        if member.is_explicit_implementation:
            return False
        if "public" in member.modifiers:
            return True
        # interface members are public unless stated otherwise
        return declaration.kind == DeclarationKind.INTERFACE and not (
            {"private", "protected", "internal"} & set(member.modifiers)
        )

    def get_base_type(self, symbol: TypeSymbol) -> TypeSymbol | None:
        """The base class of a class or record, substituted for `symbol`'s type arguments."""
        declared = self._types.get(symbol.declaration_key or "")
        if declared is None or declared.kind not in (DeclarationKind.CLASS, DeclarationKind.RECORD):
            return None
        for declaration, unit in declared.parts:
            scope = self.scope_for(declaration, unit, symbol.type_arguments)
            for base_ref in declaration.base_types:
                base = self.resolve_type(base_ref, scope)
                if base.kind == TypeKind.CLASS and base.identity != symbol.identity:
                    return base
        return None

    # -- constants ---------------------------------------------------------

    def find_constant(self, name: str, scope: ResolutionScope) -> tuple[MemberSyntax, ResolutionScope] | None:
        """
        Find a `const` field referenced as `Name`, `Type.Name` or `Ns.Type.Name`.
        Returns the field and the scope its initializer must be evaluated in.
        """
        type_name, _, field_name = name.rpartition(".")
        owners: list[DeclaredType] = []
        if type_name:
            definition = self._lookup_definition(type_name, 0, scope)
            if isinstance(definition, DeclaredType):
                owners.append(definition)
        else:
            owners.extend(self._types[outer] for outer in scope.containing if outer in self._types)

        for owner in owners:
            for declaration, unit in owner.parts:
                for member in declaration.members:
                    if member.kind == MemberKind.FIELD and member.name == field_name and "const" in member.modifiers:
                        return member, self.scope_for(declaration, unit)
        return None
