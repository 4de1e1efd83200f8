"""
bifrost2postman/schema_generation/classifier.py

Type classification for sample synthesis.

Decides which of the mutually exclusive categories a resolved type falls into,
checked in this order:
- NULLABLE: Nullable<T> (inner = T)
- PRIMITIVE: string, int, long, bool, DateTime, double, float, decimal, char, Guid
- ENUM: declared enums
- COLLECTION: arrays and generic types implementing IEnumerable<T> (inner = element)
- COMPOSITE: everything else
"""

from bifrost2postman.schema_generation.compilation import ENUMERABLE_OF_T
from bifrost2postman.schema_generation.models import (
    Classification,
    SpecialType,
    TypeCategory,
    TypeKind,
    TypeSymbol,
)

PRIMITIVE_SPECIAL_TYPES: frozenset[SpecialType] = frozenset({
    SpecialType.STRING,
    SpecialType.INT32,
    SpecialType.INT64,
    SpecialType.BOOLEAN,
    SpecialType.DATETIME,
    SpecialType.DOUBLE,
    SpecialType.SINGLE,
    SpecialType.DECIMAL,
    SpecialType.CHAR,
})

PRIMITIVE_FULL_NAMES: frozenset[str] = frozenset({"System.Guid"})


def is_primitive(symbol: TypeSymbol) -> bool:
    if symbol.special_type in PRIMITIVE_SPECIAL_TYPES:
        return True
    return not symbol.type_arguments and symbol.full_name in PRIMITIVE_FULL_NAMES


def unwrap_nullable(symbol: TypeSymbol) -> TypeSymbol | None:
    """Return T for Nullable<T>, None for anything else."""
    if symbol.special_type == SpecialType.NULLABLE_T and symbol.type_arguments:
        return symbol.type_arguments[0]
    return None


def collection_element(symbol: TypeSymbol) -> TypeSymbol | None:
    """
    Element type of a collection, or None when `symbol` is not one.

    Arrays give their element type. A named type is a collection when its
    interface set contains IEnumerable<T>; its element is its first type
    argument, so a non-generic type implementing IEnumerable<X> is not treated
    as a collection. For dictionaries this is the key type.
    """
    if symbol.kind == TypeKind.ARRAY:
        return symbol.element_type
    if ENUMERABLE_OF_T in symbol.interfaces and symbol.type_arguments:
        return symbol.type_arguments[0]
    return None


def classify(symbol: TypeSymbol) -> Classification:
    """
    Classify a resolved type.
    Args:
        symbol (TypeSymbol): The type to classify.
    Returns:
        Classification: Category, with the wrapped/element type in `inner`.
    """
    inner = unwrap_nullable(symbol)
    if inner is not None:
        return Classification(category=TypeCategory.NULLABLE, inner=inner)

    if is_primitive(symbol):
        return Classification(category=TypeCategory.PRIMITIVE)

    if symbol.kind == TypeKind.ENUM:
        return Classification(category=TypeCategory.ENUM)

    element = collection_element(symbol)
    if element is not None:
        return Classification(category=TypeCategory.COLLECTION, inner=element)

    return Classification(category=TypeCategory.COMPOSITE)
