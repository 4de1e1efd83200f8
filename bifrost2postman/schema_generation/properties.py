"""
bifrost2postman/schema_generation/properties.py

Property resolution across an inheritance chain.

A type's sample exposes the public, non-static, readable instance properties
and public non-static fields of the type and all of its base classes. Members
are ordered base-most first; a derived member hiding a base member of the same
name takes the base member's position.
"""

from bifrost2postman.schema_generation.compilation import Compilation
from bifrost2postman.schema_generation.models import MemberSymbol, TypeSymbol
from bifrost2postman.utils.logger import get_logger

logger = get_logger(name=__name__)


def _is_exposed(member: MemberSymbol) -> bool:
    if not member.is_public or member.is_static:
        return False
    return member.is_field or member.is_readable


def _inheritance_chain(symbol: TypeSymbol, compilation: Compilation) -> list[TypeSymbol]:
    """`symbol` followed by its base classes, most derived first."""
    chain = [symbol]
    seen = {symbol.identity}
    base = compilation.get_base_type(symbol)
    while base is not None:
        if base.identity in seen:
            logger.debug("Inheritance cycle at %s", base.identity)
            break
        seen.add(base.identity)
        chain.append(base)
        base = compilation.get_base_type(base)
    return chain


def resolve_properties(symbol: TypeSymbol, compilation: Compilation) -> list[MemberSymbol]:
    """
    Resolve the members that make up `symbol`'s sample map.
    Args:
        symbol (TypeSymbol): A composite type.
        compilation (Compilation): The compilation `symbol` belongs to.
    Returns:
        list[MemberSymbol]: Exposed members, base-most first, unique by name.
    """
    members: dict[str, MemberSymbol] = {}
    for current in reversed(_inheritance_chain(symbol, compilation)):
        for member in compilation.get_members(current):
            if _is_exposed(member):
                # re-assigning an existing key keeps its first position
                members[member.name] = member
    return list(members.values())
