"""
bifrost2postman/schema_generation/sampler.py

Type graph walker that synthesizes a representative sample value for a type.

For one type it produces, in this order of precedence:
- the sample of T for Nullable<T>
- a fixed scalar for primitives
- 0 for enums
- a single-element list for collections
- a circular-reference marker when the type (or any construction of the same
  generic type) is already being expanded higher up
- a member-name -> sample map for everything else
"""

import json

from bifrost2postman.config import Config
from bifrost2postman.schema_generation.classifier import classify
from bifrost2postman.schema_generation.compilation import Compilation
from bifrost2postman.schema_generation.models import (
    CircularReferenceSample,
    ListSample,
    MapSample,
    ScalarSample,
    SpecialType,
    TypeCategory,
    TypeSymbol,
    sample_to_json,
)
from bifrost2postman.schema_generation.properties import resolve_properties
from bifrost2postman.utils.logger import get_logger

logger = get_logger(name=__name__)

Sample = ScalarSample | ListSample | MapSample | CircularReferenceSample

FALLBACK_SCALAR = "sample"


def _definition_key(symbol: TypeSymbol) -> str | None:
    """Metadata name of a constructed generic type's definition, e.g. Models.Tree`1."""
    if symbol.type_arguments:
        return symbol.metadata_name
    return None


def scalar_for(special_type: SpecialType | None) -> ScalarSample:
    """Canonical sample scalar for a primitive kind."""
    match special_type:
        case SpecialType.STRING:
            return ScalarSample(value="")
        case SpecialType.INT32 | SpecialType.INT64:
            return ScalarSample(value=1)
        case SpecialType.BOOLEAN:
            return ScalarSample(value=False)
        case SpecialType.DATETIME:
            return ScalarSample(value=Config.SAMPLE_DATETIME)
        case SpecialType.DOUBLE | SpecialType.SINGLE | SpecialType.DECIMAL:
            return ScalarSample(value=1.0)
        case SpecialType.CHAR:
            return ScalarSample(value="A")
        case _:
            # Guid and any other primitive
            return ScalarSample(value=FALLBACK_SCALAR)


class SampleSynthesizer:
    """
    Builds sample value trees for resolved types.

    Usage:
        synthesizer = SampleSynthesizer(compilation)
        sample = synthesizer.synthesize(endpoint.parameter_type)
        body = dump_sample(sample)
    """

    def __init__(self, compilation: Compilation) -> None:
        self._compilation = compilation

    def synthesize(self, symbol: TypeSymbol | None) -> Sample | None:
        """
        Synthesize a sample for `symbol`, starting from an empty visited path.
        Returns None when the type is absent or could not be resolved.
        """
        return self._synthesize(symbol, frozenset())

    def _synthesize(self, symbol: TypeSymbol | None, visited: frozenset[str]) -> Sample | None:
        if symbol is None or symbol.is_unresolved:
            if symbol is not None:
                logger.debug("No sample for unresolved type %s", symbol.identity)
            return None

        classification = classify(symbol)

        if classification.category == TypeCategory.NULLABLE:
            return self._synthesize(classification.inner, visited)

        if classification.category == TypeCategory.PRIMITIVE:
            return scalar_for(symbol.special_type)

        if classification.category == TypeCategory.ENUM:
            return ScalarSample(value=0)

        if classification.category == TypeCategory.COLLECTION:
            return ListSample(items=[self._synthesize(classification.inner, visited)])

        # a generic definition already open on the path counts as a repeat, so
        # Tree<T> { Tree<List<T>> Children } stops instead of growing forever
        definition_key = _definition_key(symbol)
        if symbol.identity in visited or definition_key in visited:
            return CircularReferenceSample(type_name=symbol.name)

        # each expansion carries its own ancestor path
        path = visited | {symbol.identity}
        if definition_key is not None:
            path |= {definition_key}
        entries = {
            member.name: self._synthesize(member.type, path)
            for member in resolve_properties(symbol, self._compilation)
        }
        return MapSample(entries=entries)


def dump_sample(sample: Sample | None, indent: int | None = None) -> str:
    """Render a sample tree as indented JSON text."""
    return json.dumps(
        sample_to_json(sample),
        indent=Config.JSON_INDENT if indent is None else indent,
        ensure_ascii=False,
    )
