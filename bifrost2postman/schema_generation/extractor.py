"""
bifrost2postman/schema_generation/extractor.py

Endpoint discovery over parsed C# compilation units.

An endpoint is a method declared directly on a class, record, struct or
interface that carries the route attribute (`[BifrostPath("/bifrost/...")]`).
For each one we record:
- the enclosing type name (group key) and method name
- the route, read from the attribute's first argument
- the resolved type of the first parameter (None when there is none)

Routes may be written as string literals, verbatim strings, `const string`
references (`Routes.GetOrder`), `nameof(...)` or `+` concatenations of those.
Methods whose route cannot be read are skipped.
"""

from collections.abc import Iterable

from bifrost2postman.config import Config
from bifrost2postman.schema_generation.compilation import Compilation, ResolutionScope
from bifrost2postman.schema_generation.models import (
    AttributeSyntax,
    CompilationUnitSyntax,
    DeclarationKind,
    EndpointRecord,
    ExtractionResult,
    MethodSyntax,
    SourceDiagnostic,
    SyntaxToken,
    TokenKind,
    TypeDeclarationSyntax,
)
from bifrost2postman.utils.logger import get_logger

logger = get_logger(name=__name__)

# const chains deeper than this are treated as unreadable
_MAX_CONSTANT_DEPTH = 16


# ---------------------------------------------------------------------------
# Route evaluation
# ---------------------------------------------------------------------------

def _split_concatenation(tokens: list[SyntaxToken]) -> list[list[SyntaxToken]]:
    """Split an expression on top-level '+' operators."""
    pieces: list[list[SyntaxToken]] = [[]]
    depth = 0
    for token in tokens:
        if token.kind == TokenKind.PUNCTUATION:
            if token.text in ("(", "[", "{"):
                depth += 1
            elif token.text in (")", "]", "}"):
                depth -= 1
            elif token.text == "+" and depth == 0:
                pieces.append([])
                continue
        pieces[-1].append(token)
    return pieces


def _dotted_name(tokens: list[SyntaxToken]) -> str | None:
    """`A.B.C` (or `global::A.B`) as a dotted string, None for anything else."""
    if tokens and tokens[0].text == "global" and len(tokens) > 1 and tokens[1].text == "::":
        tokens = tokens[2:]
    if not tokens or len(tokens) % 2 == 0:
        return None
    parts: list[str] = []
    for index, token in enumerate(tokens):
        if index % 2 == 0:
            if token.kind != TokenKind.IDENTIFIER:
                return None
            parts.append(token.text)
        elif token.text != ".":
            return None
    return ".".join(parts)


class RouteEvaluator:
    """Reads compile-time string values out of attribute argument tokens."""

    def __init__(self, compilation: Compilation) -> None:
        self._compilation = compilation

    def evaluate(self, tokens: list[SyntaxToken], scope: ResolutionScope, depth: int = 0) -> str | None:
        """
        Evaluate a constant string expression.
        Returns None when any part of it is not a compile-time constant we can read.
        """
        if not tokens or depth > _MAX_CONSTANT_DEPTH:
            return None
        values: list[str] = []
        for piece in _split_concatenation(tokens):
            value = self._evaluate_piece(piece, scope, depth)
            if value is None:
                return None
            values.append(value)
        return "".join(values)

    def _evaluate_piece(self, tokens: list[SyntaxToken], scope: ResolutionScope, depth: int) -> str | None:
        if len(tokens) == 1 and tokens[0].kind in (TokenKind.STRING, TokenKind.CHAR):
            # None for interpolated strings
            return tokens[0].value

        if len(tokens) >= 2 and tokens[0].text == "(" and tokens[-1].text == ")":
            return self.evaluate(tokens[1:-1], scope, depth + 1)

        if len(tokens) >= 4 and tokens[0].text == "nameof" and tokens[1].text == "(" and tokens[-1].text == ")":
            inner = [token for token in tokens[2:-1] if token.kind == TokenKind.IDENTIFIER]
            return inner[-1].text if inner else None

        name = _dotted_name(tokens)
        if name is None:
            return None
        found = self._compilation.find_constant(name, scope)
        if found is None:
            logger.debug("Route constant %s not found", name)
            return None
        constant, constant_scope = found
        return self.evaluate(constant.initializer, constant_scope, depth + 1)


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

_ENDPOINT_OWNER_KINDS = {
    DeclarationKind.CLASS,
    DeclarationKind.INTERFACE,
    DeclarationKind.STRUCT,
    DeclarationKind.RECORD,
    DeclarationKind.RECORD_STRUCT,
}


class EndpointExtractor:
    """
    Finds route-annotated methods in a compilation.

    Usage:
        extractor = EndpointExtractor(compilation)
        result = extractor.extract(service_units)
        for endpoint in result.endpoints:
            print(endpoint.group_key, endpoint.route)
    """

    def __init__(
        self,
        compilation: Compilation,
        route_attribute_name: str = Config.ROUTE_ATTRIBUTE_NAME,
    ) -> None:
        self._compilation = compilation
        self._route_attribute_name = route_attribute_name
        self._routes = RouteEvaluator(compilation)

    def extract(self, units: Iterable[CompilationUnitSyntax] | None = None) -> ExtractionResult:
        """
        Extract endpoints from `units` (default: every unit of the compilation).

        Units are visited in file path order. A unit that fails is recorded as a
        diagnostic and extraction moves on to the next one.
        """
        if units is None:
            units = self._compilation.units
        result = ExtractionResult()
        for unit in sorted(units, key=lambda u: u.file_path):
            try:
                result.endpoints.extend(self.extract_unit(unit))
            except Exception as e:
                logger.warning("Failed to analyze %s: %s: %s", unit.file_path, type(e).__name__, e)
                result.diagnostics.append(SourceDiagnostic(
                    file_path=unit.file_path,
                    message=str(e),
                    error_type=type(e).__name__,
                ))
        return result

    def extract_unit(self, unit: CompilationUnitSyntax) -> list[EndpointRecord]:
        """Endpoints of one unit, in declaration order."""
        endpoints: list[EndpointRecord] = []
        for declaration in unit.types:
            if declaration.kind not in _ENDPOINT_OWNER_KINDS:
                continue
            scope = self._compilation.scope_for(declaration, unit)
            for method in declaration.methods:
                endpoint = self._endpoint_for(method, declaration, unit, scope)
                if endpoint is not None:
                    endpoints.append(endpoint)
        if endpoints:
            logger.debug("Found %d endpoints in %s", len(endpoints), unit.file_path)
        return endpoints

    def find_route_attribute(self, method: MethodSyntax) -> AttributeSyntax | None:
        for attribute in method.attributes:
            if self._route_attribute_name in attribute.name:
                return attribute
        return None

    def _endpoint_for(
        self,
        method: MethodSyntax,
        declaration: TypeDeclarationSyntax,
        unit: CompilationUnitSyntax,
        scope: ResolutionScope,
    ) -> EndpointRecord | None:
        attribute = self.find_route_attribute(method)
        if attribute is None:
            return None

        route = None
        if attribute.arguments:
            route = self._routes.evaluate(attribute.arguments[0].tokens, scope)
        if not route:
            logger.debug(
                "Skipping %s.%s: route argument of [%s] is empty or not a constant",
                declaration.name, method.name, attribute.name,
            )
            return None

        parameter_type = None
        if method.parameters:
            method_scope = self._compilation.scope_for(
                declaration, unit, method_type_parameters=method.type_parameters
            )
            resolved = self._compilation.resolve_type(method.parameters[0].type, method_scope)
            if resolved.is_unresolved:
                logger.debug(
                    "Parameter type %s of %s.%s could not be resolved",
                    method.parameters[0].type.display(), declaration.name, method.name,
                )
            else:
                parameter_type = resolved

        return EndpointRecord(
            group_key=declaration.name,
            method_name=method.name,
            route=route,
            parameter_type=parameter_type,
            source_file=unit.file_path,
            line=method.line,
        )
