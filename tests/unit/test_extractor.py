"""
tests/unit/test_extractor.py

Unit tests for endpoint extraction.
Tests route attribute matching, route evaluation and parameter resolution.
"""

from bifrost2postman.schema_generation.extractor import EndpointExtractor
from bifrost2postman.schema_generation.models import (
    CompilationUnitSyntax,
    DeclarationKind,
    SpecialType,
    TypeDeclarationSyntax,
    TypeKind,
)
from bifrost2postman.utils.exceptions import SourceParseError


MODELS = """
namespace Hudl.Ordering.Models
{
    public class GetOrderRequest
    {
        public int OrderId { get; set; }
    }
}
"""

SERVICE = """
using System.Collections.Generic;
using System.Threading.Tasks;
using Hudl.Ordering.Models;

namespace Hudl.Ordering.Services
{
    public static class Routes
    {
        public const string Prefix = "/bifrost/order-service";
        public const string GetOrder = Prefix + "/get-order";
    }

    public interface IOrderService
    {
        const string Local = "/bifrost/local";

        [BifrostPath("/bifrost/order-service/first")]
        Task First(GetOrderRequest request);

        Task NotAnEndpoint(GetOrderRequest request);

        [BifrostPath(Routes.GetOrder)]
        Task<Order> Second(GetOrderRequest request, int retries);

        [BifrostPath("")]
        Task EmptyRoute(GetOrderRequest request);

        [BifrostPath($"/bifrost/{Local}")]
        Task InterpolatedRoute(GetOrderRequest request);

        [BifrostPath(Routes.DoesNotExist)]
        Task UnknownConstant(GetOrderRequest request);

        [BifrostPath]
        Task NoArguments(GetOrderRequest request);

        [Hudl.Bifrost.BifrostPathAttribute(@"/bifrost/order-service/third")]
        Task Third();

        [BifrostPath(Local + "/" + nameof(Fourth))]
        Task Fourth(List<string> ids);

        [BifrostPath("/bifrost/order-service/fifth")]
        Task Fifth(Unknown request);

        [BifrostPath("/bifrost/order-service/generic")]
        Task Generic<T>(T request);

        public class Nested
        {
            [BifrostPath("/bifrost/nested")]
            public void Inner(int value) { }
        }
    }
}
"""


def _extract(compile_sources):
    compilation, units = compile_sources(MODELS, SERVICE)
    return EndpointExtractor(compilation).extract(units)


# ===========================================================================
# Extraction tests
# ===========================================================================

class TestEndpointExtractor:
    def test_endpoints_in_declaration_order(self, compile_sources) -> None:
        result = _extract(compile_sources)
        names = [(e.group_key, e.method_name) for e in result.endpoints]
        assert names == [
            ("IOrderService", "First"),
            ("IOrderService", "Second"),
            ("IOrderService", "Third"),
            ("IOrderService", "Fourth"),
            ("IOrderService", "Fifth"),
            ("IOrderService", "Generic"),
            ("Nested", "Inner"),
        ]
        assert result.diagnostics == []

    def test_literal_route(self, compile_sources) -> None:
        result = _extract(compile_sources)
        assert result.endpoints[0].route == "/bifrost/order-service/first"

    def test_constant_route_with_concatenation(self, compile_sources) -> None:
        result = _extract(compile_sources)
        assert result.endpoints[1].route == "/bifrost/order-service/get-order"

    def test_qualified_attribute_name_and_verbatim_route(self, compile_sources) -> None:
        result = _extract(compile_sources)
        third = result.endpoints[2]
        assert third.route == "/bifrost/order-service/third"
        assert third.parameter_type is None

    def test_local_constant_and_nameof(self, compile_sources) -> None:
        result = _extract(compile_sources)
        assert result.endpoints[3].route == "/bifrost/local/Fourth"

    def test_unreadable_routes_are_skipped(self, compile_sources) -> None:
        result = _extract(compile_sources)
        names = {e.method_name for e in result.endpoints}
        assert not names & {"NotAnEndpoint", "EmptyRoute", "InterpolatedRoute", "UnknownConstant", "NoArguments"}

    def test_first_parameter_type(self, compile_sources) -> None:
        result = _extract(compile_sources)
        first, second = result.endpoints[0], result.endpoints[1]
        assert first.parameter_type.full_name == "Hudl.Ordering.Models.GetOrderRequest"
        assert second.parameter_type.full_name == "Hudl.Ordering.Models.GetOrderRequest"
        fourth = result.endpoints[3]
        assert fourth.parameter_type.identity == "System.Collections.Generic.List<System.String>"

    def test_unresolved_parameter_type_is_absent(self, compile_sources) -> None:
        result = _extract(compile_sources)
        by_name = {e.method_name: e for e in result.endpoints}
        assert by_name["Fifth"].parameter_type is None
        assert by_name["Generic"].parameter_type is None
        assert by_name["Inner"].parameter_type.special_type == SpecialType.INT32

    def test_source_location(self, compile_sources) -> None:
        result = _extract(compile_sources)
        assert result.endpoints[0].source_file == "Source1.cs"
        assert result.endpoints[0].line > 0

    def test_custom_attribute_name(self, compile_sources) -> None:
        compilation, units = compile_sources(
            'class Svc { [Route("/a")] void A(int x) { } [BifrostPath("/b")] void B(int x) { } }'
        )
        result = EndpointExtractor(compilation, route_attribute_name="Route").extract(units)
        assert [e.route for e in result.endpoints] == ["/a"]

    def test_enum_and_struct_declarations(self, compile_sources) -> None:
        compilation, units = compile_sources(
            'enum E { A } struct S { [BifrostPath("/s")] public void M(string s) { } }'
        )
        result = EndpointExtractor(compilation).extract(units)
        assert [(e.group_key, e.route) for e in result.endpoints] == [("S", "/s")]

    def test_units_processed_in_path_order(self, compile_sources) -> None:
        compilation, units = compile_sources(
            'class B { [BifrostPath("/b")] void M() { } }',
            'class A { [BifrostPath("/a")] void M() { } }',
        )
        result = EndpointExtractor(compilation).extract(list(reversed(units)))
        assert [e.route for e in result.endpoints] == ["/b", "/a"]

    def test_failing_unit_becomes_diagnostic(self, compile_sources) -> None:
        compilation, units = compile_sources('class A { [BifrostPath("/a")] void M(int x) { } }')
        broken = CompilationUnitSyntax(
            file_path="Broken.cs",
            types=[TypeDeclarationSyntax(kind=DeclarationKind.CLASS, name="Broken")],
        )

        class ExplodingExtractor(EndpointExtractor):
            def extract_unit(self, unit):
                if unit.file_path == "Broken.cs":
                    raise RuntimeError("boom")
                return super().extract_unit(unit)

        result = ExplodingExtractor(compilation).extract([broken, *units])
        assert [e.route for e in result.endpoints] == ["/a"]
        assert len(result.diagnostics) == 1
        assert result.diagnostics[0].file_path == "Broken.cs"
        assert result.diagnostics[0].error_type == "RuntimeError"
        assert result.diagnostics[0].message == "boom"

    def test_parameter_kind_for_arrays(self, compile_sources) -> None:
        compilation, units = compile_sources('class A { [BifrostPath("/a")] void M(int[] ids) { } }')
        result = EndpointExtractor(compilation).extract(units)
        assert result.endpoints[0].parameter_type.kind == TypeKind.ARRAY

    def test_parse_error_during_extraction_becomes_diagnostic(self, compile_sources) -> None:
        compilation, units = compile_sources(
            'class A { [BifrostPath("/a")] void M(int x) { } }',
            'class B { [BifrostPath("/b")] void M(int x) { } }',
        )

        class StrictExtractor(EndpointExtractor):
            def extract_unit(self, unit):
                if unit.file_path == "Source0.cs":
                    raise SourceParseError("unexpected token", line=3)
                return super().extract_unit(unit)

        result = StrictExtractor(compilation).extract(units)
        assert [e.route for e in result.endpoints] == ["/b"]
        assert [(d.file_path, d.error_type) for d in result.diagnostics] == [("Source0.cs", "SourceParseError")]
        assert result.diagnostics[0].message == "line 3: unexpected token"
