"""
tests/unit/test_generator.py

Unit tests for the schema generation pipeline.
Runs the full generator over the sample Hudl.Ordering.Client project.
"""

import json
from pathlib import Path

import pytest

from bifrost2postman.config import Config
from bifrost2postman.schema_generation import generator as generator_module
from bifrost2postman.schema_generation.generator import SchemaGenerator, find_source_files
from bifrost2postman.schema_generation.models import RequestSchema
from bifrost2postman.utils.exceptions import CorpusError


def _generate(client_root: Path):
    return SchemaGenerator(client_root / "Services").generate()


def _requests(result) -> dict[str, RequestSchema]:
    return {
        request.method_name: request
        for requests in result.requests_by_group.values()
        for request in requests
    }


# ===========================================================================
# Corpus discovery tests
# ===========================================================================

class TestFindSourceFiles:
    def test_build_output_is_skipped(self, client_root: Path) -> None:
        files = find_source_files(client_root)
        assert all("bin" not in path.relative_to(client_root).parts for path in files)
        assert [path.name for path in files] == [
            "Cart.cs", "Orders.cs", "Broken.cs", "ICartService.cs", "IOrderService.cs",
        ]


# ===========================================================================
# Pipeline tests
# ===========================================================================

class TestSchemaGenerator:
    def test_groups_in_first_appearance_order(self, client_root: Path) -> None:
        result = _generate(client_root)
        assert list(result.requests_by_group) == ["ICartService", "IOrderService"]
        assert [r.method_name for r in result.requests_by_group["IOrderService"]] == [
            "GetOrder", "ListOrders", "GetOrdersById", "Ping",
        ]

    def test_counts_and_diagnostics(self, client_root: Path) -> None:
        result = _generate(client_root)
        assert result.total_endpoints == 6
        assert result.total_files_parsed == 4
        assert len(result.diagnostics) == 1
        assert result.diagnostics[0].file_path.endswith("Broken.cs")
        assert result.diagnostics[0].error_type == "SourceParseError"

    def test_order_service_end_to_end(self, client_root: Path) -> None:
        request = _requests(_generate(client_root))["GetOrder"]
        assert request.group_key == "IOrderService"
        assert request.endpoint == "/bifrost/order-service/get-order"
        assert json.loads(request.sample_json) == {
            "OrderId": 1,
            "PlacedAt": "2025-01-01T01:00:00.000000Z",
        }

    def test_inherited_members_and_constant_route(self, client_root: Path) -> None:
        request = _requests(_generate(client_root))["ListOrders"]
        assert request.endpoint == "/bifrost/order-service/list-orders"
        sample = json.loads(request.sample_json)
        assert list(sample) == ["Page", "PageSize", "CustomerId", "Status", "StoreIds"]
        assert sample == {"Page": 1, "PageSize": 1, "CustomerId": "", "Status": 0, "StoreIds": [1]}

    def test_list_of_string_parameter(self, client_root: Path) -> None:
        request = _requests(_generate(client_root))["GetOrdersById"]
        assert json.loads(request.sample_json) == [""]

    def test_parameterless_endpoint(self, client_root: Path) -> None:
        request = _requests(_generate(client_root))["Ping"]
        assert request.sample is None
        assert request.sample_json == "null"

    def test_record_and_file_scoped_namespace(self, client_root: Path) -> None:
        request = _requests(_generate(client_root))["AddItem"]
        assert request.endpoint == "/bifrost/cart-service/add-item"
        assert json.loads(request.sample_json) == {"CartId": "", "ItemId": "sample", "Quantity": 1}

    def test_recursive_type(self, client_root: Path) -> None:
        request = _requests(_generate(client_root))["GetCategoryTree"]
        assert json.loads(request.sample_json) == {
            "Name": "",
            "Parent": "!!CircularReference CategoryNode!!>",
            "Children": ["!!CircularReference CategoryNode!!>"],
        }

    def test_sample_json_uses_configured_indent(self, client_root: Path) -> None:
        request = _requests(_generate(client_root))["GetOrder"]
        assert request.sample_json.splitlines()[1].startswith(" " * Config.JSON_INDENT + '"')

    def test_missing_services_folder(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            SchemaGenerator(tmp_path / "Services").generate()

    def test_services_folder_without_sources(self, tmp_path: Path) -> None:
        (tmp_path / "Services").mkdir()
        with pytest.raises(CorpusError):
            SchemaGenerator(tmp_path / "Services").generate()

    def test_explicit_corpus_root(self, client_root: Path) -> None:
        # without the Models folder in the corpus, parameter types cannot be resolved
        result = SchemaGenerator(client_root / "Services", corpus_root=client_root / "Services").generate()
        request = _requests(result)["GetOrder"]
        assert request.sample is None
        assert request.endpoint == "/bifrost/order-service/get-order"


# ===========================================================================
# Sample failure isolation tests
# ===========================================================================

SHOP_SERVICE = """
using System.Collections.Generic;

namespace Shop
{
    public class Order
    {
        public int Id { get; set; }
    }

    public class Tree<T>
    {
        public T Value { get; set; }
        public Tree<List<T>> Children { get; set; }
    }

    public interface IShopService
    {
        [BifrostPath("/ok")]
        void Ok(Order request);

        [BifrostPath("/tree")]
        void GetTree(Tree<int> request);
    }
}
"""


@pytest.fixture
def shop_services(tmp_path: Path) -> Path:
    services = tmp_path / "Hudl.Shop.Client" / "Services"
    services.mkdir(parents=True)
    (services / "IShopService.cs").write_text(SHOP_SERVICE, encoding="utf-8")
    return services


class TestSampleFailureIsolation:
    def test_growing_generic_does_not_abort_run(self, shop_services: Path) -> None:
        requests = _requests(SchemaGenerator(shop_services).generate())
        assert json.loads(requests["Ok"].sample_json) == {"Id": 1}
        assert json.loads(requests["GetTree"].sample_json) == {
            "Value": 1,
            "Children": "!!CircularReference Tree!!>",
        }

    def test_failing_sample_falls_back_to_empty_object(self, shop_services: Path, monkeypatch) -> None:
        class FailingSynthesizer(generator_module.SampleSynthesizer):
            def synthesize(self, symbol):
                if symbol is not None and symbol.name == "Tree":
                    raise RecursionError("maximum recursion depth exceeded")
                return super().synthesize(symbol)

        monkeypatch.setattr(generator_module, "SampleSynthesizer", FailingSynthesizer)
        result = SchemaGenerator(shop_services).generate()
        requests = _requests(result)
        assert result.total_endpoints == 2
        assert json.loads(requests["Ok"].sample_json) == {"Id": 1}
        assert requests["GetTree"].sample is None
        assert requests["GetTree"].sample_json == "{}"
