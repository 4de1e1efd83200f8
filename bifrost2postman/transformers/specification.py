"""
bifrost2postman/transformers/specification.py

Supported output specifications and their file naming.
"""

from collections.abc import Callable
from enum import StrEnum

from bifrost2postman.config import Config
from bifrost2postman.schema_generation.models import RequestSchema
from bifrost2postman.transformers.openapi import transform_schema_to_openapi
from bifrost2postman.transformers.postman import transform_schema_to_postman


class SchemaSpecification(StrEnum):
    """Output formats the CLI can generate."""
    POSTMAN = "postman"
    OPENAPI = "openapi"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS: dict[SchemaSpecification, str] = {
    SchemaSpecification.POSTMAN: "Postman",
    SchemaSpecification.OPENAPI: "OpenAPI",
}

_TRANSFORMERS: dict[SchemaSpecification, Callable[[dict[str, list[RequestSchema]], str], str]] = {
    SchemaSpecification.POSTMAN: transform_schema_to_postman,
    SchemaSpecification.OPENAPI: transform_schema_to_openapi,
}


def render_schema(
    specification: SchemaSpecification,
    requests_by_group: dict[str, list[RequestSchema]],
    service_name: str,
) -> str:
    """Render request schemas in the given output format."""
    return _TRANSFORMERS[specification](requests_by_group, service_name)


def output_file_name(specification: SchemaSpecification, service_name: str) -> str:
    """e.g. (POSTMAN, "Ticketing") -> "hudl_ticketing_postman_generated.json\""""
    organization = Config.ORGANIZATION_PREFIX.lower()
    return f"{organization}_{service_name.lower()}_{specification.value}_generated.json"
