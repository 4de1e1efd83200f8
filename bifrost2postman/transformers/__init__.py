"""
bifrost2postman/transformers/__init__.py

Output adapters - render grouped request schemas as a Postman collection or
an OpenAPI document.
"""

from bifrost2postman.transformers.openapi import transform_schema_to_openapi
from bifrost2postman.transformers.postman import transform_schema_to_postman
from bifrost2postman.transformers.specification import (
    SchemaSpecification,
    output_file_name,
    render_schema,
)
