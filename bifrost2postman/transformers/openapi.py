"""
bifrost2postman/transformers/openapi.py

OpenAPI 3.0.1 output.

Every endpoint becomes `paths[route].post`. The synthesized sample is carried
as the example of a single `sample` string property, and every operation takes
a required `hostname` query parameter. Two endpoints with the same route share
one path entry; the later one wins.
"""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from bifrost2postman.config import Config
from bifrost2postman.schema_generation.models import RequestSchema

OPENAPI_VERSION = "3.0.1"
JSON_MEDIA_TYPE = "application/json"


class OpenApiProperty(BaseModel):
    type: str
    example: str | None = None


class OpenApiSchema(BaseModel):
    type: str
    properties: dict[str, OpenApiProperty] | None = None


class OpenApiMediaType(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    media_schema: OpenApiSchema = Field(alias="schema")
    example: Any = None


class OpenApiParameter(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    location: str = Field(alias="in")
    description: str
    required: bool = False
    param_schema: OpenApiSchema = Field(alias="schema")


class OpenApiRequestBody(BaseModel):
    content: dict[str, OpenApiMediaType]


class OpenApiResponse(BaseModel):
    description: str
    content: dict[str, OpenApiMediaType] | None = None


class OpenApiOperation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    summary: str
    description: str
    operation_id: str = Field(alias="operationId")
    parameters: list[OpenApiParameter] = Field(default_factory=list)
    request_body: OpenApiRequestBody = Field(alias="requestBody")
    responses: dict[str, OpenApiResponse] = Field(default_factory=dict)


class OpenApiPathItem(BaseModel):
    post: OpenApiOperation


class OpenApiInfo(BaseModel):
    title: str
    description: str
    version: str = "1.0.0"


class OpenApiComponents(BaseModel):
    schemas: dict[str, Any] = Field(default_factory=dict)


class OpenApiDocument(BaseModel):
    openapi: str = OPENAPI_VERSION
    info: OpenApiInfo
    paths: dict[str, OpenApiPathItem] = Field(default_factory=dict)
    components: OpenApiComponents = Field(default_factory=OpenApiComponents)


def _operation_for(request: RequestSchema) -> OpenApiOperation:
    return OpenApiOperation(
        summary=request.method_name,
        description=f"Automatically generated endpoint for {request.method_name}",
        operation_id=request.method_name.lower(),
        parameters=[
            OpenApiParameter(
                name="hostname",
                location="query",
                description="Hostname of the API",
                required=True,
                param_schema=OpenApiSchema(type="string"),
            )
        ],
        request_body=OpenApiRequestBody(content={
            JSON_MEDIA_TYPE: OpenApiMediaType(
                media_schema=OpenApiSchema(
                    type="object",
                    properties={"sample": OpenApiProperty(type="string", example="sample")},
                ),
                example={"sample": request.sample_json},
            )
        }),
        responses={
            "200": OpenApiResponse(
                description="Successful operation",
                content={JSON_MEDIA_TYPE: OpenApiMediaType(media_schema=OpenApiSchema(type="object"))},
            )
        },
    )


def build_openapi_document(
    requests_by_group: dict[str, list[RequestSchema]],
    service_name: str,
) -> OpenApiDocument:
    paths: dict[str, OpenApiPathItem] = {}
    for requests in requests_by_group.values():
        for request in requests:
            paths[request.endpoint] = OpenApiPathItem(post=_operation_for(request))
    return OpenApiDocument(
        info=OpenApiInfo(
            title=f"{Config.ORGANIZATION_PREFIX}.{service_name} API",
            description=f"API for {service_name} services",
        ),
        paths=paths,
    )


def transform_schema_to_openapi(
    requests_by_group: dict[str, list[RequestSchema]],
    service_name: str,
) -> str:
    """
    Render request schemas as an OpenAPI document.
    Args:
        requests_by_group (dict[str, list[RequestSchema]]): Requests keyed by enclosing type.
        service_name (str): Service name, e.g. "Ticketing".
    Returns:
        str: Indented OpenAPI JSON.
    """
    document = build_openapi_document(requests_by_group, service_name)
    return json.dumps(
        document.model_dump(mode="json", by_alias=True, exclude_none=True),
        indent=Config.JSON_INDENT,
        ensure_ascii=False,
    )
