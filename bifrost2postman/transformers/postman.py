"""
bifrost2postman/transformers/postman.py

Postman Collection v2.1 output.

Every endpoint group becomes a folder and every endpoint a POST request whose
raw JSON body is the synthesized sample.
"""

import json

from pydantic import BaseModel, Field

from bifrost2postman.config import Config
from bifrost2postman.schema_generation.models import RequestSchema

POSTMAN_SCHEMA_URL = "https://schema.getpostman.com/json/collection/v2.1.0/collection.json"
POSTMAN_HOST = "{{Hostname}}:{{Port}}"


class PostmanHeader(BaseModel):
    key: str
    value: str


class PostmanUrl(BaseModel):
    raw: str
    host: list[str] = Field(default_factory=lambda: [POSTMAN_HOST])
    path: list[str] = Field(default_factory=list, description="Route split on '/', leading empty segment included")


class PostmanBody(BaseModel):
    mode: str = "raw"
    raw: str


class PostmanRequest(BaseModel):
    method: str = "POST"
    header: list[PostmanHeader] = Field(
        default_factory=lambda: [PostmanHeader(key="Content-Type", value="application/json")]
    )
    url: PostmanUrl
    body: PostmanBody


class PostmanItem(BaseModel):
    name: str
    request: PostmanRequest


class PostmanFolder(BaseModel):
    name: str
    item: list[PostmanItem] = Field(default_factory=list)


class PostmanInfo(BaseModel):
    name: str
    schema_url: str = Field(default=POSTMAN_SCHEMA_URL, alias="schema")


class PostmanCollection(BaseModel):
    info: PostmanInfo
    item: list[PostmanFolder] = Field(default_factory=list)


def build_postman_collection(
    requests_by_group: dict[str, list[RequestSchema]],
    service_name: str,
) -> PostmanCollection:
    folders = [
        PostmanFolder(
            name=group_key,
            item=[
                PostmanItem(
                    name=request.method_name,
                    request=PostmanRequest(
                        url=PostmanUrl(raw=request.endpoint, path=request.endpoint.split("/")),
                        body=PostmanBody(raw=request.sample_json),
                    ),
                )
                for request in requests
            ],
        )
        for group_key, requests in requests_by_group.items()
    ]
    return PostmanCollection(
        info=PostmanInfo(name=f"{Config.ORGANIZATION_PREFIX}.{service_name} Bifrost Endpoints"),
        item=folders,
    )


def transform_schema_to_postman(
    requests_by_group: dict[str, list[RequestSchema]],
    service_name: str,
) -> str:
    """
    Render request schemas as a Postman collection.
    Args:
        requests_by_group (dict[str, list[RequestSchema]]): Requests keyed by enclosing type.
        service_name (str): Service name, e.g. "Ticketing".
    Returns:
        str: Indented collection JSON.
    """
    collection = build_postman_collection(requests_by_group, service_name)
    return json.dumps(collection.model_dump(mode="json", by_alias=True), indent=Config.JSON_INDENT, ensure_ascii=False)
