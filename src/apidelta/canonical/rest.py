"""
Canonical REST (OpenAPI-shaped) tree.

Endpoints are matched across versions by ``Endpoint.key``, the
``METHOD path`` pair.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from apidelta.canonical.schema import CanonicalSchemaNode


class Parameter(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., min_length=1)
    location: str = Field("query", description="path / query / header / cookie")
    type: Optional[str] = None
    required: bool = False
    schema_node: Optional[CanonicalSchemaNode] = None


class RequestBody(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    content_type: Optional[str] = None
    required: bool = False
    schema_ref: Optional[str] = None
    schema_node: Optional[CanonicalSchemaNode] = None


class Response(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    status_code: str = Field(..., min_length=1)
    description: Optional[str] = None
    content_type: Optional[str] = None
    schema_ref: Optional[str] = None
    schema_node: Optional[CanonicalSchemaNode] = None

    @field_validator("status_code", mode="before")
    @classmethod
    def _stringify_status(cls, v: object) -> object:
        # YAML loads bare 200 as an int
        return str(v) if isinstance(v, int) else v


class Endpoint(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    method: str = Field(..., min_length=1)
    path: str = Field(..., min_length=1)
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    parameters: list[Parameter] = Field(default_factory=list)
    request_body: Optional[RequestBody] = None
    responses: list[Response] = Field(default_factory=list)
    deprecated: bool = False

    @field_validator("method")
    @classmethod
    def _upper_method(cls, v: str) -> str:
        return v.upper()

    @property
    def key(self) -> str:
        return f"{self.method} {self.path}"


class RestApiSpec(BaseModel):
    """Canonical view of one REST API description."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    title: Optional[str] = None
    version: Optional[str] = None
    endpoints: list[Endpoint] = Field(default_factory=list)
    schemas: dict[str, CanonicalSchemaNode] = Field(default_factory=dict)
