"""
Canonical AsyncAPI tree covering both 2.x and 3.x documents.

2.x documents carry ``publish``/``subscribe`` operations on channels; 3.x
documents carry top-level ``operations`` with an ``action`` and a
``channel_ref``.  Both shapes may be populated by the parser.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from apidelta.canonical.schema import CanonicalSchemaNode


class ServerVariable(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    default_value: Optional[str] = None
    allowed_values: list[str] = Field(default_factory=list)
    description: Optional[str] = None


class AsyncServer(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    url: str = ""
    protocol: str = ""
    protocol_version: Optional[str] = None
    description: Optional[str] = None
    variables: dict[str, ServerVariable] = Field(default_factory=dict)
    deprecated: bool = False


class AsyncMessage(BaseModel):
    """A message definition, inline or under ``components.messages``."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: Optional[str] = None
    title: Optional[str] = None
    summary: Optional[str] = None
    content_type: Optional[str] = None
    schema_format: Optional[str] = None
    correlation_id: Optional[str] = None
    payload: Optional[CanonicalSchemaNode] = None
    headers: Optional[CanonicalSchemaNode] = None
    bindings: dict[str, Any] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
    deprecated: bool = False


class AsyncOperation(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    operation_id: Optional[str] = None
    action: Optional[str] = Field(None, description="send / receive (3.x)")
    channel_ref: Optional[str] = Field(None, description="Referenced channel key (3.x)")
    messages: dict[str, AsyncMessage] = Field(default_factory=dict)
    bindings: dict[str, Any] = Field(default_factory=dict)
    deprecated: bool = False


class ChannelParameter(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    description: Optional[str] = None
    location: Optional[str] = None
    schema_node: Optional[CanonicalSchemaNode] = None


class AsyncChannel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    address: Optional[str] = None
    description: Optional[str] = None
    publish: Optional[AsyncOperation] = None
    subscribe: Optional[AsyncOperation] = None
    parameters: dict[str, ChannelParameter] = Field(default_factory=dict)
    messages: dict[str, AsyncMessage] = Field(default_factory=dict)
    bindings: dict[str, Any] = Field(default_factory=dict)
    servers: list[str] = Field(default_factory=list)
    deprecated: bool = False


class AsyncApiSpec(BaseModel):
    """Canonical view of one AsyncAPI document."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    asyncapi_version: str = "3.0.0"
    title: Optional[str] = None
    api_version: Optional[str] = None
    description: Optional[str] = None
    contact: dict[str, Any] = Field(default_factory=dict)
    license: dict[str, Any] = Field(default_factory=dict)
    servers: dict[str, AsyncServer] = Field(default_factory=dict)
    channels: dict[str, AsyncChannel] = Field(default_factory=dict)
    operations: dict[str, AsyncOperation] = Field(default_factory=dict)
    messages: dict[str, AsyncMessage] = Field(default_factory=dict)
    schemas: dict[str, CanonicalSchemaNode] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
