"""
Canonical protobuf tree.

Produced by an external ``.proto`` parser; field numbers are assumed unique
within a message and enum value numbers unique within an enum unless
``allow_alias`` is set.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FieldRule(str, Enum):
    OPTIONAL = "OPTIONAL"
    REQUIRED = "REQUIRED"
    REPEATED = "REPEATED"


class StreamType(str, Enum):
    UNARY = "UNARY"
    CLIENT_STREAMING = "CLIENT_STREAMING"
    SERVER_STREAMING = "SERVER_STREAMING"
    BIDIRECTIONAL = "BIDIRECTIONAL"


class ProtoField(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., min_length=1)
    number: int = Field(..., ge=1)
    type_name: str = Field(..., min_length=1)
    rule: FieldRule = FieldRule.OPTIONAL
    oneof_name: Optional[str] = None
    deprecated: bool = False
    default_value: Optional[str] = None


class ProtoEnumValue(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., min_length=1)
    number: int
    deprecated: bool = False


class ProtoEnum(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., min_length=1)
    values: list[ProtoEnumValue] = Field(default_factory=list)
    allow_alias: bool = False
    deprecated: bool = False


class ProtoMessage(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., min_length=1)
    fields: list[ProtoField] = Field(default_factory=list)
    nested_messages: list[ProtoMessage] = Field(default_factory=list)
    nested_enums: list[ProtoEnum] = Field(default_factory=list)
    reserved_numbers: frozenset[int] = Field(default_factory=frozenset)
    reserved_names: frozenset[str] = Field(default_factory=frozenset)
    deprecated: bool = False


class ProtoRpcMethod(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., min_length=1)
    input_type: str = Field(..., min_length=1)
    output_type: str = Field(..., min_length=1)
    client_streaming: bool = False
    server_streaming: bool = False
    deprecated: bool = False

    @property
    def stream_type(self) -> StreamType:
        if self.client_streaming and self.server_streaming:
            return StreamType.BIDIRECTIONAL
        if self.client_streaming:
            return StreamType.CLIENT_STREAMING
        if self.server_streaming:
            return StreamType.SERVER_STREAMING
        return StreamType.UNARY


class ProtoService(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., min_length=1)
    methods: list[ProtoRpcMethod] = Field(default_factory=list)
    deprecated: bool = False


class ProtoFile(BaseModel):
    """Canonical view of one ``.proto`` file."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = ""
    package: str = ""
    syntax: str = "proto3"
    services: list[ProtoService] = Field(default_factory=list)
    messages: list[ProtoMessage] = Field(default_factory=list)
    enums: list[ProtoEnum] = Field(default_factory=list)
