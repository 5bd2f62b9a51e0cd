"""Parser-neutral canonical trees consumed by the diff engines."""

from apidelta.canonical.asyncapi import (
    AsyncApiSpec,
    AsyncChannel,
    AsyncMessage,
    AsyncOperation,
    AsyncServer,
    ChannelParameter,
    ServerVariable,
)
from apidelta.canonical.proto import (
    FieldRule,
    ProtoEnum,
    ProtoEnumValue,
    ProtoField,
    ProtoFile,
    ProtoMessage,
    ProtoRpcMethod,
    ProtoService,
    StreamType,
)
from apidelta.canonical.rest import (
    Endpoint,
    Parameter,
    RequestBody,
    Response,
    RestApiSpec,
)
from apidelta.canonical.schema import CanonicalSchemaNode, NodeKind

__all__ = [
    "AsyncApiSpec",
    "AsyncChannel",
    "AsyncMessage",
    "AsyncOperation",
    "AsyncServer",
    "CanonicalSchemaNode",
    "ChannelParameter",
    "Endpoint",
    "FieldRule",
    "NodeKind",
    "Parameter",
    "ProtoEnum",
    "ProtoEnumValue",
    "ProtoField",
    "ProtoFile",
    "ProtoMessage",
    "ProtoRpcMethod",
    "ProtoService",
    "RequestBody",
    "Response",
    "RestApiSpec",
    "ServerVariable",
    "StreamType",
]
