"""Tests for canonical tree models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from apidelta.canonical.proto import ProtoField, ProtoRpcMethod, StreamType
from apidelta.canonical.rest import Endpoint, Response
from apidelta.canonical.schema import CanonicalSchemaNode, NodeKind


class TestNodeKind:
    def test_reference_wins(self):
        node = CanonicalSchemaNode(type="object", ref="#/components/schemas/User")
        assert node.kind == NodeKind.REFERENCE

    def test_composite(self):
        node = CanonicalSchemaNode(one_of=[CanonicalSchemaNode(type="string")])
        assert node.kind == NodeKind.COMPOSITE

    def test_array_from_items(self):
        node = CanonicalSchemaNode(items=CanonicalSchemaNode(type="string"))
        assert node.kind == NodeKind.ARRAY

    def test_object_and_primitive(self):
        assert CanonicalSchemaNode(type="object").kind == NodeKind.OBJECT
        assert CanonicalSchemaNode(type="integer").kind == NodeKind.PRIMITIVE


class TestCanonicalSchemaNode:
    def test_enum_values_are_strings(self):
        node = CanonicalSchemaNode(type="integer", enum_values=[1, 2])
        assert node.enum_values == ["1", "2"]

    def test_required_fields_from_list(self):
        node = CanonicalSchemaNode.model_validate({"required_fields": ["id", "id"]})
        assert node.required_fields == frozenset({"id"})

    def test_unknown_keys_rejected(self):
        with pytest.raises(ValidationError):
            CanonicalSchemaNode.model_validate({"$ref": "#/x"})


class TestProtoModels:
    def test_field_number_positive(self):
        with pytest.raises(ValidationError):
            ProtoField(name="x", number=0, type_name="string")

    @pytest.mark.parametrize(
        "client,server,expected",
        [
            (False, False, StreamType.UNARY),
            (True, False, StreamType.CLIENT_STREAMING),
            (False, True, StreamType.SERVER_STREAMING),
            (True, True, StreamType.BIDIRECTIONAL),
        ],
    )
    def test_stream_type(self, client, server, expected):
        method = ProtoRpcMethod(
            name="Watch",
            input_type="Req",
            output_type="Resp",
            client_streaming=client,
            server_streaming=server,
        )
        assert method.stream_type == expected


class TestRestModels:
    def test_endpoint_key_uppercases_method(self):
        assert Endpoint(method="get", path="/users").key == "GET /users"

    def test_numeric_status_code(self):
        assert Response.model_validate({"status_code": 200}).status_code == "200"
