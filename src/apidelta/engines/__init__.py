"""Diff engines: key matching, schema trees and protobuf compatibility."""

from apidelta.engines.keyed import KeyedMatch, match_by_key, match_list
from apidelta.engines.proto_compat import ProtoCompatibilityEngine
from apidelta.engines.schema_diff import SchemaDiffEngine, StructuralNode
from apidelta.engines.wire import WireFamily, is_wire_compatible, wire_family

__all__ = [
    "KeyedMatch",
    "ProtoCompatibilityEngine",
    "SchemaDiffEngine",
    "StructuralNode",
    "WireFamily",
    "is_wire_compatible",
    "match_by_key",
    "match_list",
    "wire_family",
]
