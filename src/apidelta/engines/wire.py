"""
Protobuf wire-type families.

Two field types are wire-compatible when they belong to the same family:
bytes written under one decode without error under the other.  Names that
are not scalar types are message or enum references; ``map<K, V>`` is its
own family.
"""

from __future__ import annotations

from enum import Enum


class WireFamily(str, Enum):
    VARINT = "varint"
    ZIGZAG = "zigzag"
    FIXED32 = "fixed32"
    FIXED64 = "fixed64"
    LENGTH_DELIMITED = "length_delimited"
    MAP = "map"
    REFERENCE = "reference"


SCALAR_WIRE_FAMILIES: dict[str, WireFamily] = {
    "int32": WireFamily.VARINT,
    "int64": WireFamily.VARINT,
    "uint32": WireFamily.VARINT,
    "uint64": WireFamily.VARINT,
    "bool": WireFamily.VARINT,
    "sint32": WireFamily.ZIGZAG,
    "sint64": WireFamily.ZIGZAG,
    "fixed32": WireFamily.FIXED32,
    "sfixed32": WireFamily.FIXED32,
    "float": WireFamily.FIXED32,
    "fixed64": WireFamily.FIXED64,
    "sfixed64": WireFamily.FIXED64,
    "double": WireFamily.FIXED64,
    "string": WireFamily.LENGTH_DELIMITED,
    "bytes": WireFamily.LENGTH_DELIMITED,
}


def wire_family(type_name: str) -> WireFamily:
    normalized = type_name.strip().lower()
    if normalized.startswith("map<"):
        return WireFamily.MAP
    return SCALAR_WIRE_FAMILIES.get(normalized, WireFamily.REFERENCE)


def is_scalar(type_name: str) -> bool:
    return type_name.strip().lower() in SCALAR_WIRE_FAMILIES


def is_wire_compatible(old_type: str, new_type: str) -> bool:
    """True when values encoded as *old_type* decode as *new_type*."""
    if old_type == new_type:
        return True
    return wire_family(old_type) == wire_family(new_type)
