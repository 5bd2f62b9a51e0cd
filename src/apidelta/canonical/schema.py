"""
Canonical schema node shared by REST bodies and event payloads.

A ``CanonicalSchemaNode`` is a parser-neutral JSON-Schema-like tree.  The
``kind`` property tags each node so diffing code can dispatch on it; a
``ref`` is an opaque string and is never resolved.

Usage::

    from apidelta.canonical.schema import CanonicalSchemaNode

    user = CanonicalSchemaNode(
        type="object",
        required_fields={"id"},
        properties={"id": CanonicalSchemaNode(type="string")},
    )
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NodeKind(str, Enum):
    OBJECT = "object"
    ARRAY = "array"
    PRIMITIVE = "primitive"
    REFERENCE = "reference"
    COMPOSITE = "composite"


class CanonicalSchemaNode(BaseModel):
    """One node of a canonical schema tree."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Optional[str] = None
    format: Optional[str] = None
    description: Optional[str] = None
    required_fields: frozenset[str] = Field(default_factory=frozenset)
    properties: dict[str, CanonicalSchemaNode] = Field(default_factory=dict)
    items: Optional[CanonicalSchemaNode] = None
    enum_values: list[str] = Field(default_factory=list)
    ref: Optional[str] = Field(None, description="Opaque $ref target, never followed")
    deprecated: bool = False
    all_of: list[CanonicalSchemaNode] = Field(default_factory=list)
    one_of: list[CanonicalSchemaNode] = Field(default_factory=list)
    any_of: list[CanonicalSchemaNode] = Field(default_factory=list)

    @field_validator("enum_values", mode="before")
    @classmethod
    def _stringify_enum(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, (list, tuple)):
            return [str(item) for item in v]
        return v

    @property
    def kind(self) -> NodeKind:
        if self.ref:
            return NodeKind.REFERENCE
        if self.all_of or self.one_of or self.any_of:
            return NodeKind.COMPOSITE
        if self.type == "array" or self.items is not None:
            return NodeKind.ARRAY
        if self.type == "object" or self.properties:
            return NodeKind.OBJECT
        return NodeKind.PRIMITIVE
