"""Tests for the protobuf compatibility engine."""

from __future__ import annotations

import pytest

from apidelta.canonical.proto import (
    FieldRule,
    ProtoEnum,
    ProtoEnumValue,
    ProtoField,
    ProtoMessage,
)
from apidelta.engines.proto_compat import ProtoCompatibilityEngine
from apidelta.models.changes import BreakingChangeRecord
from apidelta.types import ChangeCategory, ChangeType, Severity


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _field(name, number, type_name="string", **kwargs):
    return ProtoField(name=name, number=number, type_name=type_name, **kwargs)


def _message(*fields, name="M", **kwargs):
    return ProtoMessage(name=name, fields=list(fields), **kwargs)


def _enum(*values, name="Color", **kwargs):
    return ProtoEnum(
        name=name,
        values=[ProtoEnumValue(name=n, number=v) for n, v in values],
        **kwargs,
    )


def _compare(old, new):
    return ProtoCompatibilityEngine().compare_message("M", old, new)


def _only(changes):
    assert len(changes) == 1, [c.description for c in changes]
    return changes[0]


class TestReflexivity:
    def test_identical_message(self):
        message = _message(
            _field("id", 1),
            _field("tags", 2, rule=FieldRule.REPEATED),
            nested_messages=[_message(_field("x", 1), name="Inner")],
            nested_enums=[_enum(("RED", 0))],
        )
        assert _compare(message, message) == []

    def test_identical_enum(self):
        enum = _enum(("RED", 0), ("GREEN", 1))
        assert ProtoCompatibilityEngine().compare_enum("Color", enum, enum) == []


class TestFieldPresence:
    def test_optional_field_removed(self):
        change = _only(_compare(_message(_field("a", 1), _field("b", 2)), _message(_field("a", 1))))
        assert (change.category, change.change_type, change.severity) == (
            ChangeCategory.FIELD, ChangeType.REMOVED, Severity.DANGEROUS,
        )
        assert change.impact_score == 60
        assert change.path == "M.b"

    def test_required_field_removed(self):
        change = _only(_compare(
            _message(_field("a", 1, rule=FieldRule.REQUIRED)), _message()
        ))
        assert change.severity == Severity.BREAKING
        assert change.impact_score == 90

    def test_optional_field_added(self):
        change = _only(_compare(_message(), _message(_field("a", 1))))
        assert (change.change_type, change.severity, change.impact_score) == (
            ChangeType.ADDED, Severity.INFO, 10,
        )

    def test_required_field_added(self):
        change = _only(_compare(_message(), _message(_field("a", 1, rule=FieldRule.REQUIRED))))
        assert (change.severity, change.impact_score) == (Severity.BREAKING, 80)


class TestFieldNumbers:
    def test_renumber_is_single_breaking_record(self):
        change = _only(_compare(_message(_field("foo", 1)), _message(_field("foo", 2))))
        assert change.category == ChangeCategory.FIELD_NUMBER
        assert change.severity == Severity.BREAKING
        assert change.impact_score == 100
        assert isinstance(change, BreakingChangeRecord)

    def test_number_reuse_replaces_add_and_remove(self):
        change = _only(_compare(
            _message(_field("foo", 1)), _message(_field("bar", 1, type_name="int32"))
        ))
        assert (change.category, change.change_type, change.severity) == (
            ChangeCategory.FIELD_NUMBER, ChangeType.MODIFIED, Severity.BREAKING,
        )
        assert change.impact_score == 100
        assert change.path == "M.field_number_1"
        assert change.old_value == "foo"
        assert change.new_value == "bar"

    def test_reuse_of_renumbered_fields_number(self):
        changes = _compare(
            _message(_field("foo", 1)),
            _message(_field("foo", 2), _field("bar", 1)),
        )
        paths = sorted(c.path for c in changes)
        assert paths == ["M.field_number_1", "M.foo"]
        assert all(c.impact_score == 100 for c in changes)

    def test_reuse_of_reserved_number(self):
        change = _only(_compare(
            _message(reserved_numbers={3}),
            _message(_field("c", 3), reserved_numbers={3}),
        ))
        assert change.path == "M.field_number_3"
        assert change.old_value == "reserved"

    def test_fresh_number_is_plain_addition(self):
        changes = _compare(_message(_field("foo", 1)), _message(_field("foo", 1), _field("bar", 2)))
        assert _only(changes).change_type == ChangeType.ADDED


class TestFieldModifications:
    @pytest.mark.parametrize(
        "old_type,new_type,severity,impact",
        [
            ("int32", "int64", Severity.DANGEROUS, 60),
            ("int64", "bool", Severity.DANGEROUS, 60),
            ("sint32", "sint64", Severity.DANGEROUS, 60),
            ("fixed32", "float", Severity.DANGEROUS, 60),
            ("double", "sfixed64", Severity.DANGEROUS, 60),
            ("string", "bytes", Severity.DANGEROUS, 60),
            ("int32", "sint32", Severity.BREAKING, 95),
            ("int32", "fixed32", Severity.BREAKING, 95),
            ("string", "int32", Severity.BREAKING, 95),
            ("string", "Address", Severity.BREAKING, 95),
        ],
    )
    def test_type_change(self, old_type, new_type, severity, impact):
        change = _only(_compare(
            _message(_field("a", 1, old_type)), _message(_field("a", 1, new_type))
        ))
        assert (change.severity, change.impact_score) == (severity, impact)

    @pytest.mark.parametrize(
        "old_rule,new_rule,severity,impact",
        [
            (FieldRule.OPTIONAL, FieldRule.REQUIRED, Severity.BREAKING, 85),
            (FieldRule.REQUIRED, FieldRule.OPTIONAL, Severity.INFO, 10),
            (FieldRule.REPEATED, FieldRule.OPTIONAL, Severity.BREAKING, 85),
            (FieldRule.OPTIONAL, FieldRule.REPEATED, Severity.DANGEROUS, 50),
        ],
    )
    def test_rule_change(self, old_rule, new_rule, severity, impact):
        change = _only(_compare(
            _message(_field("a", 1, rule=old_rule)), _message(_field("a", 1, rule=new_rule))
        ))
        assert (change.severity, change.impact_score) == (severity, impact)

    def test_number_and_type_change_reported_independently(self):
        changes = _compare(_message(_field("a", 1, "int32")), _message(_field("a", 2, "string")))
        assert [c.category for c in changes] == [ChangeCategory.FIELD_NUMBER, ChangeCategory.FIELD]

    def test_default_value_change(self):
        change = _only(_compare(
            _message(_field("a", 1, default_value="x")), _message(_field("a", 1, default_value="y"))
        ))
        assert (change.severity, change.impact_score) == (Severity.DANGEROUS, 40)

    def test_oneof_change(self):
        change = _only(_compare(
            _message(_field("a", 1)), _message(_field("a", 1, oneof_name="choice"))
        ))
        assert change.severity == Severity.DANGEROUS

    def test_field_deprecated(self):
        change = _only(_compare(
            _message(_field("a", 1)), _message(_field("a", 1, deprecated=True))
        ))
        assert (change.change_type, change.severity, change.impact_score) == (
            ChangeType.DEPRECATED, Severity.WARNING, 30,
        )


class TestMessages:
    def test_message_removed_and_added(self):
        engine = ProtoCompatibilityEngine()
        changes = engine.compare_messages(
            [_message(name="Old")], [_message(name="New")], "acme.v1"
        )
        assert [(c.path, c.severity, c.impact_score) for c in changes] == [
            ("acme.v1.Old", Severity.BREAKING, 95),
            ("acme.v1.New", Severity.INFO, 5),
        ]

    def test_added_messages_use_added_parent_path(self):
        engine = ProtoCompatibilityEngine()
        changes = engine.compare_messages(
            [_message(name="Old")], [_message(name="New")], "acme.v1", "acme.v2"
        )
        assert [c.path for c in changes] == ["acme.v1.Old", "acme.v2.New"]

    def test_message_deprecated(self):
        change = _only(_compare(_message(), _message(deprecated=True)))
        assert (change.category, change.severity) == (ChangeCategory.MESSAGE, Severity.WARNING)

    def test_reserved_additions_are_info(self):
        changes = _compare(_message(), _message(reserved_numbers={4, 5}, reserved_names={"old"}))
        assert len(changes) == 3
        assert all(c.severity == Severity.INFO and c.impact_score == 5 for c in changes)
        assert all(c.path == "M.reserved" for c in changes)

    def test_nested_paths(self):
        old = _message(nested_messages=[_message(_field("x", 1), name="Inner")])
        new = _message(nested_messages=[_message(name="Inner")])
        assert _only(_compare(old, new)).path == "M.Inner.x"


class TestEnums:
    def _compare_enum(self, old, new):
        return ProtoCompatibilityEngine().compare_enum("Color", old, new)

    def test_value_added(self):
        change = _only(self._compare_enum(
            _enum(("RED", 0), ("GREEN", 1)),
            _enum(("RED", 0), ("GREEN", 1), ("BLUE", 2)),
        ))
        assert (change.category, change.change_type, change.severity, change.impact_score) == (
            ChangeCategory.ENUM_VALUE, ChangeType.ADDED, Severity.INFO, 10,
        )

    def test_value_removed(self):
        change = _only(self._compare_enum(_enum(("RED", 0), ("GREEN", 1)), _enum(("RED", 0))))
        assert (change.severity, change.impact_score) == (Severity.BREAKING, 85)

    def test_value_number_reused(self):
        change = _only(self._compare_enum(_enum(("RED", 0), ("GREEN", 1)), _enum(("RED", 0), ("BLUE", 1))))
        assert change.path == "Color.value_1"
        assert change.impact_score == 100

    def test_value_renumbered(self):
        change = _only(self._compare_enum(_enum(("RED", 0)), _enum(("RED", 3))))
        assert (change.change_type, change.impact_score) == (ChangeType.MODIFIED, 100)

    def test_alias_is_plain_addition(self):
        change = _only(self._compare_enum(
            _enum(("RED", 0), allow_alias=True),
            _enum(("RED", 0), ("CRIMSON", 0), allow_alias=True),
        ))
        assert change.change_type == ChangeType.ADDED

    def test_enum_removed_added_deprecated(self):
        engine = ProtoCompatibilityEngine()
        changes = engine.compare_enums([_enum(name="A"), _enum(name="B")], [_enum(name="B", deprecated=True), _enum(name="C")])
        assert [(c.path, c.severity, c.impact_score) for c in changes] == [
            ("A", Severity.BREAKING, 90),
            ("C", Severity.INFO, 5),
            ("B", Severity.WARNING, 25),
        ]
