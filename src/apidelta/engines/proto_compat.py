"""
Protobuf compatibility engine.

Compares canonical protobuf messages and enums and scores every change with
an impact estimate.  The wire format identifies fields by number, so the
engine enforces number stability above everything else:

- a field (or enum value) whose number changes is BREAKING with impact 100;
- an added field that takes over a number freed by a removed or renumbered
  field, or a number the old message reserved, is reported once as a
  number reuse (BREAKING, impact 100) instead of as a removal plus an
  addition.

Usage::

    from apidelta.engines.proto_compat import ProtoCompatibilityEngine

    engine = ProtoCompatibilityEngine()
    changes = engine.compare_messages(old_file.messages, new_file.messages, "acme.v1")
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from apidelta.canonical.proto import (
    FieldRule,
    ProtoEnum,
    ProtoEnumValue,
    ProtoField,
    ProtoMessage,
)
from apidelta.engines.keyed import match_list, qualify
from apidelta.engines.wire import is_wire_compatible
from apidelta.models.changes import ImpactedChangeRecord, make_impacted
from apidelta.types import ChangeCategory, ChangeType, Severity

logger = logging.getLogger(__name__)

# Impact scores per rule (0..100)
IMPACT_NUMBER_CHANGE = 100
IMPACT_REQUIRED_FIELD_REMOVED = 90
IMPACT_FIELD_REMOVED = 60
IMPACT_REQUIRED_FIELD_ADDED = 80
IMPACT_FIELD_ADDED = 10
IMPACT_TYPE_INCOMPATIBLE = 95
IMPACT_TYPE_WIRE_COMPATIBLE = 60
IMPACT_RULE_TIGHTENED = 85
IMPACT_RULE_RELAXED = 10
IMPACT_RULE_OTHER = 50
IMPACT_ONEOF_CHANGED = 50
IMPACT_DEFAULT_CHANGED = 40
IMPACT_FIELD_DEPRECATED = 30
IMPACT_MESSAGE_REMOVED = 95
IMPACT_MESSAGE_ADDED = 5
IMPACT_MESSAGE_DEPRECATED = 30
IMPACT_RESERVED_ADDED = 5
IMPACT_ENUM_REMOVED = 90
IMPACT_ENUM_ADDED = 5
IMPACT_ENUM_DEPRECATED = 25
IMPACT_ENUM_VALUE_REMOVED = 85
IMPACT_ENUM_VALUE_ADDED = 10
IMPACT_ENUM_VALUE_DEPRECATED = 25


def _rule_change(
    old: FieldRule, new: FieldRule
) -> tuple[Severity, int, str]:
    """Severity, impact and suggestion for a field label change."""
    if old == FieldRule.OPTIONAL and new == FieldRule.REQUIRED:
        return (
            Severity.BREAKING,
            IMPACT_RULE_TIGHTENED,
            "Senders built against the old schema may omit this field; "
            "keep it optional and validate in application code instead",
        )
    if old == FieldRule.REQUIRED and new == FieldRule.OPTIONAL:
        return Severity.INFO, IMPACT_RULE_RELAXED, "Relaxing a required field is safe"
    if old == FieldRule.REPEATED:
        return (
            Severity.BREAKING,
            IMPACT_RULE_TIGHTENED,
            "Readers of the singular field keep only the last element; "
            "add a new singular field instead",
        )
    if new == FieldRule.REPEATED:
        return (
            Severity.DANGEROUS,
            IMPACT_RULE_OTHER,
            "Old readers see only the last element of the repeated field",
        )
    return Severity.DANGEROUS, IMPACT_RULE_OTHER, "Review readers of this field"


def _freed_numbers(
    old_items: Sequence[ProtoField] | Sequence[ProtoEnumValue],
    new_by_name: dict,
) -> dict[int, str]:
    """Numbers released by old items that were removed or renumbered.

    A number that a surviving, unchanged item still holds (an enum alias)
    is not considered free.
    """
    still_held = {
        item.number
        for item in old_items
        if item.name in new_by_name and new_by_name[item.name].number == item.number
    }
    freed: dict[int, str] = {}
    for item in old_items:
        moved = item.name not in new_by_name or new_by_name[item.name].number != item.number
        if moved and item.number not in still_held:
            freed.setdefault(item.number, item.name)
    return freed


class ProtoCompatibilityEngine:
    """Classifies protobuf message and enum changes by wire compatibility."""

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def compare_messages(
        self,
        old: Optional[Sequence[ProtoMessage]],
        new: Optional[Sequence[ProtoMessage]],
        parent_path: str = "",
        added_parent_path: Optional[str] = None,
    ) -> list[ImpactedChangeRecord]:
        """Match messages by name under *parent_path* and compare them.

        Added messages are named under *added_parent_path* when given, so a
        file whose package changed reports them at their new location.
        """
        if added_parent_path is None:
            added_parent_path = parent_path
        changes: list[ImpactedChangeRecord] = []
        match = match_list(old, new, key=lambda m: m.name)

        for name, message in match.removed:
            path = qualify(parent_path, name)
            changes.append(make_impacted(
                ChangeType.REMOVED, ChangeCategory.MESSAGE, Severity.BREAKING,
                path, f"Message '{path}' removed", IMPACT_MESSAGE_REMOVED,
                old_value=path,
                migration_suggestion=(
                    f"Move consumers of '{path}' to a replacement message "
                    "before removing it"
                ),
            ))
        for name, message in match.added:
            path = qualify(added_parent_path, name)
            changes.append(make_impacted(
                ChangeType.ADDED, ChangeCategory.MESSAGE, Severity.INFO,
                path, f"Message '{path}' added with {len(message.fields)} field(s)",
                IMPACT_MESSAGE_ADDED, new_value=path,
            ))
        for name, old_message, new_message in match.matched:
            changes.extend(self.compare_message(
                qualify(parent_path, name), old_message, new_message
            ))
        return changes

    def compare_message(
        self, path: str, old: ProtoMessage, new: ProtoMessage
    ) -> list[ImpactedChangeRecord]:
        """Compare two versions of the same message."""
        changes: list[ImpactedChangeRecord] = []

        if not old.deprecated and new.deprecated:
            changes.append(make_impacted(
                ChangeType.DEPRECATED, ChangeCategory.MESSAGE, Severity.WARNING,
                path, f"Message '{path}' deprecated", IMPACT_MESSAGE_DEPRECATED,
                False, True,
                migration_suggestion=f"Plan to stop using '{path}'",
            ))

        for number in sorted(new.reserved_numbers - old.reserved_numbers):
            changes.append(make_impacted(
                ChangeType.ADDED, ChangeCategory.FIELD_NUMBER, Severity.INFO,
                f"{path}.reserved", f"Field number {number} reserved",
                IMPACT_RESERVED_ADDED, new_value=number,
            ))
        for name in sorted(new.reserved_names - old.reserved_names):
            changes.append(make_impacted(
                ChangeType.ADDED, ChangeCategory.FIELD, Severity.INFO,
                f"{path}.reserved", f"Field name '{name}' reserved",
                IMPACT_RESERVED_ADDED, new_value=name,
            ))

        changes.extend(self.compare_fields(
            path, old.fields, new.fields, reserved=old.reserved_numbers
        ))
        changes.extend(self.compare_messages(
            old.nested_messages, new.nested_messages, path
        ))
        changes.extend(self.compare_enums(old.nested_enums, new.nested_enums, path))
        return changes

    # ------------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------------

    def compare_fields(
        self,
        message_path: str,
        old: Sequence[ProtoField],
        new: Sequence[ProtoField],
        reserved: frozenset[int] = frozenset(),
    ) -> list[ImpactedChangeRecord]:
        """Compare the fields of one message.

        Args:
            message_path: Fully qualified message name.
            old: Fields of the old message.
            new: Fields of the new message.
            reserved: Numbers the old message reserved; an added field
                using one is a number reuse.
        """
        changes: list[ImpactedChangeRecord] = []
        match = match_list(old, new, key=lambda f: f.name)
        new_by_name = {f.name: f for f in new}
        freed = _freed_numbers(old, new_by_name)

        reuses: list[ImpactedChangeRecord] = []
        reused_numbers: set[int] = set()
        for name, field in match.added:
            if field.number in freed or field.number in reserved:
                previous = freed.get(field.number, "reserved")
                logger.debug(
                    "Field number %d reused in %s: %s -> %s",
                    field.number, message_path, previous, field.name,
                )
                reused_numbers.add(field.number)
                reuses.append(self._number_reuse(message_path, field, previous))

        for name, field in match.removed:
            if field.number in reused_numbers:
                continue
            changes.append(self._field_removed(message_path, field))
        for name, field in match.added:
            if field.number in reused_numbers:
                continue
            changes.append(self._field_added(message_path, field))
        changes.extend(reuses)
        for name, old_field, new_field in match.matched:
            changes.extend(self._compare_field(
                qualify(message_path, name), old_field, new_field
            ))
        return changes

    # -- internal: field records -------------------------------------------

    @staticmethod
    def _field_removed(message_path: str, field: ProtoField) -> ImpactedChangeRecord:
        required = field.rule == FieldRule.REQUIRED
        return make_impacted(
            ChangeType.REMOVED,
            ChangeCategory.FIELD,
            Severity.BREAKING if required else Severity.DANGEROUS,
            qualify(message_path, field.name),
            f"Field '{field.name}' (number {field.number}) removed",
            IMPACT_REQUIRED_FIELD_REMOVED if required else IMPACT_FIELD_REMOVED,
            old_value=field.name,
            migration_suggestion=(
                f"Reserve number {field.number} and name '{field.name}' "
                "so they are never reused"
            ),
        )

    @staticmethod
    def _field_added(message_path: str, field: ProtoField) -> ImpactedChangeRecord:
        required = field.rule == FieldRule.REQUIRED
        return make_impacted(
            ChangeType.ADDED,
            ChangeCategory.FIELD,
            Severity.BREAKING if required else Severity.INFO,
            qualify(message_path, field.name),
            f"Field '{field.name}' (number {field.number}) added",
            IMPACT_REQUIRED_FIELD_ADDED if required else IMPACT_FIELD_ADDED,
            new_value=field.name,
            migration_suggestion=(
                "Old senders never set a new required field; make it optional"
                if required else None
            ),
        )

    @staticmethod
    def _number_reuse(
        message_path: str, field: ProtoField, previous: str
    ) -> ImpactedChangeRecord:
        return make_impacted(
            ChangeType.MODIFIED,
            ChangeCategory.FIELD_NUMBER,
            Severity.BREAKING,
            f"{message_path}.field_number_{field.number}",
            f"Field number {field.number} reused: was '{previous}', "
            f"now '{field.name}'",
            IMPACT_NUMBER_CHANGE,
            old_value=previous,
            new_value=field.name,
            migration_suggestion=(
                f"Give '{field.name}' an unused number and reserve "
                f"{field.number}"
            ),
        )

    def _compare_field(
        self, path: str, old: ProtoField, new: ProtoField
    ) -> list[ImpactedChangeRecord]:
        changes: list[ImpactedChangeRecord] = []

        if old.number != new.number:
            changes.append(make_impacted(
                ChangeType.MODIFIED, ChangeCategory.FIELD_NUMBER, Severity.BREAKING,
                path, f"Field number changed from {old.number} to {new.number}",
                IMPACT_NUMBER_CHANGE, old.number, new.number,
                migration_suggestion=(
                    f"Restore number {old.number}; field numbers identify "
                    "fields on the wire"
                ),
            ))

        if old.type_name != new.type_name:
            compatible = is_wire_compatible(old.type_name, new.type_name)
            changes.append(make_impacted(
                ChangeType.MODIFIED,
                ChangeCategory.FIELD,
                Severity.DANGEROUS if compatible else Severity.BREAKING,
                path,
                f"Field type changed from {old.type_name} to {new.type_name}",
                IMPACT_TYPE_WIRE_COMPATIBLE if compatible else IMPACT_TYPE_INCOMPATIBLE,
                old.type_name,
                new.type_name,
                migration_suggestion=(
                    "Wire-compatible, but values may be truncated or "
                    "reinterpreted" if compatible else
                    "Add a new field with the new type and deprecate this one"
                ),
            ))

        if old.rule != new.rule:
            severity, impact, suggestion = _rule_change(old.rule, new.rule)
            changes.append(make_impacted(
                ChangeType.MODIFIED, ChangeCategory.FIELD, severity, path,
                f"Field rule changed from {old.rule.value} to {new.rule.value}",
                impact, old.rule.value, new.rule.value,
                migration_suggestion=suggestion,
            ))

        if old.oneof_name != new.oneof_name:
            changes.append(make_impacted(
                ChangeType.MODIFIED, ChangeCategory.FIELD, Severity.DANGEROUS, path,
                f"Field oneof membership changed from '{old.oneof_name}' "
                f"to '{new.oneof_name}'",
                IMPACT_ONEOF_CHANGED, old.oneof_name, new.oneof_name,
                migration_suggestion="Setting another oneof member may now clear this field",
            ))

        if old.default_value != new.default_value:
            changes.append(make_impacted(
                ChangeType.MODIFIED, ChangeCategory.FIELD, Severity.DANGEROUS, path,
                f"Default value of '{old.name}' changed",
                IMPACT_DEFAULT_CHANGED, old.default_value, new.default_value,
                migration_suggestion="Readers relying on the old default see a different value",
            ))

        if not old.deprecated and new.deprecated:
            changes.append(make_impacted(
                ChangeType.DEPRECATED, ChangeCategory.FIELD, Severity.WARNING, path,
                f"Field '{old.name}' deprecated", IMPACT_FIELD_DEPRECATED,
                False, True,
                migration_suggestion=f"Stop reading and writing '{old.name}'",
            ))
        return changes

    # ------------------------------------------------------------------
    # Enums
    # ------------------------------------------------------------------

    def compare_enums(
        self,
        old: Optional[Sequence[ProtoEnum]],
        new: Optional[Sequence[ProtoEnum]],
        parent_path: str = "",
        added_parent_path: Optional[str] = None,
    ) -> list[ImpactedChangeRecord]:
        if added_parent_path is None:
            added_parent_path = parent_path
        changes: list[ImpactedChangeRecord] = []
        match = match_list(old, new, key=lambda e: e.name)

        for name, enum in match.removed:
            path = qualify(parent_path, name)
            changes.append(make_impacted(
                ChangeType.REMOVED, ChangeCategory.ENUM, Severity.BREAKING,
                path, f"Enum '{path}' removed", IMPACT_ENUM_REMOVED,
                old_value=path,
                migration_suggestion=f"Replace uses of '{path}' before removing it",
            ))
        for name, enum in match.added:
            path = qualify(added_parent_path, name)
            changes.append(make_impacted(
                ChangeType.ADDED, ChangeCategory.ENUM, Severity.INFO,
                path, f"Enum '{path}' added with {len(enum.values)} value(s)",
                IMPACT_ENUM_ADDED, new_value=path,
            ))
        for name, old_enum, new_enum in match.matched:
            changes.extend(self.compare_enum(
                qualify(parent_path, name), old_enum, new_enum
            ))
        return changes

    def compare_enum(
        self, path: str, old: ProtoEnum, new: ProtoEnum
    ) -> list[ImpactedChangeRecord]:
        """Compare two versions of the same enum."""
        changes: list[ImpactedChangeRecord] = []

        if not old.deprecated and new.deprecated:
            changes.append(make_impacted(
                ChangeType.DEPRECATED, ChangeCategory.ENUM, Severity.WARNING,
                path, f"Enum '{path}' deprecated", IMPACT_ENUM_DEPRECATED,
                False, True,
            ))

        match = match_list(old.values, new.values, key=lambda v: v.name)
        new_by_name = {v.name: v for v in new.values}
        freed = _freed_numbers(old.values, new_by_name)

        reuses: list[ImpactedChangeRecord] = []
        reused_numbers: set[int] = set()
        for name, value in match.added:
            if value.number in freed:
                reused_numbers.add(value.number)
                reuses.append(make_impacted(
                    ChangeType.MODIFIED, ChangeCategory.ENUM_VALUE, Severity.BREAKING,
                    f"{path}.value_{value.number}",
                    f"Enum value number {value.number} reused: was "
                    f"'{freed[value.number]}', now '{value.name}'",
                    IMPACT_NUMBER_CHANGE, freed[value.number], value.name,
                    migration_suggestion=(
                        f"Give '{value.name}' an unused number and reserve "
                        f"{value.number}"
                    ),
                ))

        for name, value in match.removed:
            if value.number in reused_numbers:
                continue
            changes.append(make_impacted(
                ChangeType.REMOVED, ChangeCategory.ENUM_VALUE, Severity.BREAKING,
                qualify(path, name),
                f"Enum value '{name}' (= {value.number}) removed",
                IMPACT_ENUM_VALUE_REMOVED, old_value=name,
                migration_suggestion=(
                    f"Reserve {value.number} and handle it as unknown in readers"
                ),
            ))
        for name, value in match.added:
            if value.number in reused_numbers:
                continue
            changes.append(make_impacted(
                ChangeType.ADDED, ChangeCategory.ENUM_VALUE, Severity.INFO,
                qualify(path, name),
                f"Enum value '{name}' (= {value.number}) added",
                IMPACT_ENUM_VALUE_ADDED, new_value=name,
            ))
        changes.extend(reuses)

        for name, old_value, new_value in match.matched:
            value_path = qualify(path, name)
            if old_value.number != new_value.number:
                changes.append(make_impacted(
                    ChangeType.MODIFIED, ChangeCategory.ENUM_VALUE, Severity.BREAKING,
                    value_path,
                    f"Enum value '{name}' number changed from "
                    f"{old_value.number} to {new_value.number}",
                    IMPACT_NUMBER_CHANGE, old_value.number, new_value.number,
                    migration_suggestion=f"Restore number {old_value.number}",
                ))
            if not old_value.deprecated and new_value.deprecated:
                changes.append(make_impacted(
                    ChangeType.DEPRECATED, ChangeCategory.ENUM_VALUE, Severity.WARNING,
                    value_path, f"Enum value '{name}' deprecated",
                    IMPACT_ENUM_VALUE_DEPRECATED, False, True,
                ))
        return changes
