"""
Generic structural diff over schema trees.

``SchemaDiffEngine`` compares two schema nodes that satisfy the
``StructuralNode`` protocol (``CanonicalSchemaNode`` does, and so can any
format-specific adapter) and emits one ``ChangeRecord`` per independent
delta.  The engine is pure and total: ``None`` on either side degrades to a
whole-schema addition or removal.

Rules are evaluated in a fixed order:

1. presence (added / removed, removal stops recursion)
2. ``type`` (``integer`` -> ``number`` is a widening, anything else breaks)
3. ``format``
4. ``ref``
5. deprecation
6. properties, their required-ness, and recursion into common properties
7. enum values
8. array ``items``
9. composite branches (``allOf`` / ``oneOf`` / ``anyOf``)

Usage::

    from apidelta.engines.schema_diff import SchemaDiffEngine

    changes = SchemaDiffEngine().compare("schema:User", old_user, new_user)
"""

from __future__ import annotations

from typing import AbstractSet, Mapping, Optional, Protocol, Sequence

from apidelta.models.changes import ChangeRecord, make_change
from apidelta.types import ChangeCategory, ChangeType, Severity

# (old type, new type) pairs that only widen the accepted value space
_WIDENING_TYPE_CHANGES: frozenset[tuple[str, str]] = frozenset({
    ("integer", "number"),
})

_COMPOSITE_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("all_of", "allOf"),
    ("one_of", "oneOf"),
    ("any_of", "anyOf"),
)


class StructuralNode(Protocol):
    """Read-only view of a schema node the engine can diff."""

    @property
    def type(self) -> Optional[str]: ...

    @property
    def format(self) -> Optional[str]: ...

    @property
    def ref(self) -> Optional[str]: ...

    @property
    def deprecated(self) -> bool: ...

    @property
    def required_fields(self) -> AbstractSet[str]: ...

    @property
    def properties(self) -> Mapping[str, "StructuralNode"]: ...

    @property
    def items(self) -> Optional["StructuralNode"]: ...

    @property
    def enum_values(self) -> Sequence[str]: ...


class SchemaDiffEngine:
    """Compares two schema trees node by node."""

    def compare(
        self,
        path: str,
        old: Optional[StructuralNode],
        new: Optional[StructuralNode],
    ) -> list[ChangeRecord]:
        """Return every change between *old* and *new* rooted at *path*."""
        if old is None and new is None:
            return []
        if old is None:
            return [make_change(
                ChangeType.ADDED, ChangeCategory.SCHEMA, Severity.INFO,
                path, "Schema added",
            )]
        if new is None:
            return [make_change(
                ChangeType.REMOVED, ChangeCategory.SCHEMA, Severity.BREAKING,
                path, "Schema removed",
            )]

        changes: list[ChangeRecord] = []
        changes.extend(self._compare_type(path, old, new))
        changes.extend(self._compare_format(path, old, new))
        changes.extend(self._compare_ref(path, old, new))
        changes.extend(self._compare_deprecation(path, old, new))
        changes.extend(self._compare_properties(path, old, new))
        changes.extend(self._compare_enum(path, old, new))
        if old.items is not None or new.items is not None:
            changes.extend(self.compare(f"{path}.items", old.items, new.items))
        changes.extend(self._compare_composites(path, old, new))
        return changes

    # -- internal: scalar attributes ----------------------------------------

    @staticmethod
    def _compare_type(
        path: str, old: StructuralNode, new: StructuralNode
    ) -> list[ChangeRecord]:
        if old.type == new.type:
            return []
        if (old.type, new.type) in _WIDENING_TYPE_CHANGES:
            severity = Severity.WARNING
            description = f"Type widened from '{old.type}' to '{new.type}'"
        else:
            severity = Severity.BREAKING
            description = f"Type changed from '{old.type}' to '{new.type}'"
        return [make_change(
            ChangeType.MODIFIED, ChangeCategory.SCHEMA, severity,
            path, description, old.type, new.type,
        )]

    @staticmethod
    def _compare_format(
        path: str, old: StructuralNode, new: StructuralNode
    ) -> list[ChangeRecord]:
        if old.format == new.format:
            return []
        return [make_change(
            ChangeType.MODIFIED, ChangeCategory.SCHEMA, Severity.WARNING,
            path, f"Format changed from '{old.format}' to '{new.format}'",
            old.format, new.format,
        )]

    @staticmethod
    def _compare_ref(
        path: str, old: StructuralNode, new: StructuralNode
    ) -> list[ChangeRecord]:
        if old.ref == new.ref:
            return []
        return [make_change(
            ChangeType.MODIFIED, ChangeCategory.SCHEMA, Severity.DANGEROUS,
            path, f"Reference changed from '{old.ref}' to '{new.ref}'",
            old.ref, new.ref,
        )]

    @staticmethod
    def _compare_deprecation(
        path: str, old: StructuralNode, new: StructuralNode
    ) -> list[ChangeRecord]:
        if old.deprecated or not new.deprecated:
            return []
        return [make_change(
            ChangeType.DEPRECATED, ChangeCategory.SCHEMA, Severity.WARNING,
            path, "Schema deprecated", False, True,
        )]

    # -- internal: properties -----------------------------------------------

    def _compare_properties(
        self, path: str, old: StructuralNode, new: StructuralNode
    ) -> list[ChangeRecord]:
        changes: list[ChangeRecord] = []
        old_props = old.properties or {}
        new_props = new.properties or {}
        old_required = set(old.required_fields or ())
        new_required = set(new.required_fields or ())

        for name in sorted(set(old_props) - set(new_props)):
            required = name in old_required
            changes.append(make_change(
                ChangeType.REMOVED,
                ChangeCategory.FIELD,
                Severity.BREAKING if required else Severity.DANGEROUS,
                f"{path}.{name}",
                f"{'Required' if required else 'Optional'} property '{name}' removed",
                old_value=name,
            ))

        for name in sorted(set(new_props) - set(old_props)):
            required = name in new_required
            changes.append(make_change(
                ChangeType.ADDED,
                ChangeCategory.FIELD,
                Severity.BREAKING if required else Severity.INFO,
                f"{path}.{name}",
                f"{'Required' if required else 'Optional'} property '{name}' added",
                new_value=name,
            ))

        for name in sorted(set(old_props) & set(new_props)):
            prop_path = f"{path}.{name}"
            was_required = name in old_required
            is_required = name in new_required
            if not was_required and is_required:
                changes.append(make_change(
                    ChangeType.MODIFIED, ChangeCategory.FIELD, Severity.BREAKING,
                    prop_path, f"Property '{name}' became required", False, True,
                ))
            elif was_required and not is_required:
                changes.append(make_change(
                    ChangeType.MODIFIED, ChangeCategory.FIELD, Severity.INFO,
                    prop_path, f"Property '{name}' became optional", True, False,
                ))
            changes.extend(self.compare(prop_path, old_props[name], new_props[name]))

        return changes

    # -- internal: enums and composites -------------------------------------

    @staticmethod
    def _compare_enum(
        path: str, old: StructuralNode, new: StructuralNode
    ) -> list[ChangeRecord]:
        changes: list[ChangeRecord] = []
        old_values = set(old.enum_values or ())
        new_values = set(new.enum_values or ())
        for value in sorted(old_values - new_values):
            changes.append(make_change(
                ChangeType.REMOVED, ChangeCategory.ENUM_VALUE, Severity.BREAKING,
                path, f"Enum value '{value}' removed", old_value=value,
            ))
        for value in sorted(new_values - old_values):
            changes.append(make_change(
                ChangeType.ADDED, ChangeCategory.ENUM_VALUE, Severity.INFO,
                path, f"Enum value '{value}' added", new_value=value,
            ))
        return changes

    def _compare_composites(
        self, path: str, old: StructuralNode, new: StructuralNode
    ) -> list[ChangeRecord]:
        changes: list[ChangeRecord] = []
        for attr, keyword in _COMPOSITE_KEYWORDS:
            old_branches = list(getattr(old, attr, None) or ())
            new_branches = list(getattr(new, attr, None) or ())
            for index in range(max(len(old_branches), len(new_branches))):
                changes.extend(self.compare(
                    f"{path}.{keyword}[{index}]",
                    old_branches[index] if index < len(old_branches) else None,
                    new_branches[index] if index < len(new_branches) else None,
                ))
        return changes
