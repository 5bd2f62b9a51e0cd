"""
Promotion of BREAKING change records.

Records already scored by a format engine (``ImpactedChangeRecord``) keep
their impact score, suggestion and consumers.  Plain records are scored from
their change type and category and given a generic migration suggestion.
"""

from __future__ import annotations

from typing import Iterable

from apidelta.models.changes import (
    BreakingChangeRecord,
    ChangeRecord,
    ImpactedChangeRecord,
)
from apidelta.types import ChangeCategory, ChangeType, Severity

_BASE_SCORE: dict[ChangeType, int] = {
    ChangeType.REMOVED: 80,
    ChangeType.ADDED: 70,
    ChangeType.MODIFIED: 85,
    ChangeType.DEPRECATED: 50,
}
_REMOVED_ENDPOINT_SCORE = 100

# Percent of the base score that reaches consumers, by category
_CATEGORY_WEIGHT: dict[ChangeCategory, int] = {
    ChangeCategory.ENDPOINT: 100,
    ChangeCategory.SECURITY: 95,
    ChangeCategory.REQUEST_BODY: 90,
    ChangeCategory.PARAMETER: 80,
    ChangeCategory.SCHEMA: 75,
    ChangeCategory.RESPONSE: 70,
}

_REMOVAL_SUGGESTIONS: dict[ChangeCategory, str] = {
    ChangeCategory.ENDPOINT: "Move consumers of the removed endpoint to an alternative before upgrading.",
    ChangeCategory.PARAMETER: "Stop sending the '{name}' parameter.",
    ChangeCategory.RESPONSE: "Update response handling for the removed response.",
    ChangeCategory.REQUEST_BODY: "Stop sending a request body to this endpoint.",
    ChangeCategory.CHANNEL: "Move producers and consumers off the removed channel.",
    ChangeCategory.MESSAGE: "Stop producing and consuming the removed message.",
    ChangeCategory.SERVER: "Point clients at a remaining server.",
}

_ADDITION_SUGGESTIONS: dict[ChangeCategory, str] = {
    ChangeCategory.PARAMETER: "Send the new required parameter '{name}' on every call.",
    ChangeCategory.REQUEST_BODY: "Send the now-required request body on every call.",
    ChangeCategory.FIELD: "Populate the new required field '{name}'.",
}

_MODIFICATION_SUGGESTIONS: dict[ChangeCategory, str] = {
    ChangeCategory.ENDPOINT: "Update the endpoint method or path in every consumer.",
    ChangeCategory.PARAMETER: "Update parameter handling for '{name}'.",
    ChangeCategory.RESPONSE: "Update response parsing for the modified structure.",
    ChangeCategory.SCHEMA: "Update data handling for '{name}' ({old} -> {new}).",
    ChangeCategory.FIELD: "Update data handling for '{name}'.",
    ChangeCategory.PROTOCOL: "Reconfigure clients for the new protocol.",
    ChangeCategory.OPERATION: "Update clients bound to this operation.",
}

_DEFAULT_SUGGESTION = "Review the change and update client code accordingly."


def _element_name(path: str) -> str:
    """Last addressable segment of *path* (``a.parameter:limit`` -> ``limit``)."""
    tail = path.rsplit(".", 1)[-1]
    return tail.split(":", 1)[-1]


def impact_score(change: ChangeRecord) -> int:
    """Estimate consumer impact (0..100) of a plain change record."""
    if change.change_type == ChangeType.REMOVED and change.category == ChangeCategory.ENDPOINT:
        base = _REMOVED_ENDPOINT_SCORE
    else:
        base = _BASE_SCORE.get(change.change_type, 50)
    return base * _CATEGORY_WEIGHT.get(change.category, 100) // 100


def migration_suggestion(change: ChangeRecord) -> str:
    if change.change_type == ChangeType.REMOVED:
        template = _REMOVAL_SUGGESTIONS.get(change.category)
    elif change.change_type == ChangeType.ADDED:
        template = _ADDITION_SUGGESTIONS.get(change.category)
    else:
        template = _MODIFICATION_SUGGESTIONS.get(change.category)
    if template is None:
        return _DEFAULT_SUGGESTION
    return template.format(
        name=_element_name(change.path),
        old=change.old_value,
        new=change.new_value,
    )


def promote(change: ChangeRecord) -> BreakingChangeRecord:
    """Turn a BREAKING record into a ``BreakingChangeRecord``.

    Raises:
        ValueError: If *change* is not BREAKING.
    """
    if change.severity != Severity.BREAKING:
        raise ValueError(f"Cannot promote {change.severity.value} change at {change.path}")
    if isinstance(change, BreakingChangeRecord) and change.migration_suggestion:
        return change

    data = change.model_dump()
    if isinstance(change, ImpactedChangeRecord):
        if not data.get("migration_suggestion"):
            data["migration_suggestion"] = migration_suggestion(change)
        return BreakingChangeRecord(**data)

    return BreakingChangeRecord(
        **data,
        impact_score=impact_score(change),
        migration_suggestion=migration_suggestion(change),
    )


def detect_breaking(changes: Iterable[ChangeRecord]) -> list[BreakingChangeRecord]:
    """BREAKING subset of *changes*, promoted, in input order."""
    return [promote(c) for c in changes if c.severity == Severity.BREAKING]
