"""
Change record models.

A ``ChangeRecord`` is one detected delta between two API versions.  Records
that carry a consumer-impact estimate are ``ImpactedChangeRecord``; those of
BREAKING severity become ``BreakingChangeRecord`` when a changelog is
assembled.

All records are frozen once constructed.

Usage::

    from apidelta.models.changes import make_change
    from apidelta.types import ChangeCategory, ChangeType, Severity

    change = make_change(
        ChangeType.REMOVED,
        ChangeCategory.FIELD,
        Severity.BREAKING,
        "schema:User.id",
        "Required property 'id' removed",
    )
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Annotated, Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, field_validator

from apidelta.types import ChangeCategory, ChangeType, Severity


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChangeRecord(BaseModel):
    """A single classified delta."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(default_factory=_new_id)
    change_type: ChangeType
    category: ChangeCategory
    severity: Severity
    path: str = Field(..., min_length=1, description="Dot/slash address of the changed element")
    description: str = ""
    old_value: Optional[Any] = None
    new_value: Optional[Any] = None
    detected_at: datetime = Field(default_factory=_utcnow)


class ImpactedChangeRecord(ChangeRecord):
    """Change record carrying an estimate of consumer impact."""

    migration_suggestion: Optional[str] = None
    affected_consumers: list[str] = Field(default_factory=list)
    impact_score: int = Field(0, description="Impact estimate, clamped to 0..100")

    @field_validator("impact_score", mode="before")
    @classmethod
    def _clamp_impact(cls, v: Any) -> int:
        return max(0, min(100, int(v)))


class BreakingChangeRecord(ImpactedChangeRecord):
    """Impacted change whose severity is BREAKING by construction."""

    severity: Severity = Severity.BREAKING

    @field_validator("severity")
    @classmethod
    def _require_breaking(cls, v: Severity) -> Severity:
        if v != Severity.BREAKING:
            raise ValueError(
                f"BreakingChangeRecord requires BREAKING severity, got {v.value}"
            )
        return v


def _record_kind(value: Any) -> str:
    """Pick the record class for a change, from a model or from dumped data."""
    if isinstance(value, BreakingChangeRecord):
        return "breaking"
    if isinstance(value, ImpactedChangeRecord):
        return "impacted"
    if isinstance(value, BaseModel):
        return "change"
    if isinstance(value, dict) and "impact_score" in value:
        return "breaking" if value.get("severity") == Severity.BREAKING else "impacted"
    return "change"


# Any record kind; keeps subclass fields through a JSON dump and reload
AnyChangeRecord = Annotated[
    Union[
        Annotated[BreakingChangeRecord, Tag("breaking")],
        Annotated[ImpactedChangeRecord, Tag("impacted")],
        Annotated[ChangeRecord, Tag("change")],
    ],
    Discriminator(_record_kind),
]


def make_change(
    change_type: ChangeType,
    category: ChangeCategory,
    severity: Severity,
    path: str,
    description: str,
    old_value: Any = None,
    new_value: Any = None,
) -> ChangeRecord:
    """Build a plain ``ChangeRecord`` from positional parts."""
    return ChangeRecord(
        change_type=change_type,
        category=category,
        severity=severity,
        path=path,
        description=description,
        old_value=old_value,
        new_value=new_value,
    )


def make_impacted(
    change_type: ChangeType,
    category: ChangeCategory,
    severity: Severity,
    path: str,
    description: str,
    impact_score: int,
    old_value: Any = None,
    new_value: Any = None,
    migration_suggestion: Optional[str] = None,
) -> ImpactedChangeRecord:
    """Build a scored record; BREAKING severity yields a ``BreakingChangeRecord``."""
    cls = BreakingChangeRecord if severity == Severity.BREAKING else ImpactedChangeRecord
    return cls(
        change_type=change_type,
        category=category,
        severity=severity,
        path=path,
        description=description,
        old_value=old_value,
        new_value=new_value,
        impact_score=impact_score,
        migration_suggestion=migration_suggestion,
    )
