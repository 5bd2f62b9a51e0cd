"""
Changelog and risk assessment models.

A ``Changelog`` is the frozen result of one ``ChangelogAssembler.generate``
call.  ``model_dump(mode="json")`` yields a plain mapping for renderers and
notifiers; ``Changelog.model_validate_json`` restores every record as the
class it was dumped from.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator

from apidelta.models.changes import AnyChangeRecord, BreakingChangeRecord, ChangeRecord
from apidelta.types import (
    ApiFormat,
    ChangeCategory,
    RiskLevel,
    SemverBump,
    Severity,
)


class RiskAssessment(BaseModel):
    """Aggregate verdict over a change set."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    overall_score: int = Field(..., ge=0, le=100)
    level: RiskLevel
    breaking_changes_count: int = Field(0, ge=0)
    total_changes_count: int = Field(0, ge=0)
    changes_by_severity: dict[Severity, int] = Field(
        default_factory=dict, validate_default=True
    )
    recommendation: str = ""
    semver_recommendation: SemverBump

    @field_validator("changes_by_severity")
    @classmethod
    def _fill_severity_buckets(cls, v: dict[Severity, int]) -> dict[Severity, int]:
        """Every severity bucket is present, zero when empty."""
        return {severity: v.get(severity, 0) for severity in Severity}


class Changelog(BaseModel):
    """Structured changelog between two versions of one API."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    api_name: str = Field(..., min_length=1)
    api_format: ApiFormat
    from_version: str
    to_version: str
    changes: list[AnyChangeRecord] = Field(default_factory=list)
    breaking_changes: list[BreakingChangeRecord] = Field(default_factory=list)
    risk_assessment: RiskAssessment
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def has_breaking_changes(self) -> bool:
        return bool(self.breaking_changes)

    @property
    def changes_by_category(self) -> dict[ChangeCategory, list[ChangeRecord]]:
        grouped: dict[ChangeCategory, list[ChangeRecord]] = defaultdict(list)
        for change in self.changes:
            grouped[change.category].append(change)
        return dict(grouped)
