"""
Risk aggregation over a change set.

``RiskAggregator`` reduces a list of change records to a single
``RiskAssessment``: a bounded score, a risk band, a human recommendation and
a semantic-version bump.  The weights and band thresholds live in a
``RiskPolicy`` so they can be tuned without touching the aggregation;
validation keeps every policy monotonic (a BREAKING change always weighs
more than a DANGEROUS one, which weighs more than a WARNING).

Usage::

    from apidelta.risk import RiskAggregator, RiskPolicy

    assessment = RiskAggregator(RiskPolicy(breaking_weight=30)).aggregate(changes)
    print(assessment.level, assessment.semver_recommendation)
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, model_validator

from apidelta.models.changelog import RiskAssessment
from apidelta.models.changes import ChangeRecord
from apidelta.types import (
    ChangeCategory,
    ChangeType,
    RiskLevel,
    SemverBump,
    Severity,
    is_at_least,
    is_at_most,
    severities_descending,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


class RiskPolicy(BaseModel):
    """Severity weights and band thresholds used to score a change set."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    breaking_weight: int = Field(25, ge=0)
    dangerous_weight: int = Field(10, ge=0)
    warning_weight: int = Field(3, ge=0)
    critical_threshold: int = Field(75, ge=1, le=100)
    high_threshold: int = Field(40, ge=1, le=100)
    moderate_threshold: int = Field(15, ge=1, le=100)

    @model_validator(mode="after")
    def _check_monotonic(self) -> "RiskPolicy":
        if not self.breaking_weight > self.dangerous_weight > self.warning_weight:
            raise ValueError(
                "Weights must satisfy breaking > dangerous > warning >= 0"
            )
        if not self.critical_threshold > self.high_threshold > self.moderate_threshold:
            raise ValueError(
                "Thresholds must satisfy critical > high > moderate"
            )
        return self

    def weight(self, severity: Severity) -> int:
        if severity == Severity.BREAKING:
            return self.breaking_weight
        if severity == Severity.DANGEROUS:
            return self.dangerous_weight
        if severity == Severity.WARNING:
            return self.warning_weight
        return 0

    def level_for(self, score: int) -> RiskLevel:
        if score >= self.critical_threshold:
            return RiskLevel.CRITICAL
        if score >= self.high_threshold:
            return RiskLevel.HIGH
        if score >= self.moderate_threshold:
            return RiskLevel.MODERATE
        return RiskLevel.LOW


DEFAULT_POLICY = RiskPolicy()

_LEVEL_SUMMARY: dict[RiskLevel, str] = {
    RiskLevel.CRITICAL: "Critical changes detected: {breaking} breaking change(s) out of {total} total.",
    RiskLevel.HIGH: "Significant changes detected.",
    RiskLevel.MODERATE: "Moderate changes detected.",
    RiskLevel.LOW: "Low-risk changes detected.",
}


# ---------------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------------


class RiskAggregator:
    """Turns a change set into a ``RiskAssessment``."""

    def __init__(self, policy: Optional[RiskPolicy] = None) -> None:
        self._policy = policy or DEFAULT_POLICY

    @property
    def policy(self) -> RiskPolicy:
        return self._policy

    def aggregate(self, changes: Sequence[ChangeRecord]) -> RiskAssessment:
        """Score *changes* and recommend a version bump."""
        by_severity = count_by_severity(changes)
        score = self.score(by_severity)
        level = self._policy.level_for(score)
        semver = recommend_semver(changes)
        breaking = by_severity[Severity.BREAKING]

        if breaking:
            logger.warning(
                "Risk assessment: %d breaking change(s), score=%d level=%s",
                breaking, score, level.value,
            )
        else:
            logger.debug("Risk assessment: score=%d level=%s", score, level.value)

        return RiskAssessment(
            overall_score=score,
            level=level,
            breaking_changes_count=breaking,
            total_changes_count=len(changes),
            changes_by_severity=by_severity,
            recommendation=self._recommendation(level, changes, by_severity, semver),
            semver_recommendation=semver,
        )

    def score(self, by_severity: dict[Severity, int]) -> int:
        raw = sum(self._policy.weight(s) * n for s, n in by_severity.items())
        return min(100, raw)

    # -- internal: recommendation ---------------------------------------------

    @staticmethod
    def _recommendation(
        level: RiskLevel,
        changes: Sequence[ChangeRecord],
        by_severity: dict[Severity, int],
        semver: SemverBump,
    ) -> str:
        if not changes:
            return "No changes detected. No version bump required."
        breaking = by_severity[Severity.BREAKING]
        parts = [_LEVEL_SUMMARY[level].format(breaking=breaking, total=len(changes))]
        if breaking:
            categories = Counter(
                c.category for c in changes if c.severity == Severity.BREAKING
            )
            top, _ = max(categories.items(), key=lambda kv: (kv[1], kv[0].value))
            parts.append(f"Most breaking changes affect {top.value}.")
        parts.append(f"Recommended version bump: {semver.value}.")
        return " ".join(parts)


def recommend_semver(changes: Iterable[ChangeRecord]) -> SemverBump:
    """MAJOR on any BREAKING record, MINOR on any addition, else PATCH."""
    has_added = False
    for change in changes:
        if change.severity == Severity.BREAKING:
            return SemverBump.MAJOR
        if change.change_type == ChangeType.ADDED:
            has_added = True
    return SemverBump.MINOR if has_added else SemverBump.PATCH


# ---------------------------------------------------------------------------
# Grouping and filtering
# ---------------------------------------------------------------------------


def count_by_severity(changes: Iterable[ChangeRecord]) -> dict[Severity, int]:
    """Counts per severity; every bucket is present."""
    counts = {severity: 0 for severity in severities_descending()}
    for change in changes:
        counts[change.severity] += 1
    return counts


def group_by_severity(
    changes: Iterable[ChangeRecord],
) -> dict[Severity, list[ChangeRecord]]:
    grouped: dict[Severity, list[ChangeRecord]] = {
        severity: [] for severity in severities_descending()
    }
    for change in changes:
        grouped[change.severity].append(change)
    return grouped


def group_by_category(
    changes: Iterable[ChangeRecord],
) -> dict[ChangeCategory, list[ChangeRecord]]:
    grouped: dict[ChangeCategory, list[ChangeRecord]] = {}
    for change in changes:
        grouped.setdefault(change.category, []).append(change)
    return grouped


def group_by_change_type(
    changes: Iterable[ChangeRecord],
) -> dict[ChangeType, list[ChangeRecord]]:
    grouped: dict[ChangeType, list[ChangeRecord]] = {}
    for change in changes:
        grouped.setdefault(change.change_type, []).append(change)
    return grouped


def filter_by_min_severity(
    changes: Iterable[ChangeRecord], threshold: Severity
) -> list[ChangeRecord]:
    return [c for c in changes if is_at_least(c.severity, threshold)]


def filter_by_max_severity(
    changes: Iterable[ChangeRecord], threshold: Severity
) -> list[ChangeRecord]:
    return [c for c in changes if is_at_most(c.severity, threshold)]


def filter_by_categories(
    changes: Iterable[ChangeRecord], categories: Iterable[ChangeCategory]
) -> list[ChangeRecord]:
    wanted = set(categories)
    return [c for c in changes if c.category in wanted]


class ChangeStatistics(BaseModel):
    """Summary counts over a change set."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    total: int = 0
    by_severity: dict[Severity, int] = Field(default_factory=dict)
    by_category: dict[ChangeCategory, int] = Field(default_factory=dict)
    by_change_type: dict[ChangeType, int] = Field(default_factory=dict)
    average_impact: float = 0.0
    max_impact: int = 0


def change_statistics(changes: Sequence[ChangeRecord]) -> ChangeStatistics:
    """Counts and impact figures; impact covers scored records only."""
    impacts = [
        c.impact_score for c in changes if getattr(c, "impact_score", None) is not None
    ]
    return ChangeStatistics(
        total=len(changes),
        by_severity=count_by_severity(changes),
        by_category=dict(Counter(c.category for c in changes)),
        by_change_type=dict(Counter(c.change_type for c in changes)),
        average_impact=sum(impacts) / len(impacts) if impacts else 0.0,
        max_impact=max(impacts, default=0),
    )
