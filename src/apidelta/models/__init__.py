"""Change, risk and changelog models."""

from apidelta.models.changelog import Changelog, RiskAssessment
from apidelta.models.changes import (
    AnyChangeRecord,
    BreakingChangeRecord,
    ChangeRecord,
    ImpactedChangeRecord,
    make_change,
    make_impacted,
)

__all__ = [
    "AnyChangeRecord",
    "BreakingChangeRecord",
    "ChangeRecord",
    "Changelog",
    "ImpactedChangeRecord",
    "RiskAssessment",
    "make_change",
    "make_impacted",
]
