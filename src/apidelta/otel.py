"""
OTel span event emission for generated changelogs.

Usage::

    from apidelta.otel import emit_changelog_generated, emit_breaking_change

    emit_changelog_generated(changelog)
    for change in changelog.breaking_changes:
        emit_breaking_change(changelog.api_name, change)
"""

from __future__ import annotations

import logging

from apidelta._otel_helpers import add_span_event
from apidelta.models.changelog import Changelog
from apidelta.models.changes import BreakingChangeRecord

logger = logging.getLogger(__name__)


def emit_changelog_generated(changelog: Changelog) -> None:
    """Emit a span event summarising a changelog.

    Event name: ``apidelta.changelog.generated``
    """
    risk = changelog.risk_assessment
    attrs: dict[str, str | int | float | bool] = {
        "apidelta.api_name": changelog.api_name,
        "apidelta.api_format": changelog.api_format.value,
        "apidelta.from_version": changelog.from_version,
        "apidelta.to_version": changelog.to_version,
        "apidelta.total_changes": risk.total_changes_count,
        "apidelta.breaking_changes": risk.breaking_changes_count,
        "apidelta.risk_score": risk.overall_score,
        "apidelta.risk_level": risk.level.value,
        "apidelta.semver": risk.semver_recommendation.value,
    }
    logger.debug(
        "Changelog %s %s -> %s: %d change(s), risk=%s",
        changelog.api_name,
        changelog.from_version,
        changelog.to_version,
        risk.total_changes_count,
        risk.level.value,
    )
    add_span_event("apidelta.changelog.generated", attrs)


def emit_breaking_change(api_name: str, change: BreakingChangeRecord) -> None:
    """Emit a span event for one breaking change.

    Event name: ``apidelta.change.breaking``
    """
    attrs: dict[str, str | int | float | bool] = {
        "apidelta.api_name": api_name,
        "apidelta.change_type": change.change_type.value,
        "apidelta.category": change.category.value,
        "apidelta.path": change.path,
        "apidelta.impact_score": change.impact_score,
        "apidelta.description": change.description,
    }
    if change.affected_consumers:
        attrs["apidelta.affected_consumers"] = ",".join(change.affected_consumers)
    add_span_event("apidelta.change.breaking", attrs)
