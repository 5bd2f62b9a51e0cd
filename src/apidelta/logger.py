"""
Structured logging for changelog events.

Outputs one JSON object per event for log aggregation, or a single
``key=value`` line when ``log_format`` is ``"text"``.

Logged events:
- changelog.generated
- change.breaking (one per breaking change)

Usage:
    from apidelta.logger import ChangelogLogger

    logger = ChangelogLogger(service_name="ci-gate")
    logger.log_changelog_generated(changelog)
    for change in changelog.breaking_changes:
        logger.log_breaking_change(changelog.api_name, change)
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

from apidelta.models.changelog import Changelog
from apidelta.models.changes import BreakingChangeRecord

# Configure structured event logger
_event_logger = logging.getLogger("apidelta.changelog")
_event_logger.setLevel(logging.INFO)

# Default handler writes events to stdout
if not _event_logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    _event_logger.addHandler(handler)


class ChangelogLogger:
    """
    Structured logger for changelog events.

    Each entry carries the standard fields used for filtering:
    - timestamp, level, event, service
    - api_name and event-specific attributes
    """

    def __init__(
        self,
        service_name: str = "apidelta",
        log_format: Literal["json", "text"] = "json",
        extra_labels: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize changelog logger.

        Args:
            service_name: Service name for log attribution
            log_format: ``json`` for one JSON object per line, ``text`` for
                ``key=value`` pairs
            extra_labels: Additional labels attached to every entry
        """
        self.service_name = service_name
        self.log_format = log_format
        self.extra_labels = extra_labels or {}
        self._logger = _event_logger

    def _emit(
        self,
        event: str,
        api_name: str,
        level: str = "info",
        **extra_fields: Any,
    ) -> None:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "event": event,
            "service": self.service_name,
            "api_name": api_name,
        }
        entry.update(extra_fields)
        if self.extra_labels:
            entry["labels"] = self.extra_labels

        if self.log_format == "text":
            log_line = " ".join(f"{k}={v}" for k, v in entry.items())
        else:
            log_line = json.dumps(entry, default=str)

        if level == "error":
            self._logger.error(log_line)
        elif level == "warn":
            self._logger.warning(log_line)
        else:
            self._logger.info(log_line)

    def log_changelog_generated(self, changelog: Changelog) -> None:
        """Log a generated changelog; ``warn`` level when anything breaks."""
        risk = changelog.risk_assessment
        self._emit(
            event="changelog.generated",
            api_name=changelog.api_name,
            level="warn" if changelog.has_breaking_changes else "info",
            changelog_id=changelog.id,
            api_format=changelog.api_format.value,
            from_version=changelog.from_version,
            to_version=changelog.to_version,
            total_changes=risk.total_changes_count,
            breaking_changes=risk.breaking_changes_count,
            risk_score=risk.overall_score,
            risk_level=risk.level.value,
            semver=risk.semver_recommendation.value,
        )

    def log_breaking_change(self, api_name: str, change: BreakingChangeRecord) -> None:
        self._emit(
            event="change.breaking",
            api_name=api_name,
            level="warn",
            change_id=change.id,
            change_type=change.change_type.value,
            category=change.category.value,
            path=change.path,
            description=change.description,
            impact_score=change.impact_score,
            migration_suggestion=change.migration_suggestion,
            affected_consumers=change.affected_consumers,
        )
