"""
Changelog gate for CI/CD pipelines.

Turns a ``Changelog`` into a pass/fail verdict so a pipeline can block a
release that breaks consumers.

Checks:

- **Breaking changes**: none allowed (unless overridden).
- **Risk score**: overall risk score must not exceed ``max_risk_score``.
- **Severity floor**: no change at or above ``fail_on_severity``, when set.

Usage::

    from apidelta.gate import ChangelogGate

    gate = ChangelogGate(thresholds={"max_risk_score": 40})
    result = gate.check(changelog)
    if not result.passed:
        for f in result.failures:
            print(f"GATE FAIL: {f.message}")
        sys.exit(1)
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from apidelta.models.changelog import Changelog
from apidelta.risk import filter_by_min_severity
from apidelta.types import Severity

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class GateCheck(BaseModel):
    """Result of a single gate check."""

    model_config = ConfigDict(extra="forbid")

    check_id: str = Field(..., min_length=1)
    passed: bool = True
    message: str = ""
    threshold: Optional[float] = None
    actual_value: Optional[float] = None


class GateResult(BaseModel):
    """Aggregated gate result."""

    model_config = ConfigDict(extra="forbid")

    passed: bool = True
    checks: list[GateCheck] = Field(default_factory=list)
    total_checks: int = 0
    failed_checks: int = 0

    @property
    def failures(self) -> list[GateCheck]:
        return [c for c in self.checks if not c.passed]


# ---------------------------------------------------------------------------
# Default thresholds
# ---------------------------------------------------------------------------


DEFAULT_THRESHOLDS = {
    "max_risk_score": 100.0,
}


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------


class ChangelogGate:
    """CI/CD gate that blocks releases breaking API consumers."""

    def __init__(
        self,
        thresholds: Optional[dict[str, float]] = None,
        allow_breaking: bool = False,
        fail_on_severity: Optional[Severity] = None,
    ) -> None:
        """Initialise the gate.

        Args:
            thresholds: Override default thresholds.  Keys match
                ``DEFAULT_THRESHOLDS``.
            allow_breaking: When ``True``, breaking changes are reported
                but do not fail the gate.
            fail_on_severity: Fail when any change is at least this severe.
        """
        self._thresholds = {**DEFAULT_THRESHOLDS, **(thresholds or {})}
        self._allow_breaking = allow_breaking
        self._fail_on_severity = fail_on_severity

    def check(self, changelog: Changelog) -> GateResult:
        """Run all gate checks against *changelog*."""
        checks = [
            self._check_breaking(changelog),
            self._check_risk_score(changelog),
        ]
        if self._fail_on_severity is not None:
            checks.append(self._check_severity_floor(changelog))

        failed = [c for c in checks if not c.passed]
        result = GateResult(
            passed=not failed,
            checks=checks,
            total_checks=len(checks),
            failed_checks=len(failed),
        )
        if failed:
            logger.warning(
                "Changelog gate FAILED for %s: %s",
                changelog.api_name,
                ", ".join(c.check_id for c in failed),
            )
        else:
            logger.info("Changelog gate passed for %s", changelog.api_name)
        return result

    # -- internal: checks -------------------------------------------------------

    def _check_breaking(self, changelog: Changelog) -> GateCheck:
        count = len(changelog.breaking_changes)
        if count == 0:
            return GateCheck(
                check_id="breaking_changes",
                message="No breaking changes",
                actual_value=0,
            )
        if self._allow_breaking:
            return GateCheck(
                check_id="breaking_changes",
                message=f"{count} breaking change(s) allowed by override",
                actual_value=count,
            )
        return GateCheck(
            check_id="breaking_changes",
            passed=False,
            message=f"{count} breaking change(s): "
            + "; ".join(c.path for c in changelog.breaking_changes[:5]),
            actual_value=count,
        )

    def _check_risk_score(self, changelog: Changelog) -> GateCheck:
        limit = self._thresholds["max_risk_score"]
        score = changelog.risk_assessment.overall_score
        passed = score <= limit
        return GateCheck(
            check_id="risk_score",
            passed=passed,
            message=(
                f"Risk score {score} within limit {limit:g}" if passed
                else f"Risk score {score} exceeds limit {limit:g}"
            ),
            threshold=limit,
            actual_value=score,
        )

    def _check_severity_floor(self, changelog: Changelog) -> GateCheck:
        floor = self._fail_on_severity
        offending = filter_by_min_severity(changelog.changes, floor)
        return GateCheck(
            check_id="severity_floor",
            passed=not offending,
            message=(
                f"{len(offending)} change(s) at or above {floor.value}" if offending
                else f"No changes at or above {floor.value}"
            ),
            actual_value=len(offending),
        )
