"""
Change taxonomy enums shared by every apidelta module.

Severity ordering is defined by an explicit rank table rather than by
declaration order, so reordering members never changes comparisons.

Usage::

    from apidelta.types import Severity, is_at_least

    if is_at_least(change.severity, Severity.DANGEROUS):
        ...
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional


class Severity(str, Enum):
    """Consumer impact of a single change.

    Comparisons follow ``SEVERITY_RANK`` (BREAKING > DANGEROUS > WARNING >
    INFO), not the string values.
    """

    BREAKING = "BREAKING"
    DANGEROUS = "DANGEROUS"
    WARNING = "WARNING"
    INFO = "INFO"

    # str defines all four, so each must be overridden
    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return SEVERITY_RANK[self] < SEVERITY_RANK[other]

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return SEVERITY_RANK[self] <= SEVERITY_RANK[other]

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return SEVERITY_RANK[self] > SEVERITY_RANK[other]

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return SEVERITY_RANK[self] >= SEVERITY_RANK[other]


class ChangeType(str, Enum):
    ADDED = "ADDED"
    REMOVED = "REMOVED"
    MODIFIED = "MODIFIED"
    DEPRECATED = "DEPRECATED"


class ChangeCategory(str, Enum):
    """Structural element a change applies to."""

    ENDPOINT = "ENDPOINT"
    PARAMETER = "PARAMETER"
    REQUEST_BODY = "REQUEST_BODY"
    RESPONSE = "RESPONSE"
    SCHEMA = "SCHEMA"
    FIELD = "FIELD"
    SECURITY = "SECURITY"
    MESSAGE = "MESSAGE"
    MESSAGE_PAYLOAD = "MESSAGE_PAYLOAD"
    MESSAGE_HEADERS = "MESSAGE_HEADERS"
    SERVICE = "SERVICE"
    RPC_METHOD = "RPC_METHOD"
    STREAMING_TYPE = "STREAMING_TYPE"
    ENUM = "ENUM"
    ENUM_VALUE = "ENUM_VALUE"
    FIELD_NUMBER = "FIELD_NUMBER"
    PACKAGE = "PACKAGE"
    CHANNEL = "CHANNEL"
    SERVER = "SERVER"
    OPERATION = "OPERATION"
    BINDING = "BINDING"
    PROTOCOL = "PROTOCOL"
    METADATA = "METADATA"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class SemverBump(str, Enum):
    MAJOR = "MAJOR"
    MINOR = "MINOR"
    PATCH = "PATCH"


class ApiFormat(str, Enum):
    """Description format a changelog was produced from."""

    REST = "rest"
    ASYNCAPI = "asyncapi"
    GRPC = "grpc"


# ---------------------------------------------------------------------------
# Severity ordering
# ---------------------------------------------------------------------------

SEVERITY_RANK: dict[Severity, int] = {
    Severity.INFO: 0,
    Severity.WARNING: 1,
    Severity.DANGEROUS: 2,
    Severity.BREAKING: 3,
}

RISK_LEVEL_RANK: dict[RiskLevel, int] = {
    RiskLevel.LOW: 0,
    RiskLevel.MODERATE: 1,
    RiskLevel.HIGH: 2,
    RiskLevel.CRITICAL: 3,
}


def severity_rank(severity: Severity) -> int:
    """Return the rank of *severity*; higher is more severe."""
    return SEVERITY_RANK[severity]


def is_at_least(severity: Severity, threshold: Severity) -> bool:
    return SEVERITY_RANK[severity] >= SEVERITY_RANK[threshold]


def is_at_most(severity: Severity, threshold: Severity) -> bool:
    return SEVERITY_RANK[severity] <= SEVERITY_RANK[threshold]


def max_severity(severities: Iterable[Severity]) -> Optional[Severity]:
    """Return the most severe value in *severities*, or ``None`` if empty."""
    ranked = list(severities)
    if not ranked:
        return None
    return max(ranked, key=severity_rank)


def severities_descending() -> list[Severity]:
    """All severities ordered from most to least severe."""
    return sorted(SEVERITY_RANK, key=severity_rank, reverse=True)
