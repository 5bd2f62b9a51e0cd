"""
apidelta: structural changelogs for API descriptions.

Compares two versions of a REST, AsyncAPI or protobuf description and
produces a classified change set, a risk assessment and a semantic-version
recommendation.

Example:
    from apidelta import ChangelogAssembler

    changelog = ChangelogAssembler().generate("orders", "1.0.0", "2.0.0", old, new)
    print(changelog.risk_assessment.semver_recommendation)
"""

__version__ = "0.1.0"

from apidelta.assembler import ChangelogAssembler, detect_format
from apidelta.config import ApiDeltaConfig, get_config, reset_config
from apidelta.engines.proto_compat import ProtoCompatibilityEngine
from apidelta.engines.schema_diff import SchemaDiffEngine
from apidelta.gate import ChangelogGate, GateCheck, GateResult
from apidelta.models.changelog import Changelog, RiskAssessment
from apidelta.models.changes import (
    BreakingChangeRecord,
    ChangeRecord,
    ImpactedChangeRecord,
)
from apidelta.risk import RiskAggregator, RiskPolicy
from apidelta.types import (
    ApiFormat,
    ChangeCategory,
    ChangeType,
    RiskLevel,
    SemverBump,
    Severity,
)

__all__ = [
    "ApiDeltaConfig",
    "ApiFormat",
    "BreakingChangeRecord",
    "ChangeCategory",
    "ChangeRecord",
    "ChangeType",
    "Changelog",
    "ChangelogAssembler",
    "ChangelogGate",
    "GateCheck",
    "GateResult",
    "ImpactedChangeRecord",
    "ProtoCompatibilityEngine",
    "RiskAggregator",
    "RiskAssessment",
    "RiskLevel",
    "RiskPolicy",
    "SchemaDiffEngine",
    "SemverBump",
    "Severity",
    "__version__",
]
