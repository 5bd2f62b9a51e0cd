"""
Changelog assembly.

``ChangelogAssembler.generate`` is the package entry point: it selects the
comparator for the trees' format, collects the change records, promotes the
BREAKING subset, aggregates risk and returns a frozen ``Changelog``.

Usage::

    from apidelta.assembler import ChangelogAssembler

    changelog = ChangelogAssembler().generate(
        "orders", "1.4.0", "2.0.0", old_spec, new_spec
    )
    if changelog.has_breaking_changes:
        ...
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Union

from apidelta.breaking import detect_breaking
from apidelta.canonical.asyncapi import AsyncApiSpec
from apidelta.canonical.proto import ProtoFile
from apidelta.canonical.rest import RestApiSpec
from apidelta.comparators.asyncapi import AsyncApiComparator
from apidelta.comparators.grpc import GrpcComparator
from apidelta.comparators.rest import RestComparator
from apidelta.config import ApiDeltaConfig, get_config
from apidelta.logger import ChangelogLogger
from apidelta.models.changelog import Changelog
from apidelta.models.changes import ChangeRecord
from apidelta.otel import emit_breaking_change, emit_changelog_generated
from apidelta.risk import RiskAggregator
from apidelta.types import ApiFormat

logger = logging.getLogger(__name__)

ApiTree = Union[RestApiSpec, AsyncApiSpec, ProtoFile]


class SpecComparator(Protocol):
    def compare(self, old, new) -> list[ChangeRecord]: ...


_TREE_FORMATS: dict[type, ApiFormat] = {
    RestApiSpec: ApiFormat.REST,
    AsyncApiSpec: ApiFormat.ASYNCAPI,
    ProtoFile: ApiFormat.GRPC,
}

# Collections emptied to stand in for a missing side; metadata is kept so
# only whole-entity additions or removals are reported.
_ENTITY_COLLECTIONS: dict[ApiFormat, tuple[str, ...]] = {
    ApiFormat.REST: ("endpoints", "schemas"),
    ApiFormat.ASYNCAPI: ("servers", "channels", "operations", "messages", "schemas", "tags"),
    ApiFormat.GRPC: ("services", "messages", "enums"),
}


def detect_format(tree: ApiTree) -> ApiFormat:
    """Return the ``ApiFormat`` of a canonical root.

    Raises:
        TypeError: If *tree* is not a canonical root model.
    """
    for tree_type, api_format in _TREE_FORMATS.items():
        if isinstance(tree, tree_type):
            return api_format
    raise TypeError(f"Unsupported API tree type: {type(tree).__name__}")


def _empty_like(tree: ApiTree, api_format: ApiFormat) -> ApiTree:
    cleared = {name: type(getattr(tree, name))() for name in _ENTITY_COLLECTIONS[api_format]}
    return tree.model_copy(update=cleared)


class ChangelogAssembler:
    """Builds changelogs from pairs of canonical API trees."""

    def __init__(
        self,
        risk_aggregator: Optional[RiskAggregator] = None,
        comparators: Optional[dict[ApiFormat, SpecComparator]] = None,
        event_logger: Optional[ChangelogLogger] = None,
        emit_span_events: Optional[bool] = None,
        config: Optional[ApiDeltaConfig] = None,
    ) -> None:
        """Initialise the assembler.

        Args:
            risk_aggregator: Aggregator to score change sets.  Defaults to
                one built from the configured risk policy.
            comparators: Per-format comparator overrides.
            event_logger: Structured event logger.  Defaults to one when
                ``structured_logs`` is enabled in config.
            emit_span_events: Override the ``emit_span_events`` setting.
            config: Configuration; defaults to ``get_config()``.
        """
        config = config or get_config()
        self._aggregator = risk_aggregator or RiskAggregator(config.risk_policy())
        self._comparators: dict[ApiFormat, SpecComparator] = {
            ApiFormat.REST: RestComparator(),
            ApiFormat.ASYNCAPI: AsyncApiComparator(),
            ApiFormat.GRPC: GrpcComparator(),
        }
        self._comparators.update(comparators or {})
        if event_logger is None and config.structured_logs:
            event_logger = ChangelogLogger(config.service_name, config.log_format)
        self._event_logger = event_logger
        self._emit_span_events = (
            config.emit_span_events if emit_span_events is None else emit_span_events
        )

    def generate(
        self,
        api_name: str,
        from_version: str,
        to_version: str,
        old: Optional[ApiTree],
        new: Optional[ApiTree],
    ) -> Changelog:
        """Compare *old* and *new* and assemble the changelog.

        A missing side is treated as an empty tree of the other side's
        format, so every entity appears as added or removed.

        Raises:
            ValueError: If both trees are missing.
            TypeError: If the trees are of different or unsupported formats.
        """
        if old is None and new is None:
            raise ValueError("At least one of old and new must be provided")

        api_format = detect_format(old if old is not None else new)
        if new is None:
            new = _empty_like(old, api_format)
        elif old is None:
            old = _empty_like(new, api_format)
        elif detect_format(new) != api_format:
            raise TypeError(
                f"Cannot compare {api_format.value} with {detect_format(new).value}"
            )

        changes = self._comparators[api_format].compare(old, new)
        breaking = detect_breaking(changes)
        changelog = Changelog(
            api_name=api_name,
            api_format=api_format,
            from_version=from_version,
            to_version=to_version,
            changes=changes,
            breaking_changes=breaking,
            risk_assessment=self._aggregator.aggregate(changes),
        )

        logger.info(
            "Changelog %s %s -> %s: %d change(s), %d breaking, semver=%s",
            api_name, from_version, to_version, len(changes), len(breaking),
            changelog.risk_assessment.semver_recommendation.value,
        )
        self._report(changelog)
        return changelog

    # -- internal: reporting ---------------------------------------------------

    def _report(self, changelog: Changelog) -> None:
        if self._event_logger is not None:
            self._event_logger.log_changelog_generated(changelog)
            for change in changelog.breaking_changes:
                self._event_logger.log_breaking_change(changelog.api_name, change)
        if self._emit_span_events:
            emit_changelog_generated(changelog)
            for change in changelog.breaking_changes:
                emit_breaking_change(changelog.api_name, change)
