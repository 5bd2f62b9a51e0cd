"""Tests for changelog assembly across the three API formats."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from apidelta.assembler import ChangelogAssembler, detect_format
from apidelta.canonical.asyncapi import AsyncApiSpec, AsyncChannel
from apidelta.canonical.proto import (
    ProtoEnum,
    ProtoEnumValue,
    ProtoField,
    ProtoFile,
    ProtoMessage,
)
from apidelta.canonical.rest import Endpoint, RestApiSpec
from apidelta.canonical.schema import CanonicalSchemaNode
from apidelta.config import get_config
from apidelta.logger import ChangelogLogger
from apidelta.models.changes import BreakingChangeRecord, make_change
from apidelta.risk import RiskAggregator, RiskPolicy
from apidelta.types import (
    ApiFormat,
    ChangeCategory,
    ChangeType,
    SemverBump,
    Severity,
)


def _generate(old, new, **kwargs):
    return ChangelogAssembler(**kwargs).generate("orders", "1.0.0", "2.0.0", old, new)


def _summary(changelog):
    return [(c.category, c.change_type, c.severity, c.path) for c in changelog.changes]


@pytest.fixture
def mock_span():
    span = MagicMock()
    span.is_recording.return_value = True
    return span


@pytest.fixture
def mock_otel(mock_span):
    with patch("apidelta._otel_helpers.HAS_OTEL", True), \
         patch("apidelta._otel_helpers.otel_trace") as mock_trace:
        mock_trace.get_current_span.return_value = mock_span
        yield mock_span


# ---------------------------------------------------------------------------
# End-to-end scenarios
# ---------------------------------------------------------------------------


class TestScenarios:
    def test_required_schema_property_removed(self):
        old = RestApiSpec(schemas={"User": CanonicalSchemaNode(
            type="object",
            required_fields={"id"},
            properties={"id": CanonicalSchemaNode(type="string")},
        )})
        new = RestApiSpec(schemas={"User": CanonicalSchemaNode(type="object")})
        changelog = _generate(old, new)
        assert _summary(changelog) == [
            (ChangeCategory.FIELD, ChangeType.REMOVED, Severity.BREAKING, "schema:User.id"),
        ]
        assert changelog.api_format == ApiFormat.REST
        assert changelog.risk_assessment.semver_recommendation == SemverBump.MAJOR

    def test_proto_field_number_reuse(self):
        old = ProtoFile(messages=[ProtoMessage(name="M", fields=[
            ProtoField(name="foo", number=1, type_name="string"),
        ])])
        new = ProtoFile(messages=[ProtoMessage(name="M", fields=[
            ProtoField(name="bar", number=1, type_name="int32"),
        ])])
        changelog = _generate(old, new)
        assert _summary(changelog) == [
            (ChangeCategory.FIELD_NUMBER, ChangeType.MODIFIED, Severity.BREAKING, "M.field_number_1"),
        ]
        assert changelog.breaking_changes[0].impact_score == 100

    def test_proto_enum_value_added(self):
        def color(*values):
            return ProtoFile(enums=[ProtoEnum(name="Color", values=[
                ProtoEnumValue(name=name, number=number) for name, number in values
            ])])

        changelog = _generate(
            color(("RED", 0), ("GREEN", 1)),
            color(("RED", 0), ("GREEN", 1), ("BLUE", 2)),
        )
        assert _summary(changelog) == [
            (ChangeCategory.ENUM_VALUE, ChangeType.ADDED, Severity.INFO, "Color.BLUE"),
        ]
        assert changelog.changes[0].impact_score == 10
        assert changelog.risk_assessment.semver_recommendation == SemverBump.MINOR
        assert not changelog.has_breaking_changes

    def test_asyncapi_channel_removed(self):
        old = AsyncApiSpec(channels={"orders.created": AsyncChannel()})
        changelog = _generate(old, AsyncApiSpec())
        assert _summary(changelog) == [
            (ChangeCategory.CHANNEL, ChangeType.REMOVED, Severity.BREAKING, "channel:orders.created"),
        ]
        assert changelog.risk_assessment.semver_recommendation == SemverBump.MAJOR

    def test_integer_widened_to_number(self):
        def order(total_type):
            return RestApiSpec(schemas={"Order": CanonicalSchemaNode(
                type="object",
                properties={"total": CanonicalSchemaNode(type=total_type)},
            )})

        changelog = _generate(order("integer"), order("number"))
        assert _summary(changelog) == [
            (ChangeCategory.SCHEMA, ChangeType.MODIFIED, Severity.WARNING, "schema:Order.total"),
        ]
        assert changelog.breaking_changes == []
        assert changelog.risk_assessment.semver_recommendation == SemverBump.PATCH


# ---------------------------------------------------------------------------
# Changelog contents
# ---------------------------------------------------------------------------


class TestChangelog:
    def test_identical_trees(self, orders_proto):
        changelog = _generate(orders_proto, orders_proto)
        assert changelog.changes == []
        assert changelog.risk_assessment.overall_score == 0
        assert changelog.risk_assessment.semver_recommendation == SemverBump.PATCH

    def test_versions_and_name_recorded(self, orders_proto):
        changelog = _generate(orders_proto, orders_proto)
        assert (changelog.api_name, changelog.from_version, changelog.to_version) == (
            "orders", "1.0.0", "2.0.0",
        )

    def test_breaking_subset_is_promoted(self):
        old = RestApiSpec(endpoints=[
            Endpoint(method="GET", path="/a"), Endpoint(method="GET", path="/b"),
        ])
        new = RestApiSpec(endpoints=[
            Endpoint(method="GET", path="/b"), Endpoint(method="GET", path="/c"),
        ])
        changelog = _generate(old, new)
        assert len(changelog.changes) == 2
        assert [c.path for c in changelog.breaking_changes] == ["GET /a"]
        assert isinstance(changelog.breaking_changes[0], BreakingChangeRecord)
        assert changelog.breaking_changes[0].impact_score == 100
        assert changelog.breaking_changes[0].id == changelog.changes[0].id

    def test_risk_counts_match_changes(self):
        old = RestApiSpec(endpoints=[Endpoint(method="GET", path="/a")])
        changelog = _generate(old, RestApiSpec(title="renamed"))
        risk = changelog.risk_assessment
        assert risk.total_changes_count == 2
        assert risk.breaking_changes_count == 1
        assert risk.overall_score == 25

    def test_custom_risk_aggregator(self):
        old = RestApiSpec(endpoints=[Endpoint(method="GET", path="/a")])
        aggregator = RiskAggregator(RiskPolicy(breaking_weight=80))
        changelog = _generate(old, RestApiSpec(), risk_aggregator=aggregator)
        assert changelog.risk_assessment.overall_score == 80

    def test_risk_policy_from_config(self, monkeypatch):
        monkeypatch.setenv("APIDELTA_RISK_BREAKING_WEIGHT", "60")
        old = RestApiSpec(endpoints=[Endpoint(method="GET", path="/a")])
        changelog = _generate(old, RestApiSpec())
        assert changelog.risk_assessment.overall_score == 60

    def test_comparator_override(self):
        stub = MagicMock()
        stub.compare.return_value = [make_change(
            ChangeType.ADDED, ChangeCategory.ENDPOINT, Severity.INFO, "GET /x", "added",
        )]
        changelog = _generate(
            RestApiSpec(), RestApiSpec(), comparators={ApiFormat.REST: stub}
        )
        stub.compare.assert_called_once()
        assert [c.path for c in changelog.changes] == ["GET /x"]


# ---------------------------------------------------------------------------
# Missing sides and format errors
# ---------------------------------------------------------------------------


class TestInputs:
    def test_missing_old_reports_additions(self, orders_proto):
        changelog = _generate(None, orders_proto)
        assert _summary(changelog) == [
            (ChangeCategory.MESSAGE, ChangeType.ADDED, Severity.INFO, "acme.orders.v1.Order"),
        ]
        assert changelog.risk_assessment.semver_recommendation == SemverBump.MINOR

    def test_missing_new_reports_removals(self, orders_proto):
        changelog = _generate(orders_proto, None)
        assert _summary(changelog) == [
            (ChangeCategory.MESSAGE, ChangeType.REMOVED, Severity.BREAKING, "acme.orders.v1.Order"),
        ]

    def test_missing_side_keeps_metadata(self):
        changelog = _generate(AsyncApiSpec(title="Orders", channels={"a": AsyncChannel()}), None)
        assert [c.path for c in changelog.changes] == ["channel:a"]

    def test_both_missing(self):
        with pytest.raises(ValueError, match="At least one"):
            _generate(None, None)

    def test_mismatched_formats(self, orders_proto):
        with pytest.raises(TypeError, match="Cannot compare grpc with rest"):
            _generate(orders_proto, RestApiSpec())

    def test_unsupported_tree(self):
        with pytest.raises(TypeError, match="Unsupported API tree type"):
            _generate({"openapi": "3.1.0"}, None)

    @pytest.mark.parametrize(
        "tree,expected",
        [
            (RestApiSpec(), ApiFormat.REST),
            (AsyncApiSpec(), ApiFormat.ASYNCAPI),
            (ProtoFile(), ApiFormat.GRPC),
        ],
    )
    def test_detect_format(self, tree, expected):
        assert detect_format(tree) == expected


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


class TestReporting:
    def _breaking_pair(self):
        old = RestApiSpec(endpoints=[
            Endpoint(method="GET", path="/a"), Endpoint(method="GET", path="/b"),
        ])
        return old, RestApiSpec()

    def test_event_logger_receives_changelog_and_breaking_changes(self):
        event_logger = MagicMock(spec=ChangelogLogger)
        changelog = _generate(*self._breaking_pair(), event_logger=event_logger)
        event_logger.log_changelog_generated.assert_called_once_with(changelog)
        assert event_logger.log_breaking_change.call_count == 2

    def test_structured_logs_setting_creates_logger(self, monkeypatch):
        monkeypatch.setenv("APIDELTA_STRUCTURED_LOGS", "true")
        with patch("apidelta.assembler.ChangelogLogger") as logger_cls:
            ChangelogAssembler()
        logger_cls.assert_called_once_with("apidelta-test", get_config().log_format)

    def test_span_events_emitted_when_enabled(self, mock_otel):
        _generate(*self._breaking_pair(), emit_span_events=True)
        names = [c.kwargs["name"] for c in mock_otel.add_event.call_args_list]
        assert names == [
            "apidelta.changelog.generated",
            "apidelta.change.breaking",
            "apidelta.change.breaking",
        ]

    def test_span_events_disabled_by_config(self, mock_otel):
        _generate(*self._breaking_pair())
        mock_otel.add_event.assert_not_called()

    def test_info_log_line(self, caplog, orders_proto):
        with caplog.at_level("INFO", logger="apidelta.assembler"):
            _generate(orders_proto, orders_proto)
        assert "Changelog orders 1.0.0 -> 2.0.0: 0 change(s), 0 breaking, semver=PATCH" in caplog.text
