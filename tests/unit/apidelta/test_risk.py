"""Tests for risk aggregation, grouping and statistics."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from apidelta.models.changes import make_change, make_impacted
from apidelta.risk import (
    RiskAggregator,
    RiskPolicy,
    change_statistics,
    count_by_severity,
    filter_by_categories,
    filter_by_max_severity,
    filter_by_min_severity,
    group_by_category,
    group_by_change_type,
    group_by_severity,
    recommend_semver,
)
from apidelta.types import ChangeCategory, ChangeType, RiskLevel, SemverBump, Severity


def _make_change(severity=Severity.INFO, **kwargs):
    defaults = dict(
        change_type=ChangeType.MODIFIED,
        category=ChangeCategory.FIELD,
        severity=severity,
        path="schema:User.id",
        description="changed",
    )
    defaults.update(kwargs)
    return make_change(**defaults)


def _many(severity, n, **kwargs):
    return [_make_change(severity, **kwargs) for _ in range(n)]


class TestScore:
    def test_empty_change_set(self):
        assessment = RiskAggregator().aggregate([])
        assert assessment.overall_score == 0
        assert assessment.level == RiskLevel.LOW
        assert assessment.semver_recommendation == SemverBump.PATCH
        assert assessment.recommendation == "No changes detected. No version bump required."

    def test_default_weights(self):
        changes = (
            _many(Severity.BREAKING, 1)
            + _many(Severity.DANGEROUS, 2)
            + _many(Severity.WARNING, 3)
            + _many(Severity.INFO, 4)
        )
        assessment = RiskAggregator().aggregate(changes)
        assert assessment.overall_score == 25 + 20 + 9
        assert assessment.breaking_changes_count == 1
        assert assessment.total_changes_count == 10

    def test_score_is_capped(self):
        assert RiskAggregator().aggregate(_many(Severity.BREAKING, 10)).overall_score == 100

    def test_one_breaking_outweighs_any_number_of_info(self):
        aggregator = RiskAggregator()
        info_only = aggregator.aggregate(_many(Severity.INFO, 500)).overall_score
        one_breaking = aggregator.aggregate(_many(Severity.BREAKING, 1)).overall_score
        assert one_breaking > info_only

    @pytest.mark.parametrize("severity", list(Severity))
    def test_adding_breaking_never_lowers_score(self, severity):
        aggregator = RiskAggregator()
        base = _many(severity, 3) + _many(Severity.WARNING, 2)
        before = aggregator.aggregate(base).overall_score
        after = aggregator.aggregate(base + _many(Severity.BREAKING, 1)).overall_score
        assert after >= before

    def test_severity_buckets_always_present(self):
        assessment = RiskAggregator().aggregate(_many(Severity.WARNING, 1))
        assert assessment.changes_by_severity == {
            Severity.BREAKING: 0,
            Severity.DANGEROUS: 0,
            Severity.WARNING: 1,
            Severity.INFO: 0,
        }


class TestLevels:
    @pytest.mark.parametrize(
        "breaking,dangerous,expected",
        [
            (0, 0, RiskLevel.LOW),
            (0, 1, RiskLevel.LOW),
            (0, 2, RiskLevel.MODERATE),
            (1, 2, RiskLevel.HIGH),
            (3, 0, RiskLevel.CRITICAL),
        ],
    )
    def test_default_bands(self, breaking, dangerous, expected):
        changes = _many(Severity.BREAKING, breaking) + _many(Severity.DANGEROUS, dangerous)
        assert RiskAggregator().aggregate(changes).level == expected

    def test_custom_policy(self):
        policy = RiskPolicy(breaking_weight=50)
        assessment = RiskAggregator(policy).aggregate(_many(Severity.BREAKING, 2))
        assert assessment.overall_score == 100
        assert assessment.level == RiskLevel.CRITICAL

    def test_policy_rejects_non_monotonic_weights(self):
        with pytest.raises(ValidationError, match="breaking > dangerous"):
            RiskPolicy(breaking_weight=5, dangerous_weight=10)

    def test_policy_rejects_unordered_thresholds(self):
        with pytest.raises(ValidationError, match="critical > high"):
            RiskPolicy(high_threshold=80)

    def test_info_weighs_nothing(self):
        assert RiskPolicy().weight(Severity.INFO) == 0


class TestSemver:
    def test_breaking_means_major(self):
        changes = _many(Severity.INFO, 3, change_type=ChangeType.ADDED) + _many(Severity.BREAKING, 1)
        assert recommend_semver(changes) == SemverBump.MAJOR

    def test_addition_means_minor(self):
        changes = _many(Severity.WARNING, 1) + _many(Severity.INFO, 1, change_type=ChangeType.ADDED)
        assert recommend_semver(changes) == SemverBump.MINOR

    def test_otherwise_patch(self):
        assert recommend_semver(_many(Severity.DANGEROUS, 2)) == SemverBump.PATCH


class TestRecommendation:
    def test_names_top_breaking_category(self):
        changes = (
            _many(Severity.BREAKING, 2, category=ChangeCategory.PARAMETER)
            + _many(Severity.BREAKING, 1, category=ChangeCategory.RESPONSE)
        )
        text = RiskAggregator().aggregate(changes).recommendation
        assert "Most breaking changes affect PARAMETER." in text
        assert text.endswith("Recommended version bump: MAJOR.")

    def test_no_breaking_omits_category(self):
        text = RiskAggregator().aggregate(_many(Severity.WARNING, 1)).recommendation
        assert text == "Low-risk changes detected. Recommended version bump: PATCH."

    def test_breaking_logs_warning(self, caplog):
        with caplog.at_level("WARNING", logger="apidelta.risk"):
            RiskAggregator().aggregate(_many(Severity.BREAKING, 1))
        assert "1 breaking change(s)" in caplog.text


class TestGrouping:
    def test_count_by_severity(self):
        counts = count_by_severity(_many(Severity.DANGEROUS, 2))
        assert counts[Severity.DANGEROUS] == 2
        assert counts[Severity.INFO] == 0

    def test_group_by_severity_has_every_bucket(self):
        grouped = group_by_severity(_many(Severity.INFO, 1))
        assert list(grouped) == [
            Severity.BREAKING, Severity.DANGEROUS, Severity.WARNING, Severity.INFO,
        ]
        assert len(grouped[Severity.INFO]) == 1

    def test_group_by_category_and_type(self):
        changes = [
            _make_change(category=ChangeCategory.FIELD, change_type=ChangeType.ADDED),
            _make_change(category=ChangeCategory.ENUM, change_type=ChangeType.ADDED),
            _make_change(category=ChangeCategory.FIELD, change_type=ChangeType.REMOVED),
        ]
        assert {k: len(v) for k, v in group_by_category(changes).items()} == {
            ChangeCategory.FIELD: 2, ChangeCategory.ENUM: 1,
        }
        assert {k: len(v) for k, v in group_by_change_type(changes).items()} == {
            ChangeType.ADDED: 2, ChangeType.REMOVED: 1,
        }

    def test_severity_filters(self):
        changes = [_make_change(s) for s in Severity]
        assert {c.severity for c in filter_by_min_severity(changes, Severity.DANGEROUS)} == {
            Severity.BREAKING, Severity.DANGEROUS,
        }
        assert {c.severity for c in filter_by_max_severity(changes, Severity.WARNING)} == {
            Severity.WARNING, Severity.INFO,
        }

    def test_filter_by_categories(self):
        changes = [
            _make_change(category=ChangeCategory.FIELD),
            _make_change(category=ChangeCategory.SERVER),
        ]
        kept = filter_by_categories(changes, [ChangeCategory.SERVER])
        assert [c.category for c in kept] == [ChangeCategory.SERVER]


class TestStatistics:
    def test_mixed_records(self):
        changes = [
            _make_change(Severity.INFO),
            make_impacted(
                ChangeType.REMOVED, ChangeCategory.MESSAGE, Severity.BREAKING,
                "pkg.Order", "removed", 90,
            ),
            make_impacted(
                ChangeType.ADDED, ChangeCategory.MESSAGE, Severity.INFO,
                "pkg.Item", "added", 10,
            ),
        ]
        stats = change_statistics(changes)
        assert stats.total == 3
        assert stats.average_impact == 50.0
        assert stats.max_impact == 90
        assert stats.by_category == {ChangeCategory.FIELD: 1, ChangeCategory.MESSAGE: 2}

    def test_empty(self):
        stats = change_statistics([])
        assert (stats.total, stats.average_impact, stats.max_impact) == (0, 0.0, 0)
