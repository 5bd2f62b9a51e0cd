"""Tests for severity ordering helpers."""

from __future__ import annotations

import pytest

from apidelta.types import (
    Severity,
    is_at_least,
    is_at_most,
    max_severity,
    severities_descending,
    severity_rank,
)


class TestSeverityRank:
    def test_total_order(self):
        assert (
            severity_rank(Severity.BREAKING)
            > severity_rank(Severity.DANGEROUS)
            > severity_rank(Severity.WARNING)
            > severity_rank(Severity.INFO)
        )

    def test_descending_listing(self):
        assert severities_descending() == [
            Severity.BREAKING,
            Severity.DANGEROUS,
            Severity.WARNING,
            Severity.INFO,
        ]


class TestThresholds:
    def test_at_least_is_inclusive(self):
        assert is_at_least(Severity.DANGEROUS, Severity.DANGEROUS)
        assert is_at_least(Severity.BREAKING, Severity.DANGEROUS)
        assert not is_at_least(Severity.WARNING, Severity.DANGEROUS)

    def test_at_most_is_inclusive(self):
        assert is_at_most(Severity.WARNING, Severity.WARNING)
        assert is_at_most(Severity.INFO, Severity.WARNING)
        assert not is_at_most(Severity.BREAKING, Severity.WARNING)


class TestMaxSeverity:
    def test_picks_most_severe(self):
        assert max_severity([Severity.INFO, Severity.BREAKING, Severity.WARNING]) == Severity.BREAKING

    def test_empty_is_none(self):
        assert max_severity([]) is None


class TestSeverityComparison:
    def test_operators_follow_rank(self):
        assert Severity.BREAKING > Severity.DANGEROUS > Severity.WARNING > Severity.INFO
        assert Severity.INFO < Severity.WARNING
        assert Severity.DANGEROUS >= Severity.DANGEROUS
        assert Severity.WARNING <= Severity.DANGEROUS
        assert not Severity.DANGEROUS > Severity.BREAKING

    def test_sorted_and_builtin_max(self):
        assert sorted(Severity) == [
            Severity.INFO,
            Severity.WARNING,
            Severity.DANGEROUS,
            Severity.BREAKING,
        ]
        assert max([Severity.WARNING, Severity.BREAKING, Severity.INFO]) == Severity.BREAKING

    def test_non_severity_operand_is_rejected(self):
        with pytest.raises(TypeError):
            Severity.BREAKING < 3
