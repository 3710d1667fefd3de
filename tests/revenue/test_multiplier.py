"""Tests for warrant.revenue.multiplier."""

from __future__ import annotations

import pytest

from warrant.revenue.multiplier import IntegrityHistory, integrity_multiplier, reputation_factor


class TestReputationFactor:
    @pytest.mark.parametrize(
        "score,expected",
        [(0, 0.1), (25, 0.55), (50, 1.0), (75, 1.25), (100, 1.5), (-10, 0.1), (130, 1.5)],
    )
    def test_curve(self, score, expected):
        assert reputation_factor(score) == pytest.approx(expected)


class TestIntegrityHistory:
    def test_empty_history_has_no_penalty(self):
        assert IntegrityHistory().penalty == 0.0

    def test_penalty_sums_incidents(self):
        history = IntegrityHistory(
            upheld_disputes=1, major_corrections=2, minor_corrections=3, disputed_labels=1, review_labels=2
        )
        # 0.10 + 0.10 + 0.03 + 0.05 + 0.04
        assert history.penalty == pytest.approx(0.32)


class TestIntegrityMultiplier:
    def test_neutral(self):
        assert integrity_multiplier(50) == 1.0

    def test_upheld_dispute(self):
        assert integrity_multiplier(50, IntegrityHistory(upheld_disputes=1)) == 0.9

    def test_floor(self):
        assert integrity_multiplier(10, IntegrityHistory(upheld_disputes=5)) == 0.1

    def test_ceiling(self):
        assert integrity_multiplier(100) == 1.5

    def test_rounded_to_four_places(self):
        value = integrity_multiplier(33.333)
        assert value == round(value, 4)

    def test_monotonic_in_reputation(self):
        values = [integrity_multiplier(s) for s in range(0, 101, 5)]
        assert values == sorted(values)
