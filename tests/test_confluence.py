"""
Tests for confluence scoring and factor alignment
Run with: pytest tests/test_confluence.py -v
"""

import pytest

from sharp_edge.services.confluence import (
    ConfluenceInput,
    ConfluenceTier,
    FactorAlignment,
    SpreadContribution,
    TotalsContribution,
    TrackRecord,
    alignment_points,
    build_confluence_input,
    calculate_confluence_score,
    calculate_factor_alignment,
    contributions_from_factors,
    specialization_points,
    streak_points,
    tier_for_score,
)
from sharp_edge.services.factors import FactorCategory, FactorUnit, SharpFactor
from sharp_edge.services.prediction_heads import PickSide


class TestSignals:
    def test_perfect_pick_is_legendary(self):
        result = calculate_confluence_score(ConfluenceInput(
            edge_score=10.0,
            current_win_streak=5,
            factors_on_pick_side=4,
            total_factors=4,
            specialization_win_rate=60.0,
            specialization_sample_size=20,
        ))
        assert result.confluence_score == 100.0
        assert result.tier is ConfluenceTier.LEGENDARY
        assert result.breakdown.alignment_pct == 100

    def test_edge_only(self):
        result = calculate_confluence_score(ConfluenceInput(edge_score=5.0))
        assert result.confluence_score == 17.5
        assert result.tier is ConfluenceTier.COMMON
        assert result.breakdown.edge_points == 17.5
        assert result.breakdown.alignment_pct == 0

    def test_edge_score_clamped(self):
        assert calculate_confluence_score(ConfluenceInput(edge_score=14.0)).breakdown.edge_points == 35.0
        assert calculate_confluence_score(ConfluenceInput(edge_score=-3.0)).breakdown.edge_points == 0.0

    def test_specialization_linear_between_45_and_60(self):
        assert specialization_points(52.5, 10) == pytest.approx(10.0)
        assert specialization_points(45.0, 50) == 0.0
        assert specialization_points(75.0, 50) == 20.0

    def test_specialization_needs_ten_picks(self):
        assert specialization_points(70.0, 9) == 0.0
        assert specialization_points(None, 40) == 0.0
        assert specialization_points(70.0, None) == 0.0

    def test_streak(self):
        assert streak_points(0) == 0.0
        assert streak_points(-2) == 0.0
        assert streak_points(3) == pytest.approx(6.0)
        assert streak_points(9) == 10.0

    def test_alignment(self):
        assert alignment_points(3, 4) == (pytest.approx(17.5), 75)
        assert alignment_points(2, 4) == (0.0, 50)
        assert alignment_points(1, 4) == (0.0, 25)
        assert alignment_points(0, 0) == (0.0, 0)

    def test_components_rounded_to_one_decimal(self):
        result = calculate_confluence_score(ConfluenceInput(edge_score=3.33, current_win_streak=1))
        assert result.breakdown.edge_points == 11.7
        assert result.breakdown.streak_points == 2.0
        assert result.confluence_score == 13.7


class TestTiers:
    @pytest.mark.parametrize(
        "score,tier",
        [
            (100.0, ConfluenceTier.LEGENDARY),
            (90.0, ConfluenceTier.LEGENDARY),
            (89.99, ConfluenceTier.ELITE),
            (75.0, ConfluenceTier.ELITE),
            (74.9, ConfluenceTier.RARE),
            (60.0, ConfluenceTier.RARE),
            (45.0, ConfluenceTier.UNCOMMON),
            (44.9, ConfluenceTier.COMMON),
            (0.0, ConfluenceTier.COMMON),
        ],
    )
    def test_cutoffs(self, score, tier):
        assert tier_for_score(score) is tier


class TestMonotonicity:
    """Score never drops when any one signal improves"""

    BASE = dict(
        edge_score=5.0,
        current_win_streak=2,
        factors_on_pick_side=3,
        total_factors=5,
        specialization_win_rate=50.0,
        specialization_sample_size=30,
    )

    def _scores(self, key, values):
        return [
            calculate_confluence_score(ConfluenceInput(**{**self.BASE, key: v})).confluence_score
            for v in values
        ]

    @staticmethod
    def _non_decreasing(xs):
        return all(a <= b for a, b in zip(xs, xs[1:]))

    def test_edge_score(self):
        assert self._non_decreasing(self._scores("edge_score", [x / 2 for x in range(-2, 24)]))

    def test_win_rate(self):
        assert self._non_decreasing(self._scores("specialization_win_rate", range(30, 80)))

    def test_streak(self):
        assert self._non_decreasing(self._scores("current_win_streak", range(-1, 10)))

    def test_alignment(self):
        assert self._non_decreasing(self._scores("factors_on_pick_side", range(0, 6)))


class TestFactorAlignment:
    def test_totals_pick(self):
        contributions = [
            TotalsContribution(over_score=2.0, under_score=1.0),
            TotalsContribution(over_score=0.0, under_score=3.0),
            TotalsContribution(over_score=1.0, under_score=1.0),   # no lean
            SpreadContribution(away_score=5.0, home_score=0.0),    # other market
        ]
        assert calculate_factor_alignment(contributions, PickSide.OVER) == FactorAlignment(1, 2)
        assert calculate_factor_alignment(contributions, PickSide.UNDER) == FactorAlignment(1, 2)

    def test_spread_pick(self):
        contributions = [
            SpreadContribution(away_score=0.0, home_score=2.0),
            SpreadContribution(away_score=0.0, home_score=0.5),
            SpreadContribution(away_score=3.0, home_score=0.0),
        ]
        assert calculate_factor_alignment(contributions, PickSide.HOME) == FactorAlignment(2, 3)
        assert calculate_factor_alignment(contributions, PickSide.AWAY) == FactorAlignment(1, 3)

    def test_empty(self):
        assert calculate_factor_alignment([], PickSide.OVER) == FactorAlignment(0, 0)

    def test_from_sharp_factors(self):
        factors = [
            SharpFactor("rest", FactorUnit.POINTS_SPREAD, FactorCategory.STRUCTURAL, 1.5),
            SharpFactor("pace", FactorUnit.POINTS_TOTAL, FactorCategory.STRUCTURAL, -2.0),
        ]
        spread, total = contributions_from_factors(factors)
        assert spread == SpreadContribution(away_score=0.0, home_score=1.5)
        assert total == TotalsContribution(over_score=0.0, under_score=2.0)

    def test_build_input_from_track_record(self):
        signals = build_confluence_input(
            7.0, FactorAlignment(3, 4), TrackRecord(win_rate=58.0, sample_size=40, win_streak=2)
        )
        assert signals.factors_on_pick_side == 3
        assert signals.total_factors == 4
        assert signals.specialization_win_rate == 58.0
        assert signals.current_win_streak == 2

    def test_build_input_without_history(self):
        signals = build_confluence_input(7.0, FactorAlignment(1, 1))
        assert signals.specialization_win_rate is None
        assert signals.current_win_streak == 0
