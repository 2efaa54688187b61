"""
Tests for Kelly sizing
Run with: pytest tests/test_kelly.py -v
"""

import pytest

from sharp_edge.core.kelly import calculate_kelly_stake, kelly_to_units, units_to_dollars
from sharp_edge.core.odds_math import OddsDomainError, american_to_prob


class TestKellyStake:
    def test_quarter_kelly_example(self):
        assert calculate_kelly_stake(0.55, -110, 1000) == pytest.approx(13.75, abs=1e-9)

    @pytest.mark.parametrize("odds", [-250, -110, 100, 180])
    def test_zero_at_or_below_implied(self, odds):
        implied = american_to_prob(odds)
        assert calculate_kelly_stake(implied, odds, 1000) == pytest.approx(0.0, abs=1e-9)
        assert calculate_kelly_stake(implied - 0.05, odds, 1000) == 0.0

    @pytest.mark.parametrize("odds", [-200, -110, 150])
    def test_strictly_increasing_above_implied(self, odds):
        implied = american_to_prob(odds)
        probs = [implied + d for d in (0.01, 0.03, 0.06, 0.1)]
        stakes = [calculate_kelly_stake(p, odds, 1000) for p in probs]
        assert stakes[0] > 0
        assert all(a < b for a, b in zip(stakes, stakes[1:]))

    def test_full_kelly_is_four_times_quarter(self):
        quarter = calculate_kelly_stake(0.6, -110, 1000)
        full = calculate_kelly_stake(0.6, -110, 1000, kelly_fraction=1.0)
        assert full == pytest.approx(4 * quarter)

    @pytest.mark.parametrize("p", [0.0, 1.0])
    def test_degenerate_probability_raises(self, p):
        with pytest.raises(OddsDomainError):
            calculate_kelly_stake(p, -110, 1000)

    def test_negative_bankroll_raises(self):
        with pytest.raises(OddsDomainError):
            calculate_kelly_stake(0.55, -110, -1)

    @pytest.mark.parametrize("fraction", [0.0, -0.25, 1.5])
    def test_fraction_outside_range_raises(self, fraction):
        with pytest.raises(OddsDomainError):
            calculate_kelly_stake(0.55, -110, 1000, kelly_fraction=fraction)


class TestUnits:
    @pytest.mark.parametrize(
        "stake,expected",
        [
            (0.0, 0.5),
            (4.0, 0.5),
            (5.0, 1.0),
            (13.75, 2.0),
            (25.0, 3.0),
            (35.0, 4.0),
            (40.0, 5.0),
            (120.0, 5.0),
        ],
    )
    def test_unit_scale(self, stake, expected):
        assert kelly_to_units(stake, 1000) == expected

    def test_zero_bankroll_raises(self):
        with pytest.raises(OddsDomainError):
            kelly_to_units(10, 0)

    def test_units_to_dollars(self):
        assert units_to_dollars(2.5, 1000.0) == pytest.approx(25.0)
        assert units_to_dollars(0.5, 5000.0) == pytest.approx(25.0)
