"""Kelly criterion sizing — the single source of truth for stake math.

All functions here are **pure**: no I/O, no logging.
Import from this module; never reimplement Kelly locally in services.

Design decisions
----------------
* **Fractional Kelly** (default 0.25× full Kelly) is applied because the
  model's probability estimates carry error, and overbetting is punished
  asymmetrically (geometric ruin vs. forgone EV).
* The stake is returned in currency, not as a fraction, so callers can
  map it to display units with :func:`kelly_to_units` against the same
  bankroll.
* Units follow the pipeline convention 1 unit = 1 % of bankroll, and the
  unit scale is discrete (0.5, 1, 2, 3, 4, 5).

Run tests with::

    pytest tests/test_kelly.py -v
"""

from __future__ import annotations

from typing import Final

from sharp_edge.core.odds_math import OddsDomainError, american_to_decimal, check_probability

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

#: Default fraction of full Kelly staked ("quarter Kelly").
DEFAULT_KELLY_FRACTION: Final[float] = 0.25

#: Bankroll-fraction breakpoints for the unit scale, as
#: ``(upper_bound_exclusive, units)`` pairs checked in order.
_UNIT_BREAKPOINTS: Final[tuple[tuple[float, float], ...]] = (
    (0.005, 0.5),
    (0.01, 1.0),
    (0.02, 2.0),
    (0.03, 3.0),
    (0.04, 4.0),
)

#: Units awarded at or above the last breakpoint.
MAX_UNITS: Final[float] = 5.0

#: Smallest unit size on the scale.
MIN_UNITS: Final[float] = 0.5


# ---------------------------------------------------------------------------
# Fractional Kelly
# ---------------------------------------------------------------------------


def calculate_kelly_stake(
    probability: float,
    american_odds: int | float,
    bankroll: float,
    kelly_fraction: float = DEFAULT_KELLY_FRACTION,
) -> float:
    """Fractional Kelly stake in currency.

    Full Kelly for a win/loss bet (Kelly 1956)::

        f*  =  (b · p − q) / b

    where ``b = decimal_odds − 1`` is the profit per unit and
    ``q = 1 − p``.  The stake is ``max(0, f* · kelly_fraction · bankroll)``,
    so it is exactly 0 whenever ``p`` does not exceed the implied
    probability of ``american_odds``.

    Args:
        probability: Estimated true win probability, in ``(0, 1)``.
        american_odds: Offered price.
        bankroll: Current bankroll, ``≥ 0``.
        kelly_fraction: Multiplier on full Kelly, in ``(0, 1]``.

    Returns:
        Stake in the bankroll's currency, ``≥ 0``.

    Raises:
        OddsDomainError: If ``probability`` is not in ``(0, 1)``,
            ``|american_odds| < 100``, ``bankroll < 0`` or ``kelly_fraction``
            is outside ``(0, 1]``.

    Examples::

        calculate_kelly_stake(0.55, -110, 1000) → 13.75
        calculate_kelly_stake(0.50, -110, 1000) →  0.00
    """
    check_probability(probability)
    if bankroll < 0.0:
        raise OddsDomainError(f"bankroll must be ≥ 0, got {bankroll!r}.")
    if not (0.0 < kelly_fraction <= 1.0):
        raise OddsDomainError(
            f"kelly_fraction must be in (0, 1], got {kelly_fraction!r}."
        )

    profit_per_unit = american_to_decimal(american_odds) - 1.0
    loss_prob = 1.0 - probability
    full_kelly = (profit_per_unit * probability - loss_prob) / profit_per_unit

    return max(0.0, full_kelly * kelly_fraction * bankroll)


# ---------------------------------------------------------------------------
# Utility — unit conversion
# ---------------------------------------------------------------------------


def kelly_to_units(kelly_stake: float, bankroll: float) -> float:
    """Map a Kelly stake onto the discrete 0.5–5 unit scale.

    The stake is first expressed as a fraction of bankroll, then bucketed::

        < 0.5 %  → 0.5u        < 2 % → 2u        < 4 % → 4u
        < 1 %    → 1u          < 3 % → 3u        ≥ 4 % → 5u

    This is a display/sizing convenience, not part of the EV math.

    Raises:
        OddsDomainError: If ``bankroll ≤ 0``.
    """
    if bankroll <= 0.0:
        raise OddsDomainError(f"bankroll must be > 0, got {bankroll!r}.")
    kelly_pct = kelly_stake / bankroll
    for upper, units in _UNIT_BREAKPOINTS:
        if kelly_pct < upper:
            return units
    return MAX_UNITS


def units_to_dollars(units: float, bankroll: float) -> float:
    """Convert unit-based sizing to a currency amount.

    One unit = 1 % of current bankroll.

    Examples::

        units_to_dollars(2.5, 1000.0)  →  25.0
        units_to_dollars(0.5, 5000.0)  →  25.0
    """
    return (units / 100.0) * bankroll
