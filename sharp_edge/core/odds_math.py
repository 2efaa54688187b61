"""Fundamental odds mathematics — the single source of truth.

Every function here is **pure**: no I/O, no logging, no side effects.
Import from this module; never reimplement locally in services.

The pillars exposed are:

1. **Odds conversion** — American ↔ decimal ↔ implied probability.
2. **Vig removal** — proportional two-outcome normalisation.
3. **Probability transforms** — logit / sigmoid and the normal CDF ``phi``.
4. **Expected value** — EV per unit staked, slippage robustness test.
5. **Edge attribution** — structural vs. price share of a predicted edge.

Kelly sizing lives in :mod:`sharp_edge.core.kelly`.

Design decisions
----------------
* EV is always a *fraction of stake* (``0.05`` = +5 %).  Percentages only
  appear in display helpers whose names end in ``_percentage``.
* ``phi`` uses the Abramowitz–Stegun 7.1.26 error-function approximation
  (max. absolute error 1.5e-7 on erf, so ±7.5e-8 on Φ).  This keeps the
  core free of a scipy runtime dependency; the test-suite checks it
  against ``scipy.stats.norm.cdf``.
* Slippage is measured in **cents** on a continuous price scale: −110 →
  −113 is three cents worse, +150 → +147 is three cents worse, and +101
  moved three cents worse is −102 (the scale is continuous through even
  money).

Run tests with::

    pytest tests/test_odds_math.py -v
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Final

# ---------------------------------------------------------------------------
# Module-level constants
# ---------------------------------------------------------------------------

#: Abramowitz & Stegun 7.1.26 coefficients for erf(x), x ≥ 0.
_AS_A1: Final[float] = 0.254829592
_AS_A2: Final[float] = -0.284496736
_AS_A3: Final[float] = 1.421413741
_AS_A4: Final[float] = -1.453152027
_AS_A5: Final[float] = 1.061405429
_AS_P: Final[float] = 0.3275911

#: Smallest valid American price magnitude; |odds| < 100 is not a quote.
_MIN_ODDS_MAGNITUDE: Final[int] = 100

#: Conversion from slippage cents to American odds points on the
#: continuous cents scale.  One cent moves −110 to −111.
CENTS_TO_ODDS_POINTS: Final[float] = 1.0

#: Default adverse price move the slippage test must survive.
DEFAULT_SLIPPAGE_CENTS: Final[float] = 3.0

#: Below this absolute total delta the edge is treated as "no net edge"
#: and the structural share is reported as 0.
_ATTRIBUTION_ZERO_TOL: Final[float] = 1e-3


class OddsDomainError(ValueError):
    """Raised when a numeric input lies outside the mathematical domain.

    Examples: American odds of magnitude below 100 (including 0), a
    probability of 0 or 1 passed to :func:`logit`, or a model probability
    that evaluated to exactly 0 or 1.  Distinct from a wager failing its
    gates, which is a normal "pass" outcome and never raises.
    """


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SlippageResult:
    """EV of a bet at the current, best-case and worst-case price."""

    ev_current: float
    ev_best: float
    ev_worst: float
    passes: bool
    worst_case_odds: float
    best_case_odds: float


@dataclass(frozen=True, slots=True)
class EdgeAttribution:
    """Split of a predicted deviation into structural and price parts."""

    total_delta: float
    structural_delta: float
    price_delta: float
    structural_share: float
    passes: bool
    reason: str


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _require_american(odds: int | float) -> None:
    if abs(odds) < _MIN_ODDS_MAGNITUDE:
        raise OddsDomainError(
            f"Invalid American odds {odds!r}: magnitude must be ≥ 100. "
            "Check upstream odds parsing for data errors."
        )


def check_probability(p: float, name: str = "probability") -> float:
    """Return ``p`` unchanged if it lies strictly inside (0, 1).

    Raises:
        OddsDomainError: If ``p ≤ 0``, ``p ≥ 1`` or ``p`` is NaN.  The
            value is never clamped.
    """
    if not (0.0 < p < 1.0):
        raise OddsDomainError(f"{name} must be in (0, 1), got {p!r}.")
    return p


# ---------------------------------------------------------------------------
# Odds conversion
# ---------------------------------------------------------------------------


def american_to_prob(odds: int | float) -> float:
    """Raw implied probability from American odds (vig-inclusive).

    Examples::

        american_to_prob(-110) → 0.5238
        american_to_prob(+150) → 0.4000

    Raises:
        OddsDomainError: If ``|odds| < 100``.
    """
    _require_american(odds)
    if odds < 0:
        return abs(odds) / (abs(odds) + 100.0)
    return 100.0 / (odds + 100.0)


def american_to_decimal(odds: int | float) -> float:
    """Convert American odds to decimal payout (stake included).

    Examples::

        american_to_decimal(-110) → 1.9091   (risk 110 to win 100)
        american_to_decimal(+150) → 2.5000   (risk 100 to win 150)

    Raises:
        OddsDomainError: If ``|odds| < 100``.
    """
    _require_american(odds)
    if odds < 0:
        return 1.0 + 100.0 / abs(odds)
    return 1.0 + odds / 100.0


def prob_to_american(p: float) -> int:
    """Fair (no-vig) American price for a probability.

    ``p ≥ 0.5`` is quoted as a favourite (negative), otherwise as an
    underdog.  Rounded to the nearest integer; use for display.
    """
    check_probability(p)
    if p >= 0.5:
        return -round(p / (1.0 - p) * 100.0)
    return round((1.0 - p) / p * 100.0)


# ---------------------------------------------------------------------------
# Vig removal
# ---------------------------------------------------------------------------


def remove_vig(p_a: float, p_b: float) -> tuple[float, float]:
    """Remove the bookmaker margin from a two-sided market.

    When ``p_a + p_b ≤ 1`` the market is already fair (or inverted) and the
    inputs are returned unchanged.  Otherwise each side is divided by the
    overround so the pair sums to exactly 1.

    Example::

        remove_vig(0.55, 0.50) → (0.5238, 0.4762)
    """
    total = p_a + p_b
    if total <= 1.0:
        return p_a, p_b
    fair_a = p_a / total
    return fair_a, 1.0 - fair_a


def fair_market_logit(home_odds: int | float, away_odds: int | float) -> float:
    """Log-odds of the vig-removed home win probability."""
    fair_home, _ = remove_vig(american_to_prob(home_odds), american_to_prob(away_odds))
    return logit(fair_home)


# ---------------------------------------------------------------------------
# Probability transforms
# ---------------------------------------------------------------------------


def logit(p: float) -> float:
    """Log-odds ``ln(p / (1 − p))``.

    Raises:
        OddsDomainError: If ``p ≤ 0`` or ``p ≥ 1``.
    """
    check_probability(p, "logit argument")
    return math.log(p / (1.0 - p))


def sigmoid(z: float) -> float:
    """Inverse of :func:`logit`, numerically stable for large ``|z|``."""
    if z >= 0:
        return 1.0 / (1.0 + math.exp(-z))
    ez = math.exp(z)
    return ez / (1.0 + ez)


def _erf(x: float) -> float:
    sign = 1.0 if x >= 0 else -1.0
    x = abs(x)
    t = 1.0 / (1.0 + _AS_P * x)
    poly = ((((_AS_A5 * t + _AS_A4) * t + _AS_A3) * t + _AS_A2) * t + _AS_A1) * t
    return sign * (1.0 - poly * math.exp(-x * x))


def phi(x: float) -> float:
    """Standard normal CDF Φ(x) via the A&S error-function approximation."""
    return 0.5 * (1.0 + _erf(x / math.sqrt(2.0)))


# ---------------------------------------------------------------------------
# Expected value
# ---------------------------------------------------------------------------


def calculate_ev(
    probability: float,
    american_odds: int | float,
    stake: float = 1.0,
) -> float:
    """Expected profit of a bet: ``p · decimal · stake − stake``.

    Breakeven (EV = 0) occurs exactly when ``probability`` equals the raw
    implied probability of ``american_odds``.

    Examples::

        calculate_ev(0.55, -110) →  0.0500
        calculate_ev(0.40, +150) →  0.0000
    """
    return probability * american_to_decimal(american_odds) * stake - stake


def calculate_ev_percentage(probability: float, american_odds: int | float) -> float:
    """EV per unit staked expressed as a percentage (display only)."""
    return calculate_ev(probability, american_odds) * 100.0


# ---------------------------------------------------------------------------
# Slippage
# ---------------------------------------------------------------------------


def shift_odds(american_odds: int | float, cents: float) -> float:
    """Move a price ``cents`` along the continuous cents scale.

    Positive ``cents`` improves the price for the bettor, negative worsens
    it.  The scale maps +100 and −100 to the same point, so a move across
    even money stays monotone in payout::

        shift_odds(-110, -3) → -113
        shift_odds(+150, -3) → +147
        shift_odds(+101, -3) → -102
    """
    _require_american(american_odds)
    position = american_odds - 100.0 if american_odds > 0 else american_odds + 100.0
    position += cents * CENTS_TO_ODDS_POINTS
    if position >= 0:
        return position + 100.0
    return position - 100.0


def test_slippage(
    probability: float,
    american_odds: int | float,
    slippage_cents: float = DEFAULT_SLIPPAGE_CENTS,
) -> SlippageResult:
    """Check that a bet stays +EV if the price moves against the bettor.

    EV is recomputed at ``±slippage_cents``.  The test passes only when the
    worst-case EV is strictly positive.  Because payout is monotone in the
    cents scale, ``ev_worst ≤ ev_current ≤ ev_best`` always holds.
    """
    worst_odds = shift_odds(american_odds, -slippage_cents)
    best_odds = shift_odds(american_odds, slippage_cents)
    ev_worst = calculate_ev(probability, worst_odds)
    return SlippageResult(
        ev_current=calculate_ev(probability, american_odds),
        ev_best=calculate_ev(probability, best_odds),
        ev_worst=ev_worst,
        passes=ev_worst > 0.0,
        worst_case_odds=worst_odds,
        best_case_odds=best_odds,
    )


# Not a pytest test despite the name.
test_slippage.__test__ = False  # type: ignore[attr-defined]


# ---------------------------------------------------------------------------
# Edge attribution
# ---------------------------------------------------------------------------


def calculate_edge_attribution(
    total_delta: float,
    structural_delta: float,
    price_delta: float,
    min_structural_pct: float,
    max_structural_pct: float = 1.0,
) -> EdgeAttribution:
    """Require the predicted edge to come mainly from structural factors.

    ``structural_share = |structural_delta| / |total_delta|``, or 0 when
    ``|total_delta|`` is effectively zero (a legitimate "no net edge"
    case, not an error).  The share is capped at 1.0: when market factors
    pull against the structural ones the whole net edge is structural.
    The rule passes iff the share lies in
    ``[min_structural_pct, max_structural_pct]``.

    Args:
        total_delta: Full predicted deviation Δ.
        structural_delta: Part of Δ from non-price (structural) factors.
        price_delta: Part of Δ from market/price factors.
        min_structural_pct: Minimum structural share, e.g. 0.40.
        max_structural_pct: Maximum structural share (default: no cap).
    """
    if abs(total_delta) > _ATTRIBUTION_ZERO_TOL:
        share = min(abs(structural_delta) / abs(total_delta), 1.0)
    else:
        share = 0.0

    passes = min_structural_pct <= share <= max_structural_pct
    if passes:
        reason = f"Structural edge {share:.1%}"
    elif share < min_structural_pct:
        reason = f"Only {share:.1%} structural edge (need {min_structural_pct:.0%}+)"
    else:
        reason = f"Too much structural edge {share:.1%} (max {max_structural_pct:.0%})"

    return EdgeAttribution(
        total_delta=total_delta,
        structural_delta=structural_delta,
        price_delta=price_delta,
        structural_share=share,
        passes=passes,
        reason=reason,
    )
