"""
Three prediction heads — one per wager type.

Each head turns the factor contributions for its unit into a deviation
from the market, the deviation into a probability for the side it points
to, the probability into EV at the offered price, and finally runs five
gates:

    1. deviation   |Δ| clears the league floor (spread / total only)
    2. EV          EV clears the per-type floor (moneyline: fav vs. dog)
    3. odds range  a moneyline favourite is not laid beyond the limit
    4. slippage    still +EV if the price moves against us
    5. attribution enough of Δ comes from structural factors

Only heads passing all five are ranked.  Ranking is by EV, highest
first, with ties going to the fixed evaluation order spread, total,
moneyline.  Heads are never mutated; ranked copies are built with
``dataclasses.replace``.

A head failing its gates is an ordinary outcome, not an error.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple

from sharp_edge.core.game_interface import DEFAULT_LINE_ODDS, GameInput, ScorePrediction
from sharp_edge.core.league_config import LeagueParameters
from sharp_edge.core.odds_math import (
    DEFAULT_SLIPPAGE_CENTS,
    EdgeAttribution,
    SlippageResult,
    american_to_decimal,
    american_to_prob,
    calculate_edge_attribution,
    calculate_ev,
    check_probability,
    fair_market_logit,
    phi,
    sigmoid,
    test_slippage,
)
from sharp_edge.services.factors import FactorUnit, SharpFactor, combine_factors, factors_for_unit

DEFAULT_MIN_STRUCTURAL_PCT = 0.40

ALL_GATES_PASSED = "All gates passed"


class WagerType(str, Enum):
    SPREAD = "spread"
    TOTAL = "total"
    MONEYLINE = "moneyline"


class PickSide(str, Enum):
    HOME = "home"
    AWAY = "away"
    OVER = "over"
    UNDER = "under"


# Tie-break for equal EV: earlier in this order wins.
_EVALUATION_ORDER: Dict[WagerType, int] = {
    WagerType.SPREAD: 0,
    WagerType.TOTAL: 1,
    WagerType.MONEYLINE: 2,
}


@dataclass(frozen=True)
class PredictionHead:
    """
    Full evaluation of one wager type.

    ``win_probability`` is for ``side`` at ``offered_odds``; ``offered_line``
    is that side's line (``None`` for moneylines).  ``sigma`` is the
    dispersion used for the probability (``None`` for moneylines, which
    work in log-odds).
    """

    wager_type: WagerType
    side: PickSide
    market_line: float
    market_odds: float
    market_implied_prob: float
    predicted_deviation: float
    true_line: float
    factors: Tuple[SharpFactor, ...]
    win_probability: float
    sigma: Optional[float]
    offered_line: Optional[float]
    offered_odds: float
    offered_implied_prob: float
    decimal_payout: float
    expected_value: float
    ev_percentage: float
    slippage: SlippageResult
    attribution: EdgeAttribution
    meets_deviation_threshold: bool
    meets_ev_threshold: bool
    meets_odds_threshold: bool
    overall_threshold_met: bool
    threshold_reason: str
    rank: int = 0
    is_selected: bool = False

    @property
    def evaluation_order(self) -> int:
        return _EVALUATION_ORDER[self.wager_type]


@dataclass(frozen=True)
class ThreePredictionHeads:
    """The three heads plus the ranking over those that passed."""

    spread_head: PredictionHead
    total_head: PredictionHead
    moneyline_head: PredictionHead
    ranked: Tuple[PredictionHead, ...]
    best_pick: Optional[PredictionHead]
    highest_ev: float
    recommended_wager_type: Optional[WagerType]

    @property
    def any_threshold_met(self) -> bool:
        return self.best_pick is not None

    @property
    def heads(self) -> Tuple[PredictionHead, PredictionHead, PredictionHead]:
        return (self.spread_head, self.total_head, self.moneyline_head)


def rank_heads(heads: List[PredictionHead]) -> Tuple[PredictionHead, ...]:
    """Ranked copies of the passing heads, best first."""
    passing = [h for h in heads if h.overall_threshold_met]
    ordered = sorted(passing, key=lambda h: (-h.expected_value, h.evaluation_order))
    return tuple(
        replace(h, rank=i + 1, is_selected=(i == 0))
        for i, h in enumerate(ordered)
    )


class PredictionHeadsCalculator:
    """
    Evaluate spread, total and moneyline heads for one game.

    Inputs are read-only; ``calculate()`` may be called any number of
    times and always returns the same result.
    """

    def __init__(
        self,
        game: GameInput,
        score_prediction: ScorePrediction,
        factors: List[SharpFactor],
        league_params: LeagueParameters,
        min_structural_pct: float = DEFAULT_MIN_STRUCTURAL_PCT,
        slippage_cents: float = DEFAULT_SLIPPAGE_CENTS,
        enable_moneyline: bool = True,
    ):
        self.game = game
        self.score_prediction = score_prediction
        self.factors = list(factors)
        self.league_params = league_params
        self.min_structural_pct = min_structural_pct
        self.slippage_cents = slippage_cents
        self.enable_moneyline = enable_moneyline

    def calculate(self) -> ThreePredictionHeads:
        spread_head = self.calculate_spread_head()
        total_head = self.calculate_total_head()
        moneyline_head = self.calculate_moneyline_head()

        ranked = rank_heads([spread_head, total_head, moneyline_head])
        by_type = {h.wager_type: h for h in ranked}
        best = ranked[0] if ranked else None

        return ThreePredictionHeads(
            spread_head=by_type.get(WagerType.SPREAD, spread_head),
            total_head=by_type.get(WagerType.TOTAL, total_head),
            moneyline_head=by_type.get(WagerType.MONEYLINE, moneyline_head),
            ranked=ranked,
            best_pick=best,
            highest_ev=best.expected_value if best else 0.0,
            recommended_wager_type=best.wager_type if best else None,
        )

    # ------------------------------------------------------------------
    # Heads
    # ------------------------------------------------------------------

    def calculate_spread_head(self) -> PredictionHead:
        params = self.league_params
        market_line = self.game.spread if self.game.spread is not None else 0.0
        odds = self.game.spread_odds
        deltas = combine_factors(self.factors, FactorUnit.POINTS_SPREAD)
        deviation = deltas.total
        sigma = self.score_prediction.sigma_spread

        side = PickSide.HOME if deviation >= 0 else PickSide.AWAY
        probability = check_probability(phi(abs(deviation) / sigma), "spread cover probability")
        offered_line = market_line if side is PickSide.HOME else -market_line

        return self._build_head(
            wager_type=WagerType.SPREAD,
            side=side,
            market_line=market_line,
            market_odds=odds,
            deviation=deviation,
            # Home line: negative means home favoured, so a home edge lowers it
            true_line=market_line - deviation,
            unit=FactorUnit.POINTS_SPREAD,
            structural_delta=deltas.structural,
            market_delta=deltas.market,
            probability=probability,
            sigma=sigma,
            offered_line=offered_line,
            offered_odds=odds,
            meets_deviation=abs(deviation) >= params.min_spread_deviation,
            deviation_floor=params.min_spread_deviation,
            min_ev=params.min_ev_spread,
            meets_odds=True,
        )

    def calculate_total_head(self) -> PredictionHead:
        params = self.league_params
        market_line = (
            self.game.total if self.game.total is not None
            else self.score_prediction.true_total
        )
        odds = self.game.total_odds
        deltas = combine_factors(self.factors, FactorUnit.POINTS_TOTAL)
        deviation = deltas.total
        sigma = self.score_prediction.sigma_total

        side = PickSide.OVER if deviation >= 0 else PickSide.UNDER
        probability = check_probability(phi(abs(deviation) / sigma), "total probability")

        return self._build_head(
            wager_type=WagerType.TOTAL,
            side=side,
            market_line=market_line,
            market_odds=odds,
            deviation=deviation,
            true_line=market_line + deviation,
            unit=FactorUnit.POINTS_TOTAL,
            structural_delta=deltas.structural,
            market_delta=deltas.market,
            probability=probability,
            sigma=sigma,
            offered_line=market_line,
            offered_odds=odds,
            meets_deviation=abs(deviation) >= params.min_total_deviation,
            deviation_floor=params.min_total_deviation,
            min_ev=params.min_ev_total,
            meets_odds=True,
        )

    def calculate_moneyline_head(self) -> PredictionHead:
        params = self.league_params
        home_odds = self.game.home_moneyline if self.game.home_moneyline is not None else DEFAULT_LINE_ODDS
        away_odds = self.game.away_moneyline if self.game.away_moneyline is not None else DEFAULT_LINE_ODDS
        market_logit = fair_market_logit(home_odds, away_odds)
        deltas = combine_factors(self.factors, FactorUnit.LOGODDS_WIN)
        deviation = deltas.total
        true_logit = market_logit + deviation
        home_prob = sigmoid(true_logit)

        if deviation >= 0:
            side, probability, odds = PickSide.HOME, home_prob, home_odds
        else:
            side, probability, odds = PickSide.AWAY, 1.0 - home_prob, away_odds
        check_probability(probability, "moneyline win probability")

        # Laying a favourite beyond the limit is never worth the risk
        meets_odds = odds >= params.max_moneyline_lay if odds < 0 else True

        return self._build_head(
            wager_type=WagerType.MONEYLINE,
            side=side,
            market_line=market_logit,
            market_odds=odds,
            deviation=deviation,
            true_line=true_logit,
            unit=FactorUnit.LOGODDS_WIN,
            structural_delta=deltas.structural,
            market_delta=deltas.market,
            probability=probability,
            sigma=None,
            offered_line=None,
            offered_odds=odds,
            meets_deviation=True,
            deviation_floor=None,
            min_ev=params.min_ev_moneyline(odds),
            meets_odds=meets_odds,
            enabled=self.enable_moneyline,
        )

    # ------------------------------------------------------------------
    # Shared pricing and gating
    # ------------------------------------------------------------------

    def _build_head(
        self,
        wager_type: WagerType,
        side: PickSide,
        market_line: float,
        market_odds: float,
        deviation: float,
        true_line: float,
        unit: FactorUnit,
        structural_delta: float,
        market_delta: float,
        probability: float,
        sigma: Optional[float],
        offered_line: Optional[float],
        offered_odds: float,
        meets_deviation: bool,
        deviation_floor: Optional[float],
        min_ev: float,
        meets_odds: bool,
        enabled: bool = True,
    ) -> PredictionHead:
        ev = calculate_ev(probability, offered_odds)
        slippage = test_slippage(probability, offered_odds, self.slippage_cents)
        attribution = calculate_edge_attribution(
            deviation, structural_delta, market_delta, self.min_structural_pct
        )
        meets_ev = ev >= min_ev
        overall = (
            enabled
            and meets_deviation
            and meets_ev
            and meets_odds
            and slippage.passes
            and attribution.passes
        )

        reasons: List[str] = []
        if not enabled:
            reasons.append(f"{wager_type.value.capitalize()} disabled")
        if not meets_deviation and deviation_floor is not None:
            reasons.append(f"|Δ| {abs(deviation):.2f} < {deviation_floor}")
        if not meets_ev:
            reasons.append(f"EV {ev * 100:.2f}% < {min_ev * 100:.1f}%")
        if not meets_odds:
            reasons.append(
                f"Odds {offered_odds:+.0f} beyond lay limit "
                f"{self.league_params.max_moneyline_lay:+.0f}"
            )
        if not slippage.passes:
            reasons.append(
                f"Fails slippage test (EV {slippage.ev_worst * 100:.2f}% "
                f"at {slippage.worst_case_odds:+.0f})"
            )
        if not attribution.passes:
            reasons.append(attribution.reason)

        return PredictionHead(
            wager_type=wager_type,
            side=side,
            market_line=market_line,
            market_odds=market_odds,
            market_implied_prob=american_to_prob(market_odds),
            predicted_deviation=deviation,
            true_line=true_line,
            factors=tuple(factors_for_unit(self.factors, unit)),
            win_probability=probability,
            sigma=sigma,
            offered_line=offered_line,
            offered_odds=offered_odds,
            offered_implied_prob=american_to_prob(offered_odds),
            decimal_payout=american_to_decimal(offered_odds),
            expected_value=ev,
            ev_percentage=ev * 100.0,
            slippage=slippage,
            attribution=attribution,
            meets_deviation_threshold=meets_deviation,
            meets_ev_threshold=meets_ev,
            meets_odds_threshold=meets_odds,
            overall_threshold_met=overall,
            threshold_reason=ALL_GATES_PASSED if overall else "; ".join(reasons),
        )
