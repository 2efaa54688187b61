"""
Confluence scoring — a 0-100 quality score and rarity tier for a pick.

Computed after a pick is made, from four signals:

    ==================  ==========  ==========================================
    Signal              Max points  Scale
    ==================  ==========  ==========================================
    Edge strength       35          edge score 0-10, linear
    Specialisation      20          win rate 45% -> 60%, linear; 10-pick min
    Streak              10          0 -> 5 straight wins, linear
    Factor alignment    35          50% -> 100% of factors agreeing, linear
    ==================  ==========  ==========================================

Tiers: Legendary >= 90, Elite >= 75, Rare >= 60, Uncommon >= 45, else
Common.  The tier is read off the unrounded score; the reported score and
each component are rounded half-up to one decimal.

Units risked never affect the tier.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple, Union

from sharp_edge.services.factors import FactorUnit, SharpFactor
from sharp_edge.services.prediction_heads import PickSide

EDGE_POINTS_MAX = 35.0
SPECIALIZATION_POINTS_MAX = 20.0
STREAK_POINTS_MAX = 10.0
ALIGNMENT_POINTS_MAX = 35.0

SPECIALIZATION_MIN_SAMPLE = 10
SPECIALIZATION_RATE_FLOOR = 45.0
SPECIALIZATION_RATE_CEILING = 60.0
STREAK_CAP = 5

# (floor, tier) pairs checked top-down
_TIER_FLOORS = (
    (90.0, "Legendary"),
    (75.0, "Elite"),
    (60.0, "Rare"),
    (45.0, "Uncommon"),
)


class ConfluenceTier(str, Enum):
    COMMON = "Common"
    UNCOMMON = "Uncommon"
    RARE = "Rare"
    ELITE = "Elite"
    LEGENDARY = "Legendary"


@dataclass(frozen=True)
class ConfluenceInput:
    """
    Signals for one pick.

    ``specialization_win_rate`` is a percentage (0-100) for this wager
    type; ``None`` means no history.
    """

    edge_score: float
    current_win_streak: int = 0
    factors_on_pick_side: int = 0
    total_factors: int = 0
    specialization_win_rate: Optional[float] = None
    specialization_sample_size: Optional[int] = None


@dataclass(frozen=True)
class ConfluenceBreakdown:
    edge_points: float
    spec_points: float
    streak_points: float
    alignment_points: float
    alignment_pct: int


@dataclass(frozen=True)
class ConfluenceResult:
    confluence_score: float
    tier: ConfluenceTier
    breakdown: ConfluenceBreakdown


# ---------------------------------------------------------------------------
# Signals
# ---------------------------------------------------------------------------

def _round1(x: float) -> float:
    """Round half-up to one decimal."""
    return math.floor(x * 10.0 + 0.5) / 10.0


def edge_strength_points(edge_score: float) -> float:
    clamped = max(0.0, min(10.0, edge_score))
    return clamped / 10.0 * EDGE_POINTS_MAX


def specialization_points(
    win_rate: Optional[float],
    sample_size: Optional[int],
) -> float:
    if win_rate is None or sample_size is None or sample_size < SPECIALIZATION_MIN_SAMPLE:
        return 0.0
    if win_rate <= SPECIALIZATION_RATE_FLOOR:
        return 0.0
    if win_rate >= SPECIALIZATION_RATE_CEILING:
        return SPECIALIZATION_POINTS_MAX
    normalized = (win_rate - SPECIALIZATION_RATE_FLOOR) / (
        SPECIALIZATION_RATE_CEILING - SPECIALIZATION_RATE_FLOOR
    )
    return normalized * SPECIALIZATION_POINTS_MAX


def streak_points(win_streak: int) -> float:
    if win_streak <= 0:
        return 0.0
    return min(win_streak, STREAK_CAP) / STREAK_CAP * STREAK_POINTS_MAX


def alignment_points(factors_on_side: int, total_factors: int) -> Tuple[float, int]:
    """Return ``(points, display_pct)``.  A split or worse earns nothing."""
    if total_factors <= 0:
        return 0.0, 0
    share = factors_on_side / total_factors
    pct = int(math.floor(share * 100.0 + 0.5))
    if share <= 0.5:
        return 0.0, pct
    return (share - 0.5) / 0.5 * ALIGNMENT_POINTS_MAX, pct


def tier_for_score(score: float) -> ConfluenceTier:
    for floor, name in _TIER_FLOORS:
        if score >= floor:
            return ConfluenceTier(name)
    return ConfluenceTier.COMMON


def calculate_confluence_score(signals: ConfluenceInput) -> ConfluenceResult:
    edge = edge_strength_points(signals.edge_score)
    spec = specialization_points(
        signals.specialization_win_rate, signals.specialization_sample_size
    )
    streak = streak_points(signals.current_win_streak)
    align, align_pct = alignment_points(signals.factors_on_pick_side, signals.total_factors)

    score = edge + spec + streak + align
    return ConfluenceResult(
        confluence_score=_round1(score),
        tier=tier_for_score(score),
        breakdown=ConfluenceBreakdown(
            edge_points=_round1(edge),
            spec_points=_round1(spec),
            streak_points=_round1(streak),
            alignment_points=_round1(align),
            alignment_pct=align_pct,
        ),
    )


# ---------------------------------------------------------------------------
# Factor alignment
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TotalsContribution:
    """A factor's weighted lean on a total."""

    over_score: float = 0.0
    under_score: float = 0.0

    @property
    def net(self) -> float:
        return self.over_score - self.under_score


@dataclass(frozen=True)
class SpreadContribution:
    """A factor's weighted lean on a side (spread or moneyline)."""

    away_score: float = 0.0
    home_score: float = 0.0

    @property
    def net(self) -> float:
        return self.away_score - self.home_score


FactorContribution = Union[TotalsContribution, SpreadContribution]


@dataclass(frozen=True)
class FactorAlignment:
    factors_on_side: int
    total_factors: int


def calculate_factor_alignment(
    contributions: Iterable[FactorContribution],
    pick_side: PickSide,
) -> FactorAlignment:
    """
    Count the factors that lean the same way as the pick.

    Over/away count as the positive direction.  Factors with no net lean
    are left out of both counts, and contributions of the other market
    kind (a totals lean on a side pick, say) are ignored.
    """
    if pick_side in (PickSide.OVER, PickSide.UNDER):
        kind = TotalsContribution
    else:
        kind = SpreadContribution
    positive_pick = pick_side in (PickSide.OVER, PickSide.AWAY)

    on_side = 0
    total = 0
    for contribution in contributions:
        if not isinstance(contribution, kind):
            continue
        net = contribution.net
        if net == 0:
            continue
        total += 1
        if (net > 0) == positive_pick:
            on_side += 1
    return FactorAlignment(factors_on_side=on_side, total_factors=total)


@dataclass(frozen=True)
class TrackRecord:
    """Graded history for the wager type being picked."""

    win_rate: Optional[float] = None     # percentage, 0-100
    sample_size: Optional[int] = None
    win_streak: int = 0


def build_confluence_input(
    edge_score: float,
    alignment: FactorAlignment,
    record: Optional[TrackRecord] = None,
) -> ConfluenceInput:
    record = record or TrackRecord()
    return ConfluenceInput(
        edge_score=edge_score,
        current_win_streak=record.win_streak,
        factors_on_pick_side=alignment.factors_on_side,
        total_factors=alignment.total_factors,
        specialization_win_rate=record.win_rate,
        specialization_sample_size=record.sample_size,
    )


def contributions_from_factors(factors: Iterable[SharpFactor]) -> List[FactorContribution]:
    """
    Express sharp factors as directional contributions.

    Spread and win-probability factors measure the home side, so a
    positive contribution leans home.  Total factors lean over when
    positive.
    """
    out: List[FactorContribution] = []
    for f in factors:
        c = f.contribution
        if f.unit is FactorUnit.POINTS_TOTAL:
            out.append(TotalsContribution(over_score=max(c, 0.0), under_score=max(-c, 0.0)))
        else:
            out.append(SpreadContribution(away_score=max(-c, 0.0), home_score=max(c, 0.0)))
    return out
