"""
Sharp factors — weighted signals that move the true line off the market.

Factor *generation* (research, reliability shrinkage, caps) lives in a
separate subsystem.  By the time a factor reaches this engine its
``contribution`` has already been clipped and reliability-weighted, so
the engine only aggregates by unit and category:

    - one unit per wager type (spread points, total points, win log-odds)
    - structural factors (lineup, matchup, context, ...) versus market
      factors (line movement, CLV), which edge attribution keeps apart

Contributions are summed as supplied and never re-clipped here.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Tuple


class FactorUnit(str, Enum):
    """Unit a factor's contribution is measured in."""

    POINTS_SPREAD = "points_spread"   # home - away margin
    POINTS_TOTAL = "points_total"     # combined score
    LOGODDS_WIN = "logodds_win"       # home win log-odds


class FactorCategory(str, Enum):
    STRUCTURAL = "structural"
    MARKET = "market"


@dataclass(frozen=True)
class SharpFactor:
    """One weighted signal supplied by the factor-generation subsystem."""

    name: str
    unit: FactorUnit
    category: FactorCategory
    contribution: float
    reasoning: str = ""

    def is_structural(self) -> bool:
        return self.category is FactorCategory.STRUCTURAL


@dataclass(frozen=True)
class FactorDeltas:
    """
    Aggregated deviation for one unit.

    ``total == structural + market`` up to float rounding.
    """

    unit: FactorUnit
    total: float
    structural: float
    market: float
    factor_count: int


def factors_for_unit(factors: Iterable[SharpFactor], unit: FactorUnit) -> List[SharpFactor]:
    return [f for f in factors if f.unit is unit]


def split_by_category(
    factors: Iterable[SharpFactor],
) -> Tuple[List[SharpFactor], List[SharpFactor]]:
    """Return ``(structural, market)`` factor lists, order preserved."""
    structural: List[SharpFactor] = []
    market: List[SharpFactor] = []
    for f in factors:
        (structural if f.is_structural() else market).append(f)
    return structural, market


def combine_factors(factors: Iterable[SharpFactor], unit: FactorUnit) -> FactorDeltas:
    """Sum the contributions of ``unit`` factors, split by category."""
    relevant = factors_for_unit(factors, unit)
    structural, market = split_by_category(relevant)
    structural_delta = sum(f.contribution for f in structural)
    market_delta = sum(f.contribution for f in market)
    return FactorDeltas(
        unit=unit,
        total=sum(f.contribution for f in relevant),
        structural=structural_delta,
        market=market_delta,
        factor_count=len(relevant),
    )
