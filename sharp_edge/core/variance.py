"""Context-aware outcome dispersion (σ) for spreads and totals.

Every function here is **pure**: no I/O, no logging.

A flat σ per league systematically overstates uncertainty for some games
and understates it for others.  The estimators below start from the
league baseline in :class:`~sharp_edge.core.league_config.LeagueParameters`
and apply multiplicative adjustments for the game context:

==========================  ==============  ==============
Context                     spread σ        total σ
==========================  ==============  ==============
basketball, fast pace       ×1.05           ×1.10
basketball, slow pace       ×0.95           ×0.90
basketball, altitude        ×1.08           ×1.05
basketball, back-to-back    ×1.03           —
basketball, lineup doubt    ×(1 + 0.15·u)   —
basketball, volatile refs   —               ×1.08
football, wind > 15 mph     ×1.10           ×1.08
football, precip. > 0.3     ×1.12           ×1.10
baseball, bullpen doubt     —               ×1.15
==========================  ==============  ==============

A trailing empirical σ, when supplied, is blended in at 30 %.

Run tests with::

    pytest tests/test_variance.py -v
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Sequence

import numpy as np

from sharp_edge.core.game_interface import (
    INJURY_DOUBTFUL,
    INJURY_QUESTIONABLE,
    GameInput,
    WeatherInfo,
)
from sharp_edge.core.league_config import (
    SPORT_BASEBALL,
    SPORT_FOOTBALL,
    LeagueParameters,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

#: Weight of a trailing empirical σ in the blended estimate.
RECENT_SIGMA_WEIGHT: Final[float] = 0.30

#: Lineup-uncertainty score added per questionable/doubtful player.
UNCERTAINTY_PER_INJURY: Final[float] = 0.2

#: Minimum sample before a historical σ is trusted.
MIN_HISTORICAL_SAMPLES: Final[int] = 10

_WIND_THRESHOLD_MPH: Final[float] = 15.0
_PRECIP_THRESHOLD: Final[float] = 0.3
_INJURY_UNCERTAINTY_SPREAD_THRESHOLD: Final[float] = 0.3
_INJURY_UNCERTAINTY_BULLPEN_THRESHOLD: Final[float] = 0.4
_REF_VOLATILITY_THRESHOLD: Final[float] = 0.5


@dataclass(frozen=True, slots=True)
class VarianceContext:
    """Inputs to the σ estimators, built from a :class:`GameInput`.

    Attributes:
        sport: Sport identifier.
        league: League code.
        pace: Average possessions per game of the two teams.
        is_back_to_back: Either team is on the second night of a
            back-to-back.
        altitude: Game is played at a high-altitude venue.
        weather: Outdoor conditions, if any.
        injury_uncertainty: Lineup uncertainty score in ``[0, 1]``.
        ref_crew_volatility: Referee crew volatility score in ``[0, 1]``.
        recent_sigma_spread: Trailing empirical σ of the margin.
        recent_sigma_total: Trailing empirical σ of the total.
    """

    sport: str
    league: str
    pace: float | None = None
    is_back_to_back: bool = False
    altitude: bool = False
    weather: WeatherInfo | None = None
    injury_uncertainty: float = 0.0
    ref_crew_volatility: float = 0.0
    recent_sigma_spread: float | None = None
    recent_sigma_total: float | None = None


# ---------------------------------------------------------------------------
# Context construction
# ---------------------------------------------------------------------------


def build_variance_context(game: GameInput) -> VarianceContext:
    """Extract the dispersion-relevant context from a game snapshot."""
    home_stats = game.home_team.stats
    away_stats = game.away_team.stats

    pace = None
    if home_stats.pace is not None:
        away_pace = away_stats.pace if away_stats.pace is not None else home_stats.pace
        pace = (home_stats.pace + away_pace) / 2.0

    uncertain = sum(
        1 for inj in game.injuries
        if inj.status in (INJURY_QUESTIONABLE, INJURY_DOUBTFUL)
    )

    return VarianceContext(
        sport=game.sport,
        league=game.league,
        pace=pace,
        is_back_to_back=home_stats.is_back_to_back or away_stats.is_back_to_back,
        altitude=game.is_altitude_venue(),
        weather=game.weather,
        injury_uncertainty=min(uncertain * UNCERTAINTY_PER_INJURY, 1.0),
        ref_crew_volatility=game.ref_crew_volatility or 0.0,
        recent_sigma_spread=game.recent_sigma_spread,
        recent_sigma_total=game.recent_sigma_total,
    )


# ---------------------------------------------------------------------------
# Estimators
# ---------------------------------------------------------------------------


def _base_params(context: VarianceContext) -> LeagueParameters:
    params = LeagueParameters.for_league(context.sport, context.league)
    if params.spread_sigma <= 0.0 or params.total_sigma <= 0.0:
        raise ValueError(
            f"Base sigma must be > 0 for {context.sport}:{context.league}, "
            f"got ({params.spread_sigma!r}, {params.total_sigma!r})."
        )
    return params


def _pace_multiplier(
    context: VarianceContext,
    params: LeagueParameters,
    fast: float,
    slow: float,
) -> float:
    if context.pace is None or params.pace_high <= 0.0:
        return 1.0
    if context.pace > params.pace_high:
        return fast
    if context.pace < params.pace_low:
        return slow
    return 1.0


def _blend_recent(sigma: float, recent: float | None) -> float:
    if recent is not None and recent > 0.0:
        return (1.0 - RECENT_SIGMA_WEIGHT) * sigma + RECENT_SIGMA_WEIGHT * recent
    return sigma


def estimate_sigma_spread(context: VarianceContext) -> float:
    """σ of the final margin for this game context.  Always ``> 0``."""
    params = _base_params(context)
    sigma = params.spread_sigma
    uncertainty = min(max(context.injury_uncertainty, 0.0), 1.0)

    if params.is_basketball():
        sigma *= _pace_multiplier(context, params, fast=1.05, slow=0.95)
        if context.altitude:
            sigma *= 1.08
        if context.is_back_to_back:
            sigma *= 1.03
        if uncertainty > _INJURY_UNCERTAINTY_SPREAD_THRESHOLD:
            sigma *= 1.0 + uncertainty * 0.15

    if params.sport == SPORT_FOOTBALL and context.weather is not None:
        if (context.weather.wind or 0.0) > _WIND_THRESHOLD_MPH:
            sigma *= 1.10
        if (context.weather.precipitation or 0.0) > _PRECIP_THRESHOLD:
            sigma *= 1.12

    return _blend_recent(sigma, context.recent_sigma_spread)


def estimate_sigma_total(context: VarianceContext) -> float:
    """σ of the combined score for this game context.  Always ``> 0``."""
    params = _base_params(context)
    sigma = params.total_sigma

    if params.is_basketball():
        # Pace moves totals more than margins: both teams get the extra trips.
        sigma *= _pace_multiplier(context, params, fast=1.10, slow=0.90)
        if context.altitude:
            sigma *= 1.05
        if context.ref_crew_volatility > _REF_VOLATILITY_THRESHOLD:
            sigma *= 1.08

    if params.sport == SPORT_FOOTBALL and context.weather is not None:
        if (context.weather.wind or 0.0) > _WIND_THRESHOLD_MPH:
            sigma *= 1.08
        if (context.weather.precipitation or 0.0) > _PRECIP_THRESHOLD:
            sigma *= 1.10

    if params.sport == SPORT_BASEBALL:
        if context.injury_uncertainty > _INJURY_UNCERTAINTY_BULLPEN_THRESHOLD:
            sigma *= 1.15

    return _blend_recent(sigma, context.recent_sigma_total)


def estimate_variance(context: VarianceContext) -> tuple[float, float]:
    """Return ``(sigma_spread, sigma_total)`` for the context."""
    return estimate_sigma_spread(context), estimate_sigma_total(context)


# ---------------------------------------------------------------------------
# Historical calibration
# ---------------------------------------------------------------------------


def calculate_historical_sigma(
    results: Sequence[tuple[float, float]],
) -> float:
    """Empirical σ of margin residuals for calibration.

    Args:
        results: ``(actual_margin, closing_margin)`` pairs, where
            ``closing_margin`` is the home margin implied by the closing
            spread (``−closing_spread``).

    Returns:
        Population standard deviation of ``actual − closing``, or ``0.0``
        when fewer than :data:`MIN_HISTORICAL_SAMPLES` results exist (the
        estimators ignore a zero trailing σ).
    """
    if len(results) < MIN_HISTORICAL_SAMPLES:
        return 0.0
    arr = np.asarray(results, dtype=float)
    errors = arr[:, 0] - arr[:, 1]
    return float(np.std(errors))
