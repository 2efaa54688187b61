"""League-level parameters — all league-specific constants in one place.

This module is the **registry** for every constant that differs between
leagues: outcome dispersion baselines, gating thresholds, and the league
averages the score model falls back to.  Nowhere else in the codebase
should these numbers be hard-coded.

Architecture
------------
:class:`LeagueParameters` is a frozen dataclass.  Named constructors
(:meth:`LeagueParameters.nba`, :meth:`LeagueParameters.nfl`, ...) return
pre-populated instances, and :meth:`LeagueParameters.for_league` resolves
a ``(sport, league)`` pair, falling back to the NBA.  To add a league:

1. Add a ``@classmethod`` constructor here.
2. Register it in ``_REGISTRY`` at the bottom of the module.

No field here is ever ``None``.  Concepts that do not apply to a sport
(possessions in baseball, say) are set to ``0.0`` and the consuming code
checks :meth:`LeagueParameters.is_basketball` before using them.

Typical usage::

    from sharp_edge.core.league_config import LeagueParameters

    params = LeagueParameters.for_league("basketball", "NBA")

    # Override a single threshold for an A/B run:
    from dataclasses import replace
    strict = replace(params, min_ev_spread=0.03)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Final

#: Sport identifier strings used in game records.
SPORT_BASKETBALL: Final[str] = "basketball"
SPORT_FOOTBALL: Final[str] = "american_football"
SPORT_BASEBALL: Final[str] = "baseball"
SPORT_HOCKEY: Final[str] = "hockey"


@dataclass(frozen=True)
class LeagueParameters:
    """Immutable configuration bundle for a single league.

    Read-only during an analysis run.  Override via
    :func:`dataclasses.replace` for single-season or A/B-test tweaks.

    Attributes:
        sport: Sport identifier (``"basketball"``, ``"american_football"``,
            ``"baseball"``, ``"hockey"``).
        league: League code (``"NBA"``, ``"NCAAB"``, ...).

        --- Dispersion baselines ---
        spread_sigma: Base standard deviation of the final margin, in the
            league's scoring unit (points / runs / goals).
        total_sigma: Base standard deviation of the combined score.
        pace_low: Pace below which a game counts as slow (basketball).
        pace_high: Pace above which a game counts as fast (basketball).

        --- Gating thresholds ---
        min_spread_deviation: Minimum ``|Δ|`` in points to bet a spread.
        min_total_deviation: Minimum ``|Δ|`` in points to bet a total.
        min_ev_spread: Minimum EV (fraction of stake) for a spread bet.
        min_ev_total: Minimum EV for a total bet.
        min_ev_moneyline_dog: Minimum EV when backing an underdog.
        min_ev_moneyline_fav: Minimum EV when laying a favourite.  Higher
            than the dog floor because favourite prices leave less room
            for model error.
        max_moneyline_lay: Most negative American price the engine will
            lay on a favourite, e.g. ``-250``.

        --- Score-model fallbacks ---
        league_avg_rating: Offensive/defensive rating (points per 100
            possessions) used when a team's rating is missing.
        league_avg_pace: Possessions per game used when pace is missing.
        home_advantage_pts: Home-court adjustment added to the home side.
    """

    # Identity
    sport: str
    league: str

    # Dispersion
    spread_sigma: float
    total_sigma: float
    pace_low: float
    pace_high: float

    # Gating
    min_spread_deviation: float
    min_total_deviation: float
    min_ev_spread: float
    min_ev_total: float
    min_ev_moneyline_dog: float
    min_ev_moneyline_fav: float
    max_moneyline_lay: float

    # Score-model fallbacks
    league_avg_rating: float
    league_avg_pace: float
    home_advantage_pts: float

    # ------------------------------------------------------------------ #
    #  Named constructors                                                  #
    # ------------------------------------------------------------------ #

    @classmethod
    def nba(cls) -> LeagueParameters:
        """Return the canonical NBA configuration.

        The gating thresholds here are the reference set; the other
        leagues scale their deviation floors by their σ ratio to the NBA.
        """
        return cls(
            sport=SPORT_BASKETBALL,
            league="NBA",
            spread_sigma=12.5,
            total_sigma=14.0,
            pace_low=95.0,
            pace_high=105.0,
            min_spread_deviation=0.75,
            min_total_deviation=2.0,
            min_ev_spread=0.015,
            min_ev_total=0.015,
            min_ev_moneyline_dog=0.025,
            min_ev_moneyline_fav=0.035,
            max_moneyline_lay=-250.0,
            league_avg_rating=110.0,
            league_avg_pace=100.0,
            home_advantage_pts=2.5,
        )

    @classmethod
    def ncaab(cls) -> LeagueParameters:
        """Return the NCAA D1 basketball configuration."""
        return cls(
            sport=SPORT_BASKETBALL,
            league="NCAAB",
            spread_sigma=13.5,
            total_sigma=15.0,
            pace_low=64.0,              # D1 median Adj.T. ≈ 68
            pace_high=72.0,
            min_spread_deviation=0.8,
            min_total_deviation=2.1,
            min_ev_spread=0.015,
            min_ev_total=0.015,
            min_ev_moneyline_dog=0.025,
            min_ev_moneyline_fav=0.035,
            max_moneyline_lay=-250.0,
            league_avg_rating=105.0,
            league_avg_pace=68.0,
            home_advantage_pts=3.09,
        )

    @classmethod
    def nfl(cls) -> LeagueParameters:
        """Return the NFL configuration."""
        return cls(
            sport=SPORT_FOOTBALL,
            league="NFL",
            spread_sigma=13.8,
            total_sigma=13.5,
            pace_low=0.0,
            pace_high=0.0,
            min_spread_deviation=0.70,
            min_total_deviation=1.5,
            min_ev_spread=0.015,
            min_ev_total=0.015,
            min_ev_moneyline_dog=0.025,
            min_ev_moneyline_fav=0.035,
            max_moneyline_lay=-250.0,
            league_avg_rating=0.0,
            league_avg_pace=0.0,
            home_advantage_pts=2.5,
        )

    @classmethod
    def ncaaf(cls) -> LeagueParameters:
        """Return the NCAA football configuration."""
        return cls(
            sport=SPORT_FOOTBALL,
            league="NCAAF",
            spread_sigma=14.5,
            total_sigma=14.0,
            pace_low=0.0,
            pace_high=0.0,
            min_spread_deviation=0.75,
            min_total_deviation=1.55,
            min_ev_spread=0.015,
            min_ev_total=0.015,
            min_ev_moneyline_dog=0.025,
            min_ev_moneyline_fav=0.035,
            max_moneyline_lay=-250.0,
            league_avg_rating=0.0,
            league_avg_pace=0.0,
            home_advantage_pts=2.5,
        )

    @classmethod
    def mlb(cls) -> LeagueParameters:
        """Return the MLB configuration (run line / total runs)."""
        return cls(
            sport=SPORT_BASEBALL,
            league="MLB",
            spread_sigma=1.8,
            total_sigma=2.2,
            pace_low=0.0,
            pace_high=0.0,
            min_spread_deviation=0.11,
            min_total_deviation=0.3,
            min_ev_spread=0.015,
            min_ev_total=0.015,
            min_ev_moneyline_dog=0.025,
            min_ev_moneyline_fav=0.035,
            max_moneyline_lay=-250.0,
            league_avg_rating=0.0,
            league_avg_pace=0.0,
            home_advantage_pts=0.0,
        )

    @classmethod
    def nhl(cls) -> LeagueParameters:
        """Return the NHL configuration (puck line / total goals)."""
        return cls(
            sport=SPORT_HOCKEY,
            league="NHL",
            spread_sigma=1.2,
            total_sigma=1.5,
            pace_low=0.0,
            pace_high=0.0,
            min_spread_deviation=0.07,
            min_total_deviation=0.2,
            min_ev_spread=0.015,
            min_ev_total=0.015,
            min_ev_moneyline_dog=0.025,
            min_ev_moneyline_fav=0.035,
            max_moneyline_lay=-250.0,
            league_avg_rating=0.0,
            league_avg_pace=0.0,
            home_advantage_pts=0.0,
        )

    @classmethod
    def for_league(cls, sport: str, league: str) -> LeagueParameters:
        """Resolve ``(sport, league)`` to its parameters.

        Unknown pairs fall back to the NBA configuration, matching how the
        variance baselines have always been resolved.
        """
        factory = _REGISTRY.get((sport, league.upper()), LeagueParameters.nba)
        return factory()

    # ------------------------------------------------------------------ #
    #  Convenience accessors                                               #
    # ------------------------------------------------------------------ #

    def is_basketball(self) -> bool:
        """Return True if this league is a basketball league."""
        return self.sport == SPORT_BASKETBALL

    def min_ev_moneyline(self, american_odds: float) -> float:
        """EV floor for a moneyline at ``american_odds`` (fav vs. dog)."""
        if american_odds < 0:
            return self.min_ev_moneyline_fav
        return self.min_ev_moneyline_dog

    def neutral_site(self) -> LeagueParameters:
        """Return a copy with home advantage zeroed out."""
        return replace(self, home_advantage_pts=0.0)

    def __repr__(self) -> str:
        return (
            f"LeagueParameters(sport={self.sport!r}, league={self.league!r}, "
            f"sigma=({self.spread_sigma}, {self.total_sigma}), "
            f"min_dev=({self.min_spread_deviation}, {self.min_total_deviation}))"
        )


_REGISTRY: Final[dict[tuple[str, str], Callable[[], LeagueParameters]]] = {
    (SPORT_BASKETBALL, "NBA"): LeagueParameters.nba,
    (SPORT_BASKETBALL, "NCAAB"): LeagueParameters.ncaab,
    (SPORT_FOOTBALL, "NFL"): LeagueParameters.nfl,
    (SPORT_FOOTBALL, "NCAAF"): LeagueParameters.ncaaf,
    (SPORT_BASEBALL, "MLB"): LeagueParameters.mlb,
    (SPORT_HOCKEY, "NHL"): LeagueParameters.nhl,
}
