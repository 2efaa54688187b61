"""Game records and the score-model contract.

This module defines the data that flows **into** the engine (one immutable
:class:`GameInput` per analysis request) and the contract every score
model satisfies (:class:`BaseScoreModel`), together with its output DTO
(:class:`ScorePrediction`).

Design choices
--------------
* Every record is a frozen dataclass and every collection inside one is a
  tuple, so a ``GameInput`` built by the ingestion layer can be shared
  across threads or processes and is never mutated by the engine.
* Team statistics are all optional.  A missing statistic is **not** an
  error: score models fall back to league averages from
  :class:`~sharp_edge.core.league_config.LeagueParameters`.
* :class:`BaseScoreModel` is an ABC rather than a ``typing.Protocol`` so
  that the orchestrator can ``isinstance``-check injected models and model
  authors inherit the contract explicitly.

Run tests with::

    pytest tests/test_score_model.py -v
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Final, Mapping

from sharp_edge.core.odds_math import OddsDomainError

#: Venue substrings that identify high-altitude arenas.
ALTITUDE_VENUES: Final[tuple[str, ...]] = ("Denver", "Utah", "Salt Lake City")

#: Injury status strings used by the ingestion layer.
INJURY_OUT: Final[str] = "out"
INJURY_DOUBTFUL: Final[str] = "doubtful"
INJURY_QUESTIONABLE: Final[str] = "questionable"
INJURY_PROBABLE: Final[str] = "probable"

#: Typical price on both sides of a spread or total when none is quoted.
DEFAULT_LINE_ODDS: Final[int] = -110


# ---------------------------------------------------------------------------
# Input records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TeamStats:
    """Optional per-team statistics.

    Attributes:
        pace: Possessions per 48 minutes.
        offensive_rating: Points scored per 100 possessions.
        defensive_rating: Points allowed per 100 possessions.
        ppg: Points per game; rating fallback together with ``pace``.
        opp_ppg: Opponent points per game; defensive rating fallback.
        days_rest: Days since the previous game.
        is_back_to_back: True when the team played the previous day.
        travel_distance: Miles travelled to this game.
        lineup_net_rating: Net rating of the expected lineup (on/off).
    """

    pace: float | None = None
    offensive_rating: float | None = None
    defensive_rating: float | None = None
    ppg: float | None = None
    opp_ppg: float | None = None
    days_rest: int | None = None
    is_back_to_back: bool = False
    travel_distance: float | None = None
    lineup_net_rating: float | None = None


@dataclass(frozen=True, slots=True)
class TeamInfo:
    """One side of a game."""

    id: str
    name: str
    abbreviation: str
    stats: TeamStats = field(default_factory=TeamStats)

    def matches(self, team_ref: str | None) -> bool:
        """True if ``team_ref`` names this team by id or abbreviation."""
        return team_ref is not None and team_ref in (self.id, self.abbreviation)


@dataclass(frozen=True, slots=True)
class WeatherInfo:
    """Conditions for outdoor sports.  Wind in mph, precipitation 0–1."""

    temp: float | None = None
    wind: float | None = None
    precipitation: float | None = None


@dataclass(frozen=True, slots=True)
class InjuryInfo:
    """A single injury report entry.

    Attributes:
        player: Player name.
        team: Id or abbreviation of the player's team.  Entries without a
            team still count towards lineup uncertainty but are not charged
            to either side's score.
        status: One of ``out``, ``doubtful``, ``questionable``, ``probable``.
        impact: Expected minutes lost (basketball) or plays lost.
    """

    player: str
    status: str
    team: str | None = None
    impact: float | None = None
    position: str = ""


@dataclass(frozen=True, slots=True)
class GameInput:
    """Immutable snapshot of one game at analysis time.

    Market fields follow the home-team convention: ``spread`` is the home
    line (negative = home favoured), ``home_moneyline`` and
    ``away_moneyline`` are American prices.
    """

    game_id: str
    sport: str
    league: str
    home_team: TeamInfo
    away_team: TeamInfo

    # Market data (consensus across books)
    spread: float | None = None
    total: float | None = None
    home_moneyline: float | None = None
    away_moneyline: float | None = None
    spread_odds: float = DEFAULT_LINE_ODDS
    total_odds: float = DEFAULT_LINE_ODDS

    # Context
    venue: str | None = None
    is_neutral: bool = False
    weather: WeatherInfo | None = None
    injuries: tuple[InjuryInfo, ...] = ()
    ref_crew_volatility: float | None = None

    # Trailing empirical σ for these teams, if the caller tracks it
    recent_sigma_spread: float | None = None
    recent_sigma_total: float | None = None

    def is_altitude_venue(self) -> bool:
        """True when the venue is one of the high-altitude arenas."""
        return self.venue is not None and any(v in self.venue for v in ALTITUDE_VENUES)

    def injuries_for(self, team: TeamInfo) -> tuple[InjuryInfo, ...]:
        """Injuries attributed to ``team``."""
        return tuple(inj for inj in self.injuries if team.matches(inj.team))


# ---------------------------------------------------------------------------
# Output records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SideAdjustments:
    """Contextual point adjustments applied to one side's score.

    ``breakdown`` preserves insertion order (home advantage, rest, travel,
    altitude, lineup, injuries) for explainability.
    """

    breakdown: Mapping[str, float]
    total_effect: float

    @classmethod
    def from_breakdown(cls, breakdown: Mapping[str, float]) -> SideAdjustments:
        return cls(breakdown=dict(breakdown), total_effect=sum(breakdown.values()))


@dataclass(frozen=True)
class ScorePrediction:
    """Pre-market expected score for both teams.

    Attributes:
        home_score: Predicted home points.
        away_score: Predicted away points.
        true_spread: ``home_score − away_score``.
        true_total: ``home_score + away_score``.
        win_prob_true: ``Φ(−true_spread / sigma_spread)``, the probability
            that the final home margin falls below zero.  Strictly in
            ``(0, 1)``.
        sigma_spread: σ of the final margin, ``> 0``.
        sigma_total: σ of the combined score, ``> 0``.
        pace: Predicted possessions.
        home_adjustments: Context adjustments for the home side.
        away_adjustments: Context adjustments for the away side.
        home_off_rating / home_def_rating / away_off_rating /
        away_def_rating: Ratings actually used, after fallbacks.
    """

    home_score: float
    away_score: float
    true_spread: float
    true_total: float
    win_prob_true: float
    sigma_spread: float
    sigma_total: float
    pace: float
    home_adjustments: SideAdjustments
    away_adjustments: SideAdjustments
    home_off_rating: float
    home_def_rating: float
    away_off_rating: float
    away_def_rating: float

    def validate(self) -> None:
        """Check the σ and probability invariants.

        Raises:
            OddsDomainError: If either σ is not positive or
                ``win_prob_true`` is outside ``(0, 1)``.
        """
        if self.sigma_spread <= 0.0 or self.sigma_total <= 0.0:
            raise OddsDomainError(
                f"ScorePrediction sigmas must be > 0 "
                f"(got spread={self.sigma_spread!r}, total={self.sigma_total!r})."
            )
        if not (0.0 < self.win_prob_true < 1.0):
            raise OddsDomainError(
                f"ScorePrediction.win_prob_true must be in (0, 1), "
                f"got {self.win_prob_true!r}."
            )

    def __repr__(self) -> str:
        return (
            f"ScorePrediction(home={self.home_score:.1f}, away={self.away_score:.1f}, "
            f"spread={self.true_spread:+.1f}, total={self.true_total:.1f}, "
            f"sigma=({self.sigma_spread:.2f}, {self.sigma_total:.2f}))"
        )


# ---------------------------------------------------------------------------
# Abstract score model
# ---------------------------------------------------------------------------


class BaseScoreModel(ABC):
    """Contract that every score model must satisfy.

    A score model predicts the game **before** looking at market prices
    ("predict first, price second").  Implementations must be stateless
    across calls: the same ``GameInput`` always yields the same
    ``ScorePrediction``, which makes games safe to evaluate in parallel.
    """

    #: Short identifier used in the reasoning trail.
    model_name: str = "BaseScoreModel"

    @abstractmethod
    def predict_score(self, game: GameInput) -> ScorePrediction:
        """Predict both teams' scores and the outcome dispersion."""
