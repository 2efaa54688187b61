"""
Possession-based NBA score model

Predicts both teams' points before any market price is consulted:

- Pace blended 52/48 toward the home team, slowed on back-to-backs and
  nudged up at altitude
- Points = pace x own offensive efficiency x opponent defensive efficiency
- Contextual adjustments per side (home court, rest, travel, altitude,
  lineup quality, injuries), each kept for the reasoning trail
- Win probability from the normal CDF over the context-aware spread sigma

Missing statistics are never an error: ratings fall back to
points-per-game over pace, then to the league average.
"""

from typing import Dict, Optional

from sharp_edge.core.game_interface import (
    INJURY_OUT,
    BaseScoreModel,
    GameInput,
    ScorePrediction,
    SideAdjustments,
    TeamInfo,
)
from sharp_edge.core.league_config import LeagueParameters
from sharp_edge.core.odds_math import check_probability, phi
from sharp_edge.core.variance import build_variance_context, estimate_variance


class NBAScoreModel(BaseScoreModel):
    """
    Expected score for an NBA-style possession game.

    All adjustment sizes are constructor arguments so a backtest can
    sweep them without touching the model.
    """

    model_name = "nba-possession-v1"

    def __init__(
        self,
        params: Optional[LeagueParameters] = None,
        home_pace_weight: float = 0.52,
        back_to_back_pace_drop: float = 2.0,
        altitude_pace_boost: float = 1.5,
        rest_penalty: float = 2.0,
        rest_bonus: float = 0.5,
        rest_bonus_days: int = 3,
        travel_penalty: float = 1.0,
        travel_threshold_miles: float = 1500.0,
        altitude_home_bonus: float = 1.5,
        altitude_away_penalty: float = 1.0,
        lineup_weight: float = 0.1,
        injury_minutes_threshold: float = 20.0,
        injury_points_per_48: float = 3.0,
    ):
        self.params = params or LeagueParameters.nba()
        self.home_pace_weight = home_pace_weight
        self.back_to_back_pace_drop = back_to_back_pace_drop
        self.altitude_pace_boost = altitude_pace_boost
        self.rest_penalty = rest_penalty
        self.rest_bonus = rest_bonus
        self.rest_bonus_days = rest_bonus_days
        self.travel_penalty = travel_penalty
        self.travel_threshold_miles = travel_threshold_miles
        self.altitude_home_bonus = altitude_home_bonus
        self.altitude_away_penalty = altitude_away_penalty
        self.lineup_weight = lineup_weight
        self.injury_minutes_threshold = injury_minutes_threshold
        self.injury_points_per_48 = injury_points_per_48

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    def predict_pace(self, game: GameInput) -> float:
        avg = self.params.league_avg_pace
        home = game.home_team.stats
        away = game.away_team.stats
        home_pace = home.pace if home.pace is not None else avg
        away_pace = away.pace if away.pace is not None else avg

        pace = self.home_pace_weight * home_pace + (1.0 - self.home_pace_weight) * away_pace
        if home.is_back_to_back or away.is_back_to_back:
            pace -= self.back_to_back_pace_drop
        if game.is_altitude_venue():
            pace += self.altitude_pace_boost
        return pace

    def _rating(
        self,
        rating: Optional[float],
        points: Optional[float],
        pace: Optional[float],
    ) -> float:
        if rating is not None:
            return rating
        if points is not None and pace:
            return points / pace * 100.0
        return self.params.league_avg_rating

    def offensive_rating(self, team: TeamInfo) -> float:
        s = team.stats
        return self._rating(s.offensive_rating, s.ppg, s.pace)

    def defensive_rating(self, team: TeamInfo) -> float:
        s = team.stats
        return self._rating(s.defensive_rating, s.opp_ppg, s.pace)

    def side_adjustments(
        self,
        game: GameInput,
        team: TeamInfo,
        is_home: bool,
        params: LeagueParameters,
    ) -> SideAdjustments:
        """Point adjustments for one side, in reasoning-trail order."""
        stats = team.stats
        breakdown: Dict[str, float] = {}

        breakdown["home_advantage"] = params.home_advantage_pts if is_home else 0.0

        if stats.is_back_to_back:
            breakdown["rest_penalty"] = -self.rest_penalty
        elif stats.days_rest is not None and stats.days_rest >= self.rest_bonus_days:
            breakdown["rest_bonus"] = self.rest_bonus

        if stats.travel_distance is not None and stats.travel_distance > self.travel_threshold_miles:
            breakdown["travel_penalty"] = -self.travel_penalty

        if game.is_altitude_venue():
            breakdown["altitude"] = (
                self.altitude_home_bonus if is_home else -self.altitude_away_penalty
            )

        if stats.lineup_net_rating is not None:
            breakdown["lineup_effect"] = stats.lineup_net_rating * self.lineup_weight

        # Only 'out' players with meaningful minutes move the score
        lost_minutes = sum(
            inj.impact for inj in game.injuries_for(team)
            if inj.status == INJURY_OUT
            and inj.impact is not None
            and inj.impact > self.injury_minutes_threshold
        )
        if lost_minutes > 0:
            breakdown["injury_penalty"] = -(lost_minutes / 48.0) * self.injury_points_per_48

        return SideAdjustments.from_breakdown(breakdown)

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    def predict_score(self, game: GameInput) -> ScorePrediction:
        params = self.params.neutral_site() if game.is_neutral else self.params
        pace = self.predict_pace(game)

        home_off = self.offensive_rating(game.home_team)
        home_def = self.defensive_rating(game.home_team)
        away_off = self.offensive_rating(game.away_team)
        away_def = self.defensive_rating(game.away_team)

        home_base = pace * (home_off / 100.0) * (away_def / 100.0)
        away_base = pace * (away_off / 100.0) * (home_def / 100.0)

        home_adj = self.side_adjustments(game, game.home_team, True, params)
        away_adj = self.side_adjustments(game, game.away_team, False, params)

        home_score = home_base + home_adj.total_effect
        away_score = away_base + away_adj.total_effect
        true_spread = home_score - away_score

        sigma_spread, sigma_total = estimate_variance(build_variance_context(game))
        win_prob = check_probability(
            phi(-true_spread / sigma_spread), "win_prob_true"
        )

        return ScorePrediction(
            home_score=home_score,
            away_score=away_score,
            true_spread=true_spread,
            true_total=home_score + away_score,
            win_prob_true=win_prob,
            sigma_spread=sigma_spread,
            sigma_total=sigma_total,
            pace=pace,
            home_adjustments=home_adj,
            away_adjustments=away_adj,
            home_off_rating=home_off,
            home_def_rating=home_def,
            away_off_rating=away_off,
            away_def_rating=away_def,
        )
