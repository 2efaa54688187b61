"""
Game analysis orchestration.

Workflow per game:
    1. Predict the score before looking at prices (score model)
    2. Evaluate the spread, total and moneyline heads against the market
    3. If a head passed every gate, size it with fractional Kelly and
       format a pick record; otherwise record why the game is a PASS
    4. Optionally score the pick's confluence for display

Every step is appended to a reasoning trail that travels with the pick.

Configuration
-------------
Runtime knobs come from an explicit :class:`EngineConfig` passed by the
caller.  :meth:`EngineConfig.from_env` builds one from environment
variables (``.env`` is loaded via python-dotenv):

    STARTING_BANKROLL    bankroll in currency          (default 1000)
    KELLY_FRACTION       multiplier on full Kelly      (default 0.25)
    MIN_STRUCTURAL_PCT   edge attribution floor        (default 0.40)
    SLIPPAGE_CENTS       adverse price move to survive (default 3)
    ENABLE_MONEYLINE     "true" / "false"              (default true)

Error isolation
---------------
A PASS is a normal outcome and is logged at INFO.  In
:func:`analyze_slate`, an ``OddsDomainError`` on one game (bad odds, a
degenerate probability) is logged at WARNING and that game is skipped so
the rest of the slate still gets analysed.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from dotenv import load_dotenv

from sharp_edge.core.game_interface import BaseScoreModel, GameInput, ScorePrediction
from sharp_edge.core.kelly import (
    DEFAULT_KELLY_FRACTION,
    calculate_kelly_stake,
    kelly_to_units,
    units_to_dollars,
)
from sharp_edge.core.league_config import LeagueParameters
from sharp_edge.core.odds_math import DEFAULT_SLIPPAGE_CENTS, OddsDomainError
from sharp_edge.schemas import ConfluenceRecord, PickRecord
from sharp_edge.score_model import NBAScoreModel
from sharp_edge.services.confluence import (
    TrackRecord,
    build_confluence_input,
    calculate_confluence_score,
    calculate_factor_alignment,
    contributions_from_factors,
)
from sharp_edge.services.factors import SharpFactor
from sharp_edge.services.prediction_heads import (
    DEFAULT_MIN_STRUCTURAL_PCT,
    PickSide,
    PredictionHead,
    PredictionHeadsCalculator,
    ThreePredictionHeads,
    WagerType,
)

load_dotenv()

logger = logging.getLogger(__name__)

VERDICT_BET = "BET"
VERDICT_PASS = "PASS"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EngineConfig:
    bankroll: float = 1000.0
    kelly_fraction: float = DEFAULT_KELLY_FRACTION
    min_structural_pct: float = DEFAULT_MIN_STRUCTURAL_PCT
    slippage_cents: float = DEFAULT_SLIPPAGE_CENTS
    enable_moneyline: bool = True

    def __post_init__(self):
        if self.bankroll <= 0:
            raise ValueError(f"bankroll must be > 0, got {self.bankroll!r}")
        if not (0.0 < self.kelly_fraction <= 1.0):
            raise ValueError(f"kelly_fraction must be in (0, 1], got {self.kelly_fraction!r}")
        if not (0.0 <= self.min_structural_pct <= 1.0):
            raise ValueError(
                f"min_structural_pct must be in [0, 1], got {self.min_structural_pct!r}"
            )
        if self.slippage_cents < 0:
            raise ValueError(f"slippage_cents must be >= 0, got {self.slippage_cents!r}")

    @classmethod
    def from_env(cls) -> "EngineConfig":
        return cls(
            bankroll=float(os.getenv("STARTING_BANKROLL", "1000")),
            kelly_fraction=float(os.getenv("KELLY_FRACTION", str(DEFAULT_KELLY_FRACTION))),
            min_structural_pct=float(
                os.getenv("MIN_STRUCTURAL_PCT", str(DEFAULT_MIN_STRUCTURAL_PCT))
            ),
            slippage_cents=float(os.getenv("SLIPPAGE_CENTS", str(DEFAULT_SLIPPAGE_CENTS))),
            enable_moneyline=os.getenv("ENABLE_MONEYLINE", "true").lower() == "true",
        )


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

@dataclass
class GameAnalysis:
    """Complete analysis output for one game."""

    game_id: str
    verdict: str
    pass_reason: Optional[str]

    score_prediction: ScorePrediction
    heads: ThreePredictionHeads

    # Sizing (zero on a PASS)
    kelly_stake: float = 0.0
    recommended_units: float = 0.0
    stake_amount: float = 0.0

    pick: Optional[PickRecord] = None
    confluence: Optional[ConfluenceRecord] = None
    notes: List[str] = field(default_factory=list)

    @property
    def is_bet(self) -> bool:
        return self.verdict == VERDICT_BET


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _format_line(line: float) -> str:
    if line == 0:
        return "PK"
    return f"{line:+g}"


def format_selection(game: GameInput, head: PredictionHead) -> str:
    """Human-readable pick, e.g. ``"BOS -3.5"``, ``"OVER 221.5"``, ``"DEN ML"``."""
    if head.wager_type is WagerType.TOTAL:
        return f"{head.side.value.upper()} {head.offered_line:g}"

    team = game.home_team if head.side is PickSide.HOME else game.away_team
    if head.wager_type is WagerType.MONEYLINE:
        return f"{team.abbreviation} ML"
    return f"{team.abbreviation} {_format_line(head.offered_line)}"


def _describe_head(head: PredictionHead) -> str:
    return (
        f"{head.wager_type.value}: Δ={head.predicted_deviation:+.2f} "
        f"{head.side.value} p={head.win_probability:.3f} "
        f"@ {head.offered_odds:+.0f} EV={head.ev_percentage:+.2f}% -> {head.threshold_reason}"
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def analyze_game(
    game: GameInput,
    factors: Sequence[SharpFactor],
    league_params: Optional[LeagueParameters] = None,
    config: Optional[EngineConfig] = None,
    score_model: Optional[BaseScoreModel] = None,
    edge_score: Optional[float] = None,
    track_record: Optional[TrackRecord] = None,
) -> GameAnalysis:
    """
    Analyse one game end to end.

    Args:
        game: Immutable game snapshot.
        factors: Weighted signals from the factor-generation subsystem.
        league_params: Overrides the registry lookup for ``game.league``.
        config: Engine knobs; read from the environment when omitted.
        score_model: Any :class:`BaseScoreModel`.  Defaults to the
            possession model, which only covers basketball leagues.
        edge_score: 0-10 confidence score.  When given and a pick is made,
            the pick's confluence is scored too.
        track_record: Graded history for confluence specialisation/streak.

    Returns:
        GameAnalysis with verdict ``"BET"`` or ``"PASS"``.

    Raises:
        OddsDomainError: If the game's prices or the model's probabilities
            fall outside their mathematical domain.
        ValueError: If no ``score_model`` is given for a non-basketball
            league.
    """
    params = league_params or LeagueParameters.for_league(game.sport, game.league)
    config = config or EngineConfig.from_env()
    if score_model is None:
        if not params.is_basketball():
            raise ValueError(
                f"No default score model for {params.league} ({params.sport}); "
                "pass a score_model for non-basketball leagues."
            )
        score_model = NBAScoreModel(params)
    notes: List[str] = []

    prediction = score_model.predict_score(game)
    prediction.validate()
    notes.append(
        f"{score_model.model_name}: {game.away_team.abbreviation} "
        f"{prediction.away_score:.1f} @ {game.home_team.abbreviation} "
        f"{prediction.home_score:.1f} (σ spread {prediction.sigma_spread:.2f}, "
        f"σ total {prediction.sigma_total:.2f})"
    )

    heads = PredictionHeadsCalculator(
        game,
        prediction,
        list(factors),
        params,
        min_structural_pct=config.min_structural_pct,
        slippage_cents=config.slippage_cents,
        enable_moneyline=config.enable_moneyline,
    ).calculate()
    notes.extend(_describe_head(h) for h in heads.heads)

    best = heads.best_pick
    if best is None:
        pass_reason = " | ".join(
            f"{h.wager_type.value}: {h.threshold_reason}" for h in heads.heads
        )
        logger.info(
            "PASS: %s @ %s (%s)",
            game.away_team.abbreviation, game.home_team.abbreviation, pass_reason,
        )
        return GameAnalysis(
            game_id=game.game_id,
            verdict=VERDICT_PASS,
            pass_reason=pass_reason,
            score_prediction=prediction,
            heads=heads,
            notes=notes,
        )

    stake = calculate_kelly_stake(
        best.win_probability, best.offered_odds, config.bankroll, config.kelly_fraction
    )
    units = kelly_to_units(stake, config.bankroll)
    amount = units_to_dollars(units, config.bankroll)
    selection = format_selection(game, best)
    notes.append(
        f"Selected {selection} at {best.offered_odds:+.0f}: "
        f"Kelly {stake:.2f} of {config.bankroll:.2f} -> {units:g}u ({amount:.2f})"
    )

    confluence = None
    if edge_score is not None:
        alignment = calculate_factor_alignment(
            contributions_from_factors(best.factors), best.side
        )
        result = calculate_confluence_score(
            build_confluence_input(edge_score, alignment, track_record)
        )
        confluence = ConfluenceRecord.from_result(result)
        notes.append(f"Confluence {result.confluence_score:.1f} ({result.tier.value})")

    pick = PickRecord.from_head(best, selection, units, reasoning=notes, game_id=game.game_id)
    logger.info(
        "BET: %s @ %s — %s %.2fu (EV %+.2f%%)",
        game.away_team.abbreviation, game.home_team.abbreviation,
        selection, units, best.ev_percentage,
    )

    return GameAnalysis(
        game_id=game.game_id,
        verdict=VERDICT_BET,
        pass_reason=None,
        score_prediction=prediction,
        heads=heads,
        kelly_stake=stake,
        recommended_units=units,
        stake_amount=amount,
        pick=pick,
        confluence=confluence,
        notes=notes,
    )


def analyze_slate(
    games: Iterable[Tuple[GameInput, Sequence[SharpFactor]]],
    config: Optional[EngineConfig] = None,
    score_model: Optional[BaseScoreModel] = None,
) -> List[GameAnalysis]:
    """
    Analyse every ``(game, factors)`` pair independently.

    Games whose inputs are outside the odds domain are logged and skipped;
    one bad game never aborts the slate.
    """
    config = config or EngineConfig.from_env()
    results: List[GameAnalysis] = []
    skipped = 0

    for game, factors in games:
        try:
            results.append(
                analyze_game(game, factors, config=config, score_model=score_model)
            )
        except OddsDomainError as exc:
            logger.warning(
                "Skipping %s (%s @ %s): %s",
                game.game_id, game.away_team.abbreviation, game.home_team.abbreviation, exc,
            )
            skipped += 1
            continue

    bets = sum(1 for r in results if r.is_bet)
    logger.info(
        "Slate complete: %d analysed, %d bets, %d skipped",
        len(results), bets, skipped,
    )
    return results
