"""
Tests for game analysis orchestration
Run with: pytest tests/test_analysis.py -v
"""

import logging

import pytest

from sharp_edge.core.game_interface import (
    BaseScoreModel,
    GameInput,
    ScorePrediction,
    SideAdjustments,
    TeamInfo,
)
from sharp_edge.services.analysis import (
    VERDICT_BET,
    VERDICT_PASS,
    EngineConfig,
    analyze_game,
    analyze_slate,
)
from sharp_edge.services.confluence import TrackRecord
from sharp_edge.services.factors import FactorCategory, FactorUnit, SharpFactor


class FixedScoreModel(BaseScoreModel):
    """Returns the same prediction for every game"""

    model_name = "fixed"

    def __init__(self, sigma_spread=12.5, sigma_total=14.0):
        self.sigma_spread = sigma_spread
        self.sigma_total = sigma_total

    def predict_score(self, game):
        no_adj = SideAdjustments.from_breakdown({})
        return ScorePrediction(
            home_score=112.0,
            away_score=108.0,
            true_spread=4.0,
            true_total=220.0,
            win_prob_true=0.37,
            sigma_spread=self.sigma_spread,
            sigma_total=self.sigma_total,
            pace=99.0,
            home_adjustments=no_adj,
            away_adjustments=no_adj,
            home_off_rating=113.0,
            home_def_rating=109.0,
            away_off_rating=111.0,
            away_def_rating=112.0,
        )


def make_game(game_id="nba-nyk-bos", home=("BOS", "Boston Celtics"), **kwargs):
    defaults = dict(
        game_id=game_id,
        sport="basketball",
        league="NBA",
        home_team=TeamInfo("1", home[1], home[0]),
        away_team=TeamInfo("2", "New York Knicks", "NYK"),
        spread=-3.5,
        total=221.5,
    )
    defaults.update(kwargs)
    return GameInput(**defaults)


def factor(unit, value, category=FactorCategory.STRUCTURAL):
    return SharpFactor("signal", unit, category, value)


CONFIG = EngineConfig(bankroll=1000.0)


class TestBet:
    def test_home_spread_pick(self):
        analysis = analyze_game(
            make_game(), [factor(FactorUnit.POINTS_SPREAD, 4.0)],
            config=CONFIG, score_model=FixedScoreModel(),
        )

        assert analysis.verdict == VERDICT_BET
        assert analysis.is_bet
        assert analysis.pass_reason is None
        assert analysis.pick.selection == "BOS -3.5"
        assert analysis.pick.wager_type == "spread"
        assert analysis.pick.confidence == pytest.approx(0.6255, abs=1e-4)
        assert analysis.pick.offered_odds == -110
        assert analysis.kelly_stake == pytest.approx(53.4, abs=0.1)
        assert analysis.recommended_units == 5.0
        assert analysis.stake_amount == pytest.approx(50.0)
        assert analysis.pick.game_id == "nba-nyk-bos"

    def test_away_spread_pick(self):
        analysis = analyze_game(
            make_game(), [factor(FactorUnit.POINTS_SPREAD, -4.0)],
            config=CONFIG, score_model=FixedScoreModel(),
        )
        assert analysis.pick.selection == "NYK +3.5"

    def test_pick_em_line(self):
        analysis = analyze_game(
            make_game(spread=0.0), [factor(FactorUnit.POINTS_SPREAD, 4.0)],
            config=CONFIG, score_model=FixedScoreModel(),
        )
        assert analysis.pick.selection == "BOS PK"

    def test_total_pick(self):
        analysis = analyze_game(
            make_game(), [factor(FactorUnit.POINTS_TOTAL, 4.0)],
            config=CONFIG, score_model=FixedScoreModel(),
        )
        assert analysis.pick.selection == "OVER 221.5"
        assert analysis.pick.wager_type == "total"

    def test_under_pick(self):
        analysis = analyze_game(
            make_game(), [factor(FactorUnit.POINTS_TOTAL, -4.0)],
            config=CONFIG, score_model=FixedScoreModel(),
        )
        assert analysis.pick.selection == "UNDER 221.5"

    def test_moneyline_pick(self):
        game = make_game(home=("DEN", "Denver Nuggets"), home_moneyline=150, away_moneyline=-170)
        analysis = analyze_game(
            game, [factor(FactorUnit.LOGODDS_WIN, 0.6)],
            config=CONFIG, score_model=FixedScoreModel(),
        )
        assert analysis.pick.selection == "DEN ML"
        assert analysis.pick.offered_odds == 150

    def test_reasoning_trail(self):
        analysis = analyze_game(
            make_game(), [factor(FactorUnit.POINTS_SPREAD, 4.0)],
            config=CONFIG, score_model=FixedScoreModel(),
        )
        trail = analysis.pick.reasoning
        assert trail[0].startswith("fixed:")
        assert any(line.startswith("spread:") for line in trail)
        assert any(line.startswith("total:") for line in trail)
        assert any(line.startswith("moneyline:") for line in trail)
        assert trail[-1].startswith("Selected BOS -3.5")
        assert list(trail) == analysis.notes

    def test_bet_logged_at_info(self, caplog):
        with caplog.at_level(logging.INFO, logger="sharp_edge.services.analysis"):
            analyze_game(
                make_game(), [factor(FactorUnit.POINTS_SPREAD, 4.0)],
                config=CONFIG, score_model=FixedScoreModel(),
            )
        assert "BET:" in caplog.text

    def test_confluence_scored_when_edge_given(self):
        analysis = analyze_game(
            make_game(), [factor(FactorUnit.POINTS_SPREAD, 4.0)],
            config=CONFIG, score_model=FixedScoreModel(), edge_score=8.0,
        )
        # 28 edge + 35 alignment (1 of 1 factor agrees)
        assert analysis.confluence.score == 63.0
        assert analysis.confluence.tier == "Rare"
        assert analysis.confluence.alignment_pct == 100

    def test_confluence_uses_track_record(self):
        analysis = analyze_game(
            make_game(), [factor(FactorUnit.POINTS_SPREAD, 4.0)],
            config=CONFIG, score_model=FixedScoreModel(), edge_score=8.0,
            track_record=TrackRecord(win_rate=60.0, sample_size=25, win_streak=5),
        )
        assert analysis.confluence.score == 93.0
        assert analysis.confluence.tier == "Legendary"

    def test_no_confluence_without_edge_score(self):
        analysis = analyze_game(
            make_game(), [factor(FactorUnit.POINTS_SPREAD, 4.0)],
            config=CONFIG, score_model=FixedScoreModel(),
        )
        assert analysis.confluence is None

    def test_default_score_model(self):
        analysis = analyze_game(
            make_game(spread=3.5), [factor(FactorUnit.POINTS_SPREAD, 4.0)], config=CONFIG,
        )
        assert analysis.score_prediction.sigma_spread == pytest.approx(12.5)
        assert analysis.is_bet

    def test_no_default_model_outside_basketball(self):
        game = make_game(sport="american_football", league="NFL", spread=-3.0, total=None)
        with pytest.raises(ValueError, match="score_model"):
            analyze_game(game, [factor(FactorUnit.POINTS_TOTAL, 3.0)], config=CONFIG)

    def test_injected_model_used_outside_basketball(self):
        game = make_game(sport="american_football", league="NFL", spread=-3.0, total=None)
        analysis = analyze_game(game, [], config=CONFIG, score_model=FixedScoreModel())
        assert analysis.score_prediction.true_total == 220.0
        assert analysis.heads.total_head.market_line == 220.0


class TestPass:
    def test_no_factors_is_a_pass(self, caplog):
        with caplog.at_level(logging.INFO, logger="sharp_edge.services.analysis"):
            analysis = analyze_game(
                make_game(), [], config=CONFIG, score_model=FixedScoreModel(),
            )

        assert analysis.verdict == VERDICT_PASS
        assert analysis.pick is None
        assert analysis.recommended_units == 0.0
        assert analysis.stake_amount == 0.0
        assert analysis.heads.best_pick is None
        assert "spread:" in analysis.pass_reason
        assert "total:" in analysis.pass_reason
        assert "moneyline:" in analysis.pass_reason
        assert "PASS:" in caplog.text
        assert not any(r.levelno >= logging.WARNING for r in caplog.records)

    def test_moneyline_disabled_by_config(self):
        game = make_game(home=("DEN", "Denver Nuggets"), home_moneyline=150, away_moneyline=-170)
        analysis = analyze_game(
            game, [factor(FactorUnit.LOGODDS_WIN, 0.6)],
            config=EngineConfig(enable_moneyline=False), score_model=FixedScoreModel(),
        )
        assert analysis.verdict == VERDICT_PASS
        assert "Moneyline disabled" in analysis.pass_reason


class TestEngineConfig:
    def test_defaults(self):
        config = EngineConfig()
        assert config.bankroll == 1000.0
        assert config.kelly_fraction == 0.25
        assert config.min_structural_pct == 0.40
        assert config.slippage_cents == 3.0
        assert config.enable_moneyline is True

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("STARTING_BANKROLL", "5000")
        monkeypatch.setenv("KELLY_FRACTION", "0.5")
        monkeypatch.setenv("MIN_STRUCTURAL_PCT", "0.6")
        monkeypatch.setenv("SLIPPAGE_CENTS", "5")
        monkeypatch.setenv("ENABLE_MONEYLINE", "false")

        config = EngineConfig.from_env()

        assert config.bankroll == 5000.0
        assert config.kelly_fraction == 0.5
        assert config.min_structural_pct == 0.6
        assert config.slippage_cents == 5.0
        assert config.enable_moneyline is False

    def test_from_env_defaults(self, monkeypatch):
        for var in ("STARTING_BANKROLL", "KELLY_FRACTION", "MIN_STRUCTURAL_PCT",
                    "SLIPPAGE_CENTS", "ENABLE_MONEYLINE"):
            monkeypatch.delenv(var, raising=False)
        assert EngineConfig.from_env() == EngineConfig()

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"bankroll": 0.0},
            {"kelly_fraction": 0.0},
            {"kelly_fraction": 1.2},
            {"min_structural_pct": 1.5},
            {"slippage_cents": -1.0},
        ],
    )
    def test_invalid_values_raise(self, kwargs):
        with pytest.raises(ValueError):
            EngineConfig(**kwargs)


class TestSlate:
    def test_bad_game_skipped(self, caplog):
        good = (make_game("good"), [factor(FactorUnit.POINTS_SPREAD, 4.0)])
        bad = (make_game("bad", home_moneyline=0, away_moneyline=-110), [])

        with caplog.at_level(logging.INFO, logger="sharp_edge.services.analysis"):
            results = analyze_slate([bad, good], config=CONFIG, score_model=FixedScoreModel())

        assert [r.game_id for r in results] == ["good"]
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "bad" in warnings[0].getMessage()
        assert "1 skipped" in caplog.text

    def test_sub_100_moneyline_skipped(self, caplog):
        good = (make_game("good"), [factor(FactorUnit.POINTS_SPREAD, 4.0)])
        bad = (make_game("bad", home_moneyline=99, away_moneyline=-110), [])

        with caplog.at_level(logging.INFO, logger="sharp_edge.services.analysis"):
            results = analyze_slate([bad, good], config=CONFIG, score_model=FixedScoreModel())

        assert [r.game_id for r in results] == ["good"]
        assert results[0].is_bet
        assert "magnitude" in caplog.text

    def test_games_are_independent(self):
        games = [
            (make_game("a"), [factor(FactorUnit.POINTS_SPREAD, 4.0)]),
            (make_game("b"), []),
            (make_game("c"), [factor(FactorUnit.POINTS_TOTAL, -5.0)]),
        ]
        results = analyze_slate(games, config=CONFIG, score_model=FixedScoreModel())
        assert [r.verdict for r in results] == [VERDICT_BET, VERDICT_PASS, VERDICT_BET]
