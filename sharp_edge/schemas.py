"""
Pydantic schemas for the records handed to the persistence layer.

Only the selected prediction head is ever stored, as a pick record.  The
confluence result is stored next to it.  Validating here keeps a bad
number (0 odds, a probability of 1, 12 units) out of the pick history no
matter which caller produced it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal, Optional, Sequence, Tuple

from pydantic import BaseModel, Field, field_validator

if TYPE_CHECKING:
    from sharp_edge.services.confluence import ConfluenceResult
    from sharp_edge.services.prediction_heads import PredictionHead


# ---------------------------------------------------------------------------
# Picks
# ---------------------------------------------------------------------------

class PickRecord(BaseModel):
    """
    A recommended wager, ready to persist.

    ``confidence`` is the model's win probability for the selection;
    ``expected_value`` is a fraction of stake and ``ev_percentage`` the
    same number for display.
    """

    game_id: Optional[str] = Field(None, description="Upstream game identifier")
    wager_type: Literal["spread", "total", "moneyline"] = Field(..., description="Market type")
    selection: str = Field(..., min_length=2, max_length=120, description='e.g. "BOS -3.5"')
    units: float = Field(..., ge=0.5, le=5.0, description="Units risked (1u = 1% of bankroll)")
    confidence: float = Field(..., gt=0.0, lt=1.0)
    expected_value: float
    ev_percentage: float
    offered_odds: float = Field(..., description="American odds at recommendation time")
    reasoning: Tuple[str, ...] = Field(default=())

    @field_validator("offered_odds")
    @classmethod
    def validate_american_odds(cls, v: float) -> float:
        if v == 0:
            raise ValueError("offered_odds cannot be 0")
        if -100 < v < 100:
            raise ValueError(
                f"offered_odds={v} is not valid American odds. "
                "Must be >= +100 or <= -100."
            )
        return v

    @field_validator("units")
    @classmethod
    def round_units(cls, v: float) -> float:
        return round(v, 4)

    @classmethod
    def from_head(
        cls,
        head: PredictionHead,
        selection: str,
        units: float,
        reasoning: Sequence[str] = (),
        game_id: Optional[str] = None,
    ) -> PickRecord:
        return cls(
            game_id=game_id,
            wager_type=head.wager_type.value,
            selection=selection,
            units=units,
            confidence=head.win_probability,
            expected_value=head.expected_value,
            ev_percentage=head.ev_percentage,
            offered_odds=head.offered_odds,
            reasoning=tuple(reasoning),
        )

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "game_id": "nba-2025-11-02-bos-nyk",
                "wager_type": "spread",
                "selection": "BOS -3.5",
                "units": 2.0,
                "confidence": 0.6255,
                "expected_value": 0.1941,
                "ev_percentage": 19.41,
                "offered_odds": -110,
                "reasoning": ["spread: Δ=+4.00 p=0.626 EV=+19.41% -> All gates passed"],
            }
        },
    }


# ---------------------------------------------------------------------------
# Confluence
# ---------------------------------------------------------------------------

class ConfluenceRecord(BaseModel):
    """Confluence score and tier stored alongside a pick."""

    tier: Literal["Common", "Uncommon", "Rare", "Elite", "Legendary"]
    score: float = Field(..., ge=0.0, le=100.0)
    edge_points: float = Field(..., ge=0.0, le=35.0)
    spec_points: float = Field(..., ge=0.0, le=20.0)
    streak_points: float = Field(..., ge=0.0, le=10.0)
    alignment_points: float = Field(..., ge=0.0, le=35.0)
    alignment_pct: int = Field(..., ge=0, le=100)

    @classmethod
    def from_result(cls, result: ConfluenceResult) -> ConfluenceRecord:
        b = result.breakdown
        return cls(
            tier=result.tier.value,
            score=result.confluence_score,
            edge_points=b.edge_points,
            spec_points=b.spec_points,
            streak_points=b.streak_points,
            alignment_points=b.alignment_points,
            alignment_pct=b.alignment_pct,
        )

    model_config = {"frozen": True}
