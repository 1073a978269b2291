"""Pydantic models for equity requests and results."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from holdem_equity import config
from holdem_equity.cards import Card, parse_cards


def _check_cards(values: list[str]) -> list[str]:
    bad = [v for v in values if Card.parse(v) is None]
    if bad:
        raise ValueError(f"Invalid card(s): {', '.join(map(str, bad))}")
    return values


# --- Request models ---


class EquityRequest(BaseModel):
    hole_cards: list[str] = Field(..., min_length=2, max_length=2)
    community_cards: list[str] = Field(default_factory=list, max_length=5)
    num_opponents: int = Field(default=1, ge=1, le=9)
    trial_count: Optional[int] = Field(default=None, ge=1, le=config.MAX_TRIALS)
    seed: Optional[int] = None  # fixes the run's RNG, for reproducible results
    # Known hands for some of the opponents; the others stay random
    opponent_cards: list[list[str]] = Field(default_factory=list, max_length=9)

    @field_validator("hole_cards", "community_cards")
    @classmethod
    def known_cards(cls, v: list[str]) -> list[str]:
        return _check_cards(v)

    @field_validator("opponent_cards")
    @classmethod
    def known_opponent_cards(cls, v: list[list[str]]) -> list[list[str]]:
        for hand in v:
            if len(hand) != 2:
                raise ValueError("Each opponent hand needs exactly 2 cards")
            _check_cards(hand)
        return v

    @property
    def hole(self) -> list[Card]:
        return parse_cards(self.hole_cards)

    @property
    def board(self) -> list[Card]:
        return parse_cards(self.community_cards)

    @property
    def opponents(self) -> list[list[Card]]:
        return [parse_cards(hand) for hand in self.opponent_cards]

    @property
    def trials(self) -> int:
        return self.trial_count if self.trial_count is not None else config.DEFAULT_TRIALS


class OutsRequest(BaseModel):
    hole_cards: list[str] = Field(..., min_length=2, max_length=2)
    community_cards: list[str] = Field(..., min_length=3, max_length=4)

    @field_validator("hole_cards", "community_cards")
    @classmethod
    def known_cards(cls, v: list[str]) -> list[str]:
        return _check_cards(v)


class EvaluateRequest(BaseModel):
    cards: list[str] = Field(..., min_length=5, max_length=7)

    @field_validator("cards")
    @classmethod
    def known_cards(cls, v: list[str]) -> list[str]:
        return _check_cards(v)


class PotOddsRequest(BaseModel):
    pot: float = Field(..., ge=0)
    to_call: float = Field(..., ge=0)
    win_probability: Optional[float] = Field(default=None, ge=0, le=1)


# --- Result models ---


class EquityResult(BaseModel):
    """Aggregate outcome of one simulation run."""

    model_config = ConfigDict(frozen=True)

    win_probability: float
    tie_probability: float
    loss_probability: float
    simulations: int

    @property
    def equity(self) -> float:
        """Win probability plus half the tie probability."""
        return self.win_probability + self.tie_probability / 2


class DrawType(str, Enum):
    FLUSH_DRAW = "flush_draw"
    OPEN_ENDED = "open_ended_straight_draw"
    GUTSHOT = "gutshot"
    DOUBLE_GUTSHOT = "double_gutshot"
    OVERCARDS = "overcards"
    COMBO_DRAW = "combo_draw"


class OutsResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    draw: DrawType
    outs: int
    probability: float
    description: str


class OutsEstimate(OutsResult):
    """An OutsResult plus the rule-of-2-and-4 quick estimates."""

    one_card: float
    two_cards: float


class HandSummary(BaseModel):
    category: str  # kebab-case tag, e.g. "full-house"
    name: str
    description: str
    value: int
    cards: list[str]
    display: list[str]  # the same cards with suit glyphs, e.g. "K♥"


class PotOddsResponse(BaseModel):
    pot_odds: float
    profitable: Optional[bool] = None
    expected_value: Optional[float] = None


class ErrorResponse(BaseModel):
    detail: str
