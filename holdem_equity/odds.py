"""Pot odds and expected-value helpers."""

from __future__ import annotations

from holdem_equity.errors import InvalidInput


def pot_odds(pot: float, to_call: float) -> float:
    """Share of the final pot the caller has to put in: call / (pot + call)."""
    if pot < 0 or to_call < 0:
        raise InvalidInput("Pot and call amounts must not be negative")
    if pot + to_call == 0:
        raise InvalidInput("Pot and call cannot both be zero")
    return to_call / (pot + to_call)


def is_call_profitable(odds: float, win_probability: float) -> bool:
    return win_probability > odds


def expected_value(
    win_probability: float, pot_if_win: float, amount_at_risk: float
) -> float:
    """EV of a call that wins ``pot_if_win`` or loses ``amount_at_risk``."""
    return win_probability * pot_if_win - (1 - win_probability) * amount_at_risk
