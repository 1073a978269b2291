"""Draw classification and outs counting.

A quick heuristic for post-flop, pre-river spots.  It recognises common
draw shapes and reports how many unseen cards complete each one.  The
counts are deliberately approximate: an open-ended draw is always worth 8
outs, overcards are worth 3 each, and a flush + straight combo adds up every
draw found and caps the total at 15 instead of removing the exact overlap.
Straight shapes are reported even when the cards already make a straight.
"""

from __future__ import annotations

from collections import Counter
from typing import Sequence

from holdem_equity.cards import Card, Rank, create_deck, remove_cards
from holdem_equity.models import DrawType, OutsEstimate, OutsResult

OPEN_ENDED_OUTS = 8
OUTS_PER_OVERCARD = 3
COMBO_DRAW_CAP = 15

# Ace counts low as well as high when looking for straight shapes
_LOW_ACE = 1

# Every five-rank straight, lowest first, with the ace low in the wheel
_STRAIGHT_WINDOWS = [tuple(range(low, low + 5)) for low in range(_LOW_ACE, 11)]


def rule_of_2_and_4(outs: int, to_river: bool) -> float:
    """Rough chance of hitting: outs x4 with two cards to come, x2 with one."""
    multiplier = 4 if to_river else 2
    return min(outs * multiplier, 100) / 100


def _result(draw: DrawType, outs: int, remaining: int, description: str) -> OutsResult:
    return OutsResult(
        draw=draw,
        outs=outs,
        probability=outs / remaining,
        description=description,
    )


def _straight_values(cards: Sequence[Card]) -> set[int]:
    values = {int(c.rank) for c in cards}
    if Rank.ACE in values:
        values.add(_LOW_ACE)
    return values


def _has_open_ender(values: set[int]) -> bool:
    # Four in a row with room on both sides; A-2-3-4 and J-Q-K-A don't qualify
    for low in range(2, 11):
        if all(v in values for v in range(low, low + 4)):
            return True
    return False


def _gap_ranks(values: set[int]) -> set[int]:
    """Ranks that would complete a straight holding four of its five ranks."""
    missing: set[int] = set()
    for window in _STRAIGHT_WINDOWS:
        absent = [v for v in window if v not in values]
        if len(absent) == 1:
            missing.add(Rank.ACE if absent[0] == _LOW_ACE else absent[0])
    return missing


def classify_outs(
    hole_cards: Sequence[Card], community_cards: Sequence[Card]
) -> list[OutsResult]:
    """Detect draws for two hole cards on a flop or turn.

    Returns an empty list unless there are exactly 2 hole cards and 3 or 4
    community cards.  Flush and gutshot outs are counted against the cards
    still unseen; open-ended and overcard outs use fixed counts.
    """
    if len(hole_cards) != 2 or len(community_cards) not in (3, 4):
        return []

    known = list(hole_cards) + list(community_cards)
    unseen = remove_cards(create_deck(), known)
    remaining = len(unseen)
    results: list[OutsResult] = []

    has_flush_draw = False
    for suit, count in Counter(c.suit for c in known).items():
        if count == 4:
            outs = sum(1 for c in unseen if c.suit == suit)
            has_flush_draw = True
            results.append(
                _result(
                    DrawType.FLUSH_DRAW, outs, remaining, f"Flush draw ({outs} outs)"
                )
            )

    values = _straight_values(known)
    has_straight_draw = False
    if _has_open_ender(values):
        has_straight_draw = True
        results.append(
            _result(
                DrawType.OPEN_ENDED,
                OPEN_ENDED_OUTS,
                remaining,
                f"Open-ended straight draw ({OPEN_ENDED_OUTS} outs)",
            )
        )
    else:
        gaps = _gap_ranks(values)
        outs = sum(1 for c in unseen if c.rank in gaps)
        if outs > 0 and len(gaps) >= 2:
            has_straight_draw = True
            results.append(
                _result(
                    DrawType.DOUBLE_GUTSHOT,
                    outs,
                    remaining,
                    f"Double gutshot ({outs} outs)",
                )
            )
        elif outs > 0:
            has_straight_draw = True
            results.append(
                _result(
                    DrawType.GUTSHOT,
                    outs,
                    remaining,
                    f"Gutshot straight draw ({outs} outs)",
                )
            )

    board_max = max(c.rank for c in community_cards)
    overcards = [c for c in hole_cards if c.rank > board_max]
    if len(overcards) == 2:
        outs = 2 * OUTS_PER_OVERCARD
        results.append(
            _result(DrawType.OVERCARDS, outs, remaining, f"Overcards ({outs} outs)")
        )
    elif len(overcards) == 1:
        results.append(
            _result(
                DrawType.OVERCARDS,
                OUTS_PER_OVERCARD,
                remaining,
                f"One overcard ({OUTS_PER_OVERCARD} outs)",
            )
        )

    if has_flush_draw and has_straight_draw:
        # Every draw listed so far, overcards included
        outs = min(sum(r.outs for r in results), COMBO_DRAW_CAP)
        results.append(
            _result(
                DrawType.COMBO_DRAW,
                outs,
                remaining,
                "Combo draw (flush + straight)",
            )
        )

    return results


def with_estimates(results: Sequence[OutsResult]) -> list[OutsEstimate]:
    """Attach rule-of-2-and-4 estimates for one and two cards to come."""
    return [
        OutsEstimate(
            **r.model_dump(),
            one_card=rule_of_2_and_4(r.outs, to_river=False),
            two_cards=rule_of_2_and_4(r.outs, to_river=True),
        )
        for r in results
    ]
