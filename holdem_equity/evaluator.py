"""Texas Hold'em hand evaluator.

Finds the best 5-card hand among 5, 6 or 7 cards without enumerating the
5-card subsets.  The result carries a single integer ``value``: the hand
category in the most significant position followed by up to five
tie-breaking ranks, each packed as a base-15 digit.  Comparing two values
decides the showdown outright (higher wins, equal splits).
"""

from __future__ import annotations

from enum import IntEnum
from typing import Sequence

from holdem_equity.cards import Card, Rank
from holdem_equity.errors import InvalidInput


class HandCategory(IntEnum):
    HIGH_CARD = 0
    ONE_PAIR = 1
    TWO_PAIR = 2
    THREE_OF_A_KIND = 3
    STRAIGHT = 4
    FLUSH = 5
    FULL_HOUSE = 6
    FOUR_OF_A_KIND = 7
    STRAIGHT_FLUSH = 8
    ROYAL_FLUSH = 9

    @property
    def tag(self) -> str:
        """Kebab-case identifier, e.g. 'full-house'."""
        return self.name.lower().replace("_", "-")


HAND_NAMES = {
    HandCategory.HIGH_CARD: "High Card",
    HandCategory.ONE_PAIR: "One Pair",
    HandCategory.TWO_PAIR: "Two Pair",
    HandCategory.THREE_OF_A_KIND: "Three of a Kind",
    HandCategory.STRAIGHT: "Straight",
    HandCategory.FLUSH: "Flush",
    HandCategory.FULL_HOUSE: "Full House",
    HandCategory.FOUR_OF_A_KIND: "Four of a Kind",
    HandCategory.STRAIGHT_FLUSH: "Straight Flush",
    HandCategory.ROYAL_FLUSH: "Royal Flush",
}

HAND_DESCRIPTIONS = {
    HandCategory.HIGH_CARD: "Highest card plays",
    HandCategory.ONE_PAIR: "Two cards of the same rank",
    HandCategory.TWO_PAIR: "Two different pairs",
    HandCategory.THREE_OF_A_KIND: "Three cards of the same rank",
    HandCategory.STRAIGHT: "Five consecutive ranks",
    HandCategory.FLUSH: "Five cards of the same suit",
    HandCategory.FULL_HOUSE: "Three of a kind plus a pair",
    HandCategory.FOUR_OF_A_KIND: "Four cards of the same rank",
    HandCategory.STRAIGHT_FLUSH: "Five consecutive ranks of the same suit",
    HandCategory.ROYAL_FLUSH: "A K Q J 10 of the same suit",
}

# One digit per tie-breaker; ranks top out at 14
_BASE = 15
_TIEBREAK_SLOTS = 5
_CATEGORY_WEIGHT = _BASE**_TIEBREAK_SLOTS

# Wheel ranks in straight order, ace playing low
_WHEEL = (Rank.FIVE, Rank.FOUR, Rank.THREE, Rank.TWO, Rank.ACE)


def _pack(category: HandCategory, tiebreakers: tuple[int, ...]) -> int:
    value = 0
    for i in range(_TIEBREAK_SLOTS):
        value = value * _BASE + (tiebreakers[i] if i < len(tiebreakers) else 0)
    return category * _CATEGORY_WEIGHT + value


class HandResult:
    """Best 5-card hand found by :func:`evaluate`.

    ``value`` totally orders hands; ``tiebreakers`` are the ranks packed into
    it, most significant first; ``cards`` are the five cards that make the
    hand, for display.
    """

    __slots__ = ("category", "tiebreakers", "cards", "value")

    def __init__(
        self,
        category: HandCategory,
        tiebreakers: tuple[int, ...],
        cards: list[Card],
    ) -> None:
        self.category = category
        self.tiebreakers = tiebreakers
        self.cards = cards
        self.value = _pack(category, tiebreakers)

    def __lt__(self, other: HandResult) -> bool:
        return self.value < other.value

    def __gt__(self, other: HandResult) -> bool:
        return self.value > other.value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HandResult):
            return NotImplemented
        return self.value == other.value

    def __le__(self, other: HandResult) -> bool:
        return self.value <= other.value

    def __ge__(self, other: HandResult) -> bool:
        return self.value >= other.value

    def __hash__(self) -> int:
        return hash(self.value)

    @property
    def name(self) -> str:
        return HAND_NAMES[self.category]

    @property
    def description(self) -> str:
        return HAND_DESCRIPTIONS[self.category]

    def __repr__(self) -> str:
        return f"HandResult({self.name}, {self.tiebreakers})"


def _straight_high(ranks: set[int]) -> int:
    """Highest straight contained in ``ranks``; 5 for the wheel, 0 for none."""
    for high in range(Rank.ACE, Rank.FIVE, -1):
        if all(r in ranks for r in range(high - 4, high + 1)):
            return high
    if all(r in ranks for r in _WHEEL):
        return Rank.FIVE
    return 0


def _straight_cards(cards: Sequence[Card], high: int) -> list[Card]:
    """Pick one card per rank for the straight ending at ``high``."""
    wanted = _WHEEL if high == Rank.FIVE else range(high, high - 5, -1)
    by_rank: dict[int, Card] = {}
    for c in cards:
        by_rank.setdefault(c.rank, c)
    return [by_rank[r] for r in wanted]


def _by_rank_desc(cards: Sequence[Card]) -> list[Card]:
    return sorted(cards, key=lambda c: c.rank, reverse=True)


def evaluate(cards: Sequence[Card]) -> HandResult:
    """Evaluate the best 5-card hand from any number of cards (typically 5-7).

    For Hold'em, pass 2 hole cards + up to 5 community cards.
    """
    if len(cards) < 5:
        raise InvalidInput(f"Need at least 5 cards, got {len(cards)}")

    by_rank: dict[int, list[Card]] = {}
    by_suit: dict[str, list[Card]] = {}
    for c in cards:
        by_rank.setdefault(c.rank, []).append(c)
        by_suit.setdefault(c.suit, []).append(c)

    # With at most 7 cards only one suit can reach five
    flush_cards: list[Card] | None = None
    for suited in by_suit.values():
        if len(suited) >= 5:
            flush_cards = _by_rank_desc(suited)
            break

    if flush_cards is not None:
        sf_high = _straight_high({c.rank for c in flush_cards})
        if sf_high:
            best = _straight_cards(flush_cards, sf_high)
            if sf_high == Rank.ACE:
                return HandResult(HandCategory.ROYAL_FLUSH, (Rank.ACE,), best)
            return HandResult(HandCategory.STRAIGHT_FLUSH, (sf_high,), best)

    # Sort by (count desc, rank desc)
    groups = sorted(
        by_rank.items(), key=lambda x: (len(x[1]), x[0]), reverse=True
    )
    top_rank, top_cards = groups[0]
    top_count = len(top_cards)

    if top_count == 4:
        kicker = max((c for r, g in groups[1:] for c in g), key=lambda c: c.rank)
        return HandResult(
            HandCategory.FOUR_OF_A_KIND, (top_rank, kicker.rank), top_cards + [kicker]
        )

    if top_count == 3:
        # A second set counts as the pair; the higher set was sorted first
        pairs = [(r, g) for r, g in groups[1:] if len(g) >= 2]
        if pairs:
            pair_rank, pair_cards = max(pairs, key=lambda x: x[0])
            return HandResult(
                HandCategory.FULL_HOUSE,
                (top_rank, pair_rank),
                top_cards + pair_cards[:2],
            )

    if flush_cards is not None:
        best = flush_cards[:5]
        return HandResult(HandCategory.FLUSH, tuple(c.rank for c in best), best)

    st_high = _straight_high(set(by_rank))
    if st_high:
        return HandResult(
            HandCategory.STRAIGHT, (st_high,), _straight_cards(cards, st_high)
        )

    if top_count == 3:
        kickers = _by_rank_desc([c for r, g in groups[1:] for c in g])[:2]
        return HandResult(
            HandCategory.THREE_OF_A_KIND,
            (top_rank,) + tuple(c.rank for c in kickers),
            top_cards + kickers,
        )

    if top_count == 2 and len(groups[1][1]) == 2:
        # groups are rank-descending within equal counts, so these are the top pairs
        (hi_rank, hi_cards), (lo_rank, lo_cards) = groups[0], groups[1]
        kicker = max((c for r, g in groups[2:] for c in g), key=lambda c: c.rank)
        return HandResult(
            HandCategory.TWO_PAIR,
            (hi_rank, lo_rank, kicker.rank),
            hi_cards + lo_cards + [kicker],
        )

    if top_count == 2:
        kickers = _by_rank_desc([c for r, g in groups[1:] for c in g])[:3]
        return HandResult(
            HandCategory.ONE_PAIR,
            (top_rank,) + tuple(c.rank for c in kickers),
            top_cards + kickers,
        )

    best = _by_rank_desc(cards)[:5]
    return HandResult(HandCategory.HIGH_CARD, tuple(c.rank for c in best), best)


def compare_hands(a: HandResult, b: HandResult) -> int:
    """-1, 0 or 1 as ``a`` is worse than, equal to, or better than ``b``."""
    return (a.value > b.value) - (a.value < b.value)


def determine_winners(
    player_hands: dict[str, HandResult],
) -> list[str]:
    """Given {player_id: HandResult}, return list of winner player_ids (ties possible)."""
    if not player_hands:
        return []

    best_value = max(h.value for h in player_hands.values())
    return [pid for pid, hand in player_hands.items() if hand.value == best_value]
