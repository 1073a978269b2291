"""Card primitives and deck helpers.

Cards are immutable values compared by rank and suit.  A deck is a plain
list of cards; every helper here returns a new list rather than mutating
the one it was given, so a deck can be shared freely between trials.
"""

from __future__ import annotations

import random
import re
from enum import IntEnum, Enum
from typing import Iterable, Optional, Sequence

from holdem_equity.errors import InvalidInput


class Suit(str, Enum):
    SPADES = "s"
    HEARTS = "h"
    DIAMONDS = "d"
    CLUBS = "c"


class Rank(IntEnum):
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14


RANK_SYMBOLS = {
    Rank.TWO: "2",
    Rank.THREE: "3",
    Rank.FOUR: "4",
    Rank.FIVE: "5",
    Rank.SIX: "6",
    Rank.SEVEN: "7",
    Rank.EIGHT: "8",
    Rank.NINE: "9",
    Rank.TEN: "T",
    Rank.JACK: "J",
    Rank.QUEEN: "Q",
    Rank.KING: "K",
    Rank.ACE: "A",
}

SUIT_SYMBOLS = {
    Suit.SPADES: "♠",
    Suit.HEARTS: "♥",
    Suit.DIAMONDS: "♦",
    Suit.CLUBS: "♣",
}

_RANK_BY_TEXT = {v: k for k, v in RANK_SYMBOLS.items()}
_RANK_BY_TEXT["10"] = Rank.TEN

# "10" must be tried before the single-character ranks
_CARD_RE = re.compile(r"^(10|[2-9TJQKA])([shdc])$", re.IGNORECASE)


class Card:
    __slots__ = ("rank", "suit")

    def __init__(self, rank: Rank, suit: Suit) -> None:
        self.rank = Rank(rank)
        self.suit = Suit(suit)

    def __repr__(self) -> str:
        return f"{RANK_SYMBOLS[self.rank]}{self.suit.value}"

    def __str__(self) -> str:
        return repr(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Card):
            return NotImplemented
        return self.rank == other.rank and self.suit == other.suit

    def __hash__(self) -> int:
        return hash((self.rank, self.suit))

    def display(self) -> str:
        """Rank plus suit glyph, e.g. 'K♥' or '10♠'."""
        rank = "10" if self.rank == Rank.TEN else RANK_SYMBOLS[self.rank]
        return f"{rank}{SUIT_SYMBOLS[self.suit]}"

    @classmethod
    def parse(cls, s: str) -> Optional[Card]:
        """Parse 'Ah', 'Ts', '10s', '2c' etc.  Returns None when ``s`` is not a card."""
        if not isinstance(s, str):
            return None
        match = _CARD_RE.match(s.strip())
        if match is None:
            return None
        return cls(_RANK_BY_TEXT[match.group(1).upper()], Suit(match.group(2).lower()))

    @classmethod
    def from_str(cls, s: str) -> Card:
        """Strict variant of :meth:`parse` that raises InvalidInput."""
        card = cls.parse(s)
        if card is None:
            raise InvalidInput(f"Invalid card: {s!r}")
        return card


def parse_cards(texts: Iterable[str]) -> list[Card]:
    """Parse several card strings, raising InvalidInput on the first bad one."""
    return [Card.from_str(t) for t in texts]


def create_deck() -> list[Card]:
    """All 52 cards in a fixed canonical order (suit-major, rank ascending)."""
    return [Card(rank, suit) for suit in Suit for rank in Rank]


def shuffle(deck: Sequence[Card], rng: Optional[random.Random] = None) -> list[Card]:
    """Return a uniformly shuffled copy of ``deck``.

    ``random.shuffle`` is a Fisher-Yates shuffle, so every permutation is
    equally likely.  The input sequence is left untouched.
    """
    shuffled = list(deck)
    (rng or random).shuffle(shuffled)
    return shuffled


def remove_cards(deck: Sequence[Card], to_remove: Iterable[Card]) -> list[Card]:
    """Set difference by value; cards in ``to_remove`` missing from ``deck`` are ignored."""
    removed = set(to_remove)
    return [c for c in deck if c not in removed]

