"""
Card values, text encoding and deck construction.

A card is the pair (rank, suit). Ranks order 3 < 4 < ... < K < A < 2 and suits
order spades < clubs < diamonds < hearts, so the natural tuple ordering of a
Card is the game's total order for singles.

Text form is the rank label followed by the suit symbol, e.g. "4♠", "10♥",
"2♦". ASCII suit letters (S, C, D, H) are accepted when parsing.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Annotated

from pydantic import BeforeValidator, PlainSerializer

if TYPE_CHECKING:
    from collections.abc import Iterable


class Rank(IntEnum):
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
    TWO = 15


class Suit(IntEnum):
    SPADES = 1
    CLUBS = 2
    DIAMONDS = 3
    HEARTS = 4


RANK_LABELS: dict[Rank, str] = {
    Rank.THREE: "3",
    Rank.FOUR: "4",
    Rank.FIVE: "5",
    Rank.SIX: "6",
    Rank.SEVEN: "7",
    Rank.EIGHT: "8",
    Rank.NINE: "9",
    Rank.TEN: "10",
    Rank.JACK: "J",
    Rank.QUEEN: "Q",
    Rank.KING: "K",
    Rank.ACE: "A",
    Rank.TWO: "2",
}

SUIT_SYMBOLS: dict[Suit, str] = {
    Suit.SPADES: "♠",
    Suit.CLUBS: "♣",
    Suit.DIAMONDS: "♦",
    Suit.HEARTS: "♥",
}

_RANK_BY_LABEL: dict[str, Rank] = {label: rank for rank, label in RANK_LABELS.items()}
_SUIT_BY_SYMBOL: dict[str, Suit] = {
    **{symbol: suit for suit, symbol in SUIT_SYMBOLS.items()},
    "S": Suit.SPADES,
    "C": Suit.CLUBS,
    "D": Suit.DIAMONDS,
    "H": Suit.HEARTS,
}

DECK_SIZE = len(Rank) * len(Suit)


@dataclass(frozen=True, order=True)
class Card:
    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{RANK_LABELS[self.rank]}{SUIT_SYMBOLS[self.suit]}"


def parse_card(text: str) -> Card:
    """Parse a card from its text form. Raises ValueError on unknown input."""
    if not isinstance(text, str) or len(text) < 2:  # noqa: PLR2004
        raise ValueError(f"invalid card: {text!r}")
    label, symbol = text[:-1].upper(), text[-1].upper()
    rank = _RANK_BY_LABEL.get(label)
    suit = _SUIT_BY_SYMBOL.get(symbol)
    if rank is None or suit is None:
        raise ValueError(f"invalid card: {text!r}")
    return Card(rank, suit)


def parse_cards(texts: Iterable[str]) -> tuple[Card, ...]:
    return tuple(parse_card(text) for text in texts)


def sort_cards(cards: Iterable[Card]) -> tuple[Card, ...]:
    return tuple(sorted(cards))


def full_deck() -> list[Card]:
    """Return the 52 distinct cards in ascending order."""
    return [Card(rank, suit) for rank in Rank for suit in Suit]


def _coerce_card(value: object) -> object:
    if isinstance(value, str):
        return parse_card(value)
    return value


# pydantic field type: validates from text, serializes back to text
CardField = Annotated[Card, BeforeValidator(_coerce_card), PlainSerializer(str, return_type=str)]
