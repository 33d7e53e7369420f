"""
Combination classification and comparison.

classify() turns a set of cards into a typed Combination with a strength key,
can_beat() decides whether a new combination may be played over the tabled
one. Both are pure.
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from thirteen.logic.cards import Card, CardField, Rank, sort_cards
from thirteen.logic.enums import SPECIAL_POWER, CombinationType

if TYPE_CHECKING:
    from collections.abc import Iterable

MIN_STRAIGHT_LENGTH = 3
THREE_PAIRS_SIZE = 6
FOUR_PAIRS_SIZE = 8

_SAME_RANK_TYPES: dict[int, CombinationType] = {
    1: CombinationType.SINGLE,
    2: CombinationType.PAIR,
    3: CombinationType.TRIPLE,
    4: CombinationType.QUAD_BOMB,
}

_PAIR_RUN_TYPES: dict[int, CombinationType] = {
    THREE_PAIRS_SIZE: CombinationType.THREE_PAIRS_RUN,
    FOUR_PAIRS_SIZE: CombinationType.FOUR_PAIRS_RUN,
}


class Combination(BaseModel):
    """A classified group of cards with a strength key ordered within its type."""

    model_config = ConfigDict(frozen=True)

    type: CombinationType
    cards: tuple[CardField, ...]
    strength: tuple[int, ...]

    @property
    def size(self) -> int:
        return len(self.cards)

    @property
    def is_special(self) -> bool:
        return self.type in SPECIAL_POWER

    @property
    def is_single_two(self) -> bool:
        return self.type == CombinationType.SINGLE and self.cards[0].rank == Rank.TWO


def _is_consecutive(ranks: list[Rank]) -> bool:
    return all(b - a == 1 for a, b in zip(ranks, ranks[1:], strict=False))


def classify(cards: Iterable[Card]) -> Combination | None:
    """Classify a card set. Returns None for anything that is not a combination."""
    ordered = sort_cards(cards)
    size = len(ordered)
    if size == 0 or len(set(ordered)) != size:
        return None

    counts = Counter(card.rank for card in ordered)
    highest = ordered[-1]

    if len(counts) == 1:
        combo_type = _SAME_RANK_TYPES.get(size)
        if combo_type is None:
            return None
        if combo_type == CombinationType.QUAD_BOMB:
            strength: tuple[int, ...] = (highest.rank,)
        else:
            strength = (highest.rank, highest.suit)
        return Combination(type=combo_type, cards=ordered, strength=strength)

    if Rank.TWO in counts:
        return None

    ranks = sorted(counts)
    run_type = _PAIR_RUN_TYPES.get(size)
    if run_type is not None and all(n == 2 for n in counts.values()) and _is_consecutive(ranks):  # noqa: PLR2004
        return Combination(type=run_type, cards=ordered, strength=(highest.rank,))

    if size >= MIN_STRAIGHT_LENGTH and len(counts) == size and _is_consecutive(ranks):
        return Combination(
            type=CombinationType.STRAIGHT,
            cards=ordered,
            strength=(highest.rank, highest.suit),
        )

    return None


def can_beat(new: Combination, current: Combination | None) -> bool:
    """Return True if ``new`` may be played over ``current``.

    A tabled single 2 falls to any special combination. Two special
    combinations of different type compare by SPECIAL_POWER. Everything else
    requires the same type (and, for straights, the same length) and a
    strictly greater strength.
    """
    if current is None:
        return True
    if current.is_single_two and new.is_special:
        return True
    if new.is_special and current.is_special and new.type != current.type:
        return SPECIAL_POWER[new.type] > SPECIAL_POWER[current.type]
    if new.type != current.type:
        return False
    if new.type == CombinationType.STRAIGHT and new.size != current.size:
        return False
    return new.strength > current.strength
