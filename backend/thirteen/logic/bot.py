"""
Bot decision making.

Bots enumerate every subset of their hand at the sizes that could possibly
beat the pile, keep the ones the combination rules accept, and pick one
uniformly at random. The chosen move is submitted through the same
resolve_play / resolve_pass path as a human move.
"""

from __future__ import annotations

from itertools import combinations as subsets
from typing import TYPE_CHECKING, NamedTuple

from thirteen.logic.combinations import FOUR_PAIRS_SIZE, THREE_PAIRS_SIZE, Combination, can_beat, classify

if TYPE_CHECKING:
    import random
    from collections.abc import Sequence

    from thirteen.logic.cards import Card
    from thirteen.logic.settings import GameSettings

QUAD_SIZE = 4
_SPECIAL_SIZES = frozenset({THREE_PAIRS_SIZE, QUAD_SIZE, FOUR_PAIRS_SIZE})


class BotDecision(NamedTuple):
    """A chosen bot move; cards None means pass.

    ``version`` is the room version the move was chosen against.
    """

    cards: tuple[Card, ...] | None
    delay: float
    version: int = 0


def candidate_sizes(hand_size: int, current: Combination | None) -> list[int]:
    """Card counts worth enumerating against the tabled combination."""
    if current is None:
        return list(range(1, hand_size + 1))
    sizes = {current.size}
    if current.is_single_two or current.is_special:
        sizes |= _SPECIAL_SIZES
    return sorted(size for size in sizes if size <= hand_size)


def legal_moves(hand: Sequence[Card], current: Combination | None) -> list[Combination]:
    moves: list[Combination] = []
    ordered = sorted(hand)
    for size in candidate_sizes(len(ordered), current):
        for cards in subsets(ordered, size):
            combination = classify(cards)
            if combination is not None and can_beat(combination, current):
                moves.append(combination)
    return moves


def choose_move(hand: Sequence[Card], current: Combination | None, rng: random.Random) -> Combination | None:
    """Pick a legal move uniformly at random, or None to pass."""
    moves = legal_moves(hand, current)
    if not moves:
        return None
    return rng.choice(moves)


def think_delay(settings: GameSettings, rng: random.Random, *, passing: bool) -> float:
    """Random thinking time before a bot move is submitted."""
    if passing:
        return rng.uniform(settings.bot_pass_delay_min_seconds, settings.bot_pass_delay_max_seconds)
    return rng.uniform(settings.bot_play_delay_min_seconds, settings.bot_play_delay_max_seconds)
