"""
Deck shuffling, hand distribution and first-player selection.

Every room owns a random.Random instance seeded from a hex seed, so a game can
be replayed deterministically in tests by fixing the seed.
"""

from __future__ import annotations

import random
import secrets
from typing import TYPE_CHECKING

from thirteen.logic.cards import DECK_SIZE, Card, full_deck, sort_cards

if TYPE_CHECKING:
    from collections.abc import Sequence

SEED_BYTES = 16


def generate_seed() -> str:
    """Generate a cryptographically random hex seed."""
    return secrets.token_hex(SEED_BYTES)


def create_rng(seed: str | int | None = None) -> random.Random:
    """Create a room RNG. A None seed draws a fresh one."""
    return random.Random(seed if seed is not None else generate_seed())  # noqa: S311


def shuffled_deck(rng: random.Random) -> list[Card]:
    deck = full_deck()
    rng.shuffle(deck)
    return deck


def deal_hands(
    player_ids: Sequence[str],
    rng: random.Random,
    hand_size: int = 13,
) -> dict[str, tuple[Card, ...]]:
    """
    Deal ``hand_size`` cards to each player from one freshly shuffled deck.

    Cards are dealt in contiguous blocks in the given (seat) order; whatever
    remains of the deck is discarded for the round.
    """
    if len(player_ids) * hand_size > DECK_SIZE:
        raise ValueError(f"cannot deal {hand_size} cards to {len(player_ids)} players")
    deck = shuffled_deck(rng)
    return {
        player_id: sort_cards(deck[index * hand_size : (index + 1) * hand_size])
        for index, player_id in enumerate(player_ids)
    }


def choose_starting_player(player_ids: Sequence[str], rng: random.Random) -> str:
    """Pick the first actor uniformly at random among the dealt players."""
    if not player_ids:
        raise ValueError("no players to choose from")
    return rng.choice(list(player_ids))
