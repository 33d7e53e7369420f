"""Tests for combination classification and comparison."""

import pytest

from thirteen.logic.cards import Rank, Suit, parse_cards
from thirteen.logic.combinations import can_beat, classify
from thirteen.logic.enums import CombinationType


def combo(*cards: str):
    result = classify(parse_cards(cards))
    assert result is not None, f"{cards} should classify"
    return result


class TestClassify:
    @pytest.mark.parametrize(
        ("cards", "expected"),
        [
            (["7♠"], CombinationType.SINGLE),
            (["7♠", "7♥"], CombinationType.PAIR),
            (["2♠", "2♦"], CombinationType.PAIR),
            (["9♣", "9♦", "9♥"], CombinationType.TRIPLE),
            (["5♠", "5♣", "5♦", "5♥"], CombinationType.QUAD_BOMB),
            (["3♠", "4♦", "5♥"], CombinationType.STRAIGHT),
            (["10♠", "J♠", "Q♣", "K♦", "A♥"], CombinationType.STRAIGHT),
            (["3♠", "3♥", "4♠", "4♥", "5♣", "5♦"], CombinationType.THREE_PAIRS_RUN),
            (["8♠", "8♣", "9♦", "9♥", "10♠", "10♥", "J♣", "J♦"], CombinationType.FOUR_PAIRS_RUN),
        ],
    )
    def test_valid_combinations(self, cards, expected):
        assert combo(*cards).type == expected

    @pytest.mark.parametrize(
        "cards",
        [
            [],
            ["3♠", "4♠"],
            ["3♠", "5♦", "6♥"],
            ["Q♠", "K♦", "A♥", "2♣"],
            ["K♠", "A♦", "2♥"],
            ["3♠", "3♥", "4♠"],
            ["3♠", "3♥", "4♠", "4♥"],
            ["3♠", "3♥", "5♠", "5♥", "6♣", "6♦"],
            ["A♠", "A♥", "2♠", "2♥", "3♣", "3♦"],
        ],
    )
    def test_invalid_card_sets(self, cards):
        assert classify(parse_cards(cards)) is None

    def test_duplicate_cards_are_rejected(self):
        assert classify(parse_cards(["5♠", "5♠"])) is None

    def test_cards_are_stored_sorted(self):
        result = combo("5♥", "3♠", "4♦")
        assert [str(c) for c in result.cards] == ["3♠", "4♦", "5♥"]

    def test_minimum_straight_length_is_three(self):
        assert classify(parse_cards(["8♠", "9♦"])) is None
        assert combo("8♠", "9♦", "10♥").type == CombinationType.STRAIGHT

    def test_pair_strength_uses_highest_suit(self):
        assert combo("9♠", "9♥").strength == (Rank.NINE, Suit.HEARTS)

    def test_single_two_flag(self):
        assert combo("2♣").is_single_two
        assert not combo("A♣").is_single_two
        assert not combo("2♣", "2♥").is_single_two


class TestCanBeat:
    def test_anything_leads_on_an_empty_table(self):
        assert can_beat(combo("3♠"), None)

    def test_higher_single_by_rank(self):
        assert can_beat(combo("4♠"), combo("3♥"))
        assert not can_beat(combo("3♥"), combo("4♠"))

    def test_single_suit_breaks_tie(self):
        assert can_beat(combo("7♥"), combo("7♦"))
        assert not can_beat(combo("7♣"), combo("7♦"))

    def test_equal_strength_does_not_beat(self):
        assert not can_beat(combo("7♦"), combo("7♦"))

    def test_pair_compared_by_highest_card(self):
        assert can_beat(combo("8♠", "8♥"), combo("8♣", "8♦"))
        assert not can_beat(combo("8♠", "8♣"), combo("8♦", "8♥"))

    def test_type_mismatch_never_beats(self):
        assert not can_beat(combo("9♠", "9♥"), combo("3♠"))
        assert not can_beat(combo("3♠", "4♠", "5♠"), combo("9♠", "9♥", "9♦"))

    def test_straight_requires_same_length(self):
        assert not can_beat(combo("6♠", "7♠", "8♠", "9♠"), combo("3♠", "4♠", "5♠"))
        assert can_beat(combo("4♠", "5♠", "6♠"), combo("3♠", "4♠", "5♥"))

    def test_straight_compared_by_highest_card(self):
        assert can_beat(combo("3♠", "4♠", "5♥"), combo("3♣", "4♣", "5♦"))

    def test_special_combinations_beat_a_single_two(self):
        two = combo("2♥")
        assert can_beat(combo("3♠", "3♥", "4♠", "4♥", "5♣", "5♦"), two)
        assert can_beat(combo("6♠", "6♣", "6♦", "6♥"), two)
        assert can_beat(combo("8♠", "8♣", "9♦", "9♥", "10♠", "10♥", "J♣", "J♦"), two)

    def test_special_combinations_do_not_beat_ordinary_plays(self):
        bomb = combo("6♠", "6♣", "6♦", "6♥")
        assert not can_beat(bomb, combo("A♥"))
        assert not can_beat(bomb, combo("2♠", "2♥"))

    def test_special_power_order(self):
        """Three pairs < quad bomb < four pairs, regardless of rank."""
        three_pairs = combo("Q♠", "Q♥", "K♠", "K♥", "A♣", "A♦")
        quad = combo("3♠", "3♣", "3♦", "3♥")
        four_pairs = combo("3♠", "3♣", "4♦", "4♥", "5♠", "5♥", "6♣", "6♦")
        assert can_beat(quad, three_pairs)
        assert can_beat(four_pairs, quad)
        assert can_beat(four_pairs, three_pairs)
        assert not can_beat(three_pairs, quad)
        assert not can_beat(quad, four_pairs)

    def test_same_special_type_compares_by_rank(self):
        assert can_beat(combo("9♠", "9♣", "9♦", "9♥"), combo("4♠", "4♣", "4♦", "4♥"))
        assert not can_beat(
            combo("3♠", "3♥", "4♠", "4♥", "5♣", "5♦"),
            combo("6♠", "6♥", "7♠", "7♥", "8♣", "8♦"),
        )
