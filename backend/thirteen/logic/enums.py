"""
String enum definitions for Thirteen game concepts.
"""

from enum import Enum


class RoomStatus(str, Enum):
    """Lifecycle status of a room."""

    LOBBY = "lobby"
    COUNTDOWN = "countdown"
    DEALING = "dealing"
    ACTIVE = "active"
    FINISHED = "finished"


# statuses in which seating, readiness and bots may change
PRE_GAME_STATUSES = frozenset({RoomStatus.LOBBY, RoomStatus.COUNTDOWN, RoomStatus.FINISHED})

# statuses in which a game is in progress
RUNNING_STATUSES = frozenset({RoomStatus.DEALING, RoomStatus.ACTIVE})


class GameAction(str, Enum):
    """Actions dispatched from client to game service."""

    TAKE_SEAT = "take_seat"
    STAND = "stand"
    TOGGLE_READY = "toggle_ready"
    START_GAME = "start_game"
    DEAL_CARDS = "deal_cards"
    PLAY_CARDS = "play_cards"
    PASS = "pass"  # noqa: S105
    ADD_BOT = "add_bot"
    REMOVE_BOT = "remove_bot"


class CombinationType(str, Enum):
    """Classified card combination types."""

    SINGLE = "single"
    PAIR = "pair"
    TRIPLE = "triple"
    QUAD_BOMB = "quad_bomb"
    STRAIGHT = "straight"
    THREE_PAIRS_RUN = "three_pairs_run"
    FOUR_PAIRS_RUN = "four_pairs_run"


# power order among special combinations, compared only across differing types
SPECIAL_POWER: dict[CombinationType, int] = {
    CombinationType.THREE_PAIRS_RUN: 1,
    CombinationType.QUAD_BOMB: 2,
    CombinationType.FOUR_PAIRS_RUN: 3,
}


class GameErrorCode(str, Enum):
    """Error codes sent to clients for rejected room operations."""

    NOT_ENOUGH_PLAYERS = "not_enough_players"
    PLAYERS_NOT_READY = "players_not_ready"
    GAME_IN_PROGRESS = "game_in_progress"
    SEAT_OCCUPIED = "seat_occupied"
    INVALID_SEAT = "invalid_seat"
    NOT_SEATED = "not_seated"
    ROOM_FULL = "room_full"
    UNKNOWN_PARTICIPANT = "unknown_participant"
    NOT_A_BOT = "not_a_bot"
    INVALID_ACTION = "invalid_action"


class TimeoutType(str, Enum):
    """Kinds of room timers."""

    COUNTDOWN = "countdown"
    DEAL = "deal"
    DISCONNECT_GRACE = "disconnect_grace"
    BOT_THINK = "bot_think"
