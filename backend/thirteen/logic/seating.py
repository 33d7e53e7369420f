"""
Seating, readiness and bot management.

All operations are allowed only before a game is running (lobby, countdown
or finished). Failures raise PreconditionError with a client-facing code.
"""

from __future__ import annotations

from thirteen.logic.action_result import ActionResult
from thirteen.logic.enums import PRE_GAME_STATUSES, GameErrorCode, RoomStatus
from thirteen.logic.events import CountdownEvent
from thirteen.logic.exceptions import PreconditionError
from thirteen.logic.state import Participant, RoomState
from thirteen.logic.state_utils import (
    add_participant,
    connected_seated,
    first_empty_seat,
    get_participant,
    participant_at_seat,
    remove_participant,
    update_participant,
)

BOT_ID_PREFIX = "bot-"


def check_readiness(state: RoomState) -> None:
    """Raise PreconditionError unless a game may start.

    Requires at least ``min_players`` seated connected participants, all of
    them ready. Disconnected seated participants are not counted.
    """
    players = connected_seated(state)
    if len(players) < state.settings.min_players:
        raise PreconditionError(
            GameErrorCode.NOT_ENOUGH_PLAYERS,
            f"At least {state.settings.min_players} connected seated players are required",
        )
    if not all(p.ready for p in players):
        raise PreconditionError(GameErrorCode.PLAYERS_NOT_READY, "All players must be ready to start the game")


def is_ready_to_start(state: RoomState) -> bool:
    try:
        check_readiness(state)
    except PreconditionError:
        return False
    return True


def cancel_countdown(state: RoomState) -> RoomState:
    if state.status != RoomStatus.COUNTDOWN:
        return state
    return state.model_copy(update={"status": RoomStatus.LOBBY, "countdown_remaining": 0})


def _refresh_countdown(state: RoomState) -> ActionResult:
    """Enter or leave the countdown depending on readiness."""
    ready = is_ready_to_start(state)
    if state.status == RoomStatus.COUNTDOWN and not ready:
        return ActionResult(cancel_countdown(state))
    if state.status in (RoomStatus.LOBBY, RoomStatus.FINISHED) and ready:
        seconds = state.settings.countdown_seconds
        new_state = state.model_copy(update={"status": RoomStatus.COUNTDOWN, "countdown_remaining": seconds})
        return ActionResult(new_state, events=(CountdownEvent(seconds=seconds),))
    return ActionResult(state)


def _require_pre_game(state: RoomState) -> None:
    if state.status not in PRE_GAME_STATUSES:
        raise PreconditionError(GameErrorCode.GAME_IN_PROGRESS, "A game is in progress")


def _require_participant(state: RoomState, user_id: str) -> Participant:
    participant = get_participant(state, user_id)
    if participant is None:
        raise PreconditionError(GameErrorCode.UNKNOWN_PARTICIPANT, "You are not in this room")
    return participant


def take_seat(state: RoomState, user_id: str, seat: int) -> ActionResult:
    _require_pre_game(state)
    participant = _require_participant(state, user_id)
    if not 0 <= seat < state.settings.seat_count:
        raise PreconditionError(GameErrorCode.INVALID_SEAT, f"Seat {seat} does not exist")
    occupant = participant_at_seat(state, seat)
    if occupant is not None and occupant.user_id != user_id:
        raise PreconditionError(GameErrorCode.SEAT_OCCUPIED, "Chair is occupied")
    if occupant is not None:
        return ActionResult(state, view=None)
    new_state = update_participant(state, participant.user_id, seat=seat, ready=False)
    return ActionResult(cancel_countdown(new_state))


def stand(state: RoomState, user_id: str) -> ActionResult:
    _require_pre_game(state)
    participant = _require_participant(state, user_id)
    if not participant.is_seated:
        raise PreconditionError(GameErrorCode.NOT_SEATED, "You are not seated")
    new_state = update_participant(state, user_id, seat=None, ready=False)
    return ActionResult(cancel_countdown(new_state))


def toggle_ready(state: RoomState, user_id: str) -> ActionResult:
    _require_pre_game(state)
    participant = _require_participant(state, user_id)
    if not participant.is_seated:
        raise PreconditionError(GameErrorCode.NOT_SEATED, "Take a seat before getting ready")
    return _refresh_countdown(update_participant(state, user_id, ready=not participant.ready))


def add_bot(state: RoomState) -> ActionResult:
    """Seat a new always-ready bot in the first empty seat."""
    _require_pre_game(state)
    seat = first_empty_seat(state)
    if seat is None:
        raise PreconditionError(GameErrorCode.ROOM_FULL, "No empty seat for a bot")
    number = state.bots_added + 1
    bot = Participant(
        user_id=f"{BOT_ID_PREFIX}{number}",
        name=f"Bot {number}",
        seat=seat,
        ready=True,
        is_bot=True,
    )
    new_state = add_participant(state, bot).model_copy(update={"bots_added": number})
    return _refresh_countdown(new_state)


def remove_bot(state: RoomState, bot_id: str) -> ActionResult:
    _require_pre_game(state)
    participant = get_participant(state, bot_id)
    if participant is None or not participant.is_bot:
        raise PreconditionError(GameErrorCode.NOT_A_BOT, "Only bots can be removed")
    return _refresh_countdown(remove_participant(state, bot_id))
