"""
Room membership and connection presence.

Participants are never removed while a game is running; a dropped
connection only flips the connected flag. The session layer arms the
disconnect grace timer whenever grace_candidate() names a participant.
"""

from __future__ import annotations

import structlog

from thirteen.logic.action_result import ActionResult
from thirteen.logic.enums import RUNNING_STATUSES, GameErrorCode, RoomStatus
from thirteen.logic.exceptions import PreconditionError
from thirteen.logic.seating import cancel_countdown
from thirteen.logic.state import Participant, RoomState
from thirteen.logic.state_utils import (
    add_participant,
    get_participant,
    update_participant,
)
from thirteen.logic.turn import abort_game

logger = structlog.get_logger()


def join(state: RoomState, user_id: str, name: str) -> ActionResult:
    """Add a participant as a spectator, or reconnect a known one."""
    if get_participant(state, user_id) is not None:
        return mark_reconnected(state, user_id)
    if len(state.participants) >= state.settings.max_participants:
        raise PreconditionError(GameErrorCode.ROOM_FULL, "Room is full")
    return ActionResult(add_participant(state, Participant(user_id=user_id, name=name)))


def mark_reconnected(state: RoomState, user_id: str) -> ActionResult:
    """Mark a known participant connected again; hand, seat and ready are kept."""
    if get_participant(state, user_id) is None:
        raise PreconditionError(GameErrorCode.UNKNOWN_PARTICIPANT, "You are not in this room")
    return ActionResult(update_participant(state, user_id, connected=True, disconnected_at=None))


def mark_disconnected(state: RoomState, user_id: str, now: float) -> ActionResult:
    """
    Mark a participant disconnected in place.

    Cancels a pending countdown. Aborts a running game when no seated human
    is left connected.
    """
    participant = get_participant(state, user_id)
    if participant is None or not participant.connected:
        return ActionResult(state, view=None)

    new_state = update_participant(state, user_id, connected=False, disconnected_at=now)
    new_state = cancel_countdown(new_state)

    if new_state.status in RUNNING_STATUSES and not any(
        p.connected and not p.is_bot for p in new_state.participants if p.is_seated
    ):
        return abort_game(new_state)
    return ActionResult(new_state)


def grace_candidate(state: RoomState) -> str | None:
    """Return the current actor if they are a disconnected human in an active game."""
    if state.status != RoomStatus.ACTIVE or state.turn is None:
        return None
    participant = get_participant(state, state.turn.current_player_id)
    if participant is None or participant.connected or participant.is_bot:
        return None
    return participant.user_id


def prune_disconnected(state: RoomState, now: float) -> RoomState | None:
    """
    Drop humans disconnected for longer than participant_prune_seconds.

    Only applies outside a running game. Returns None when nothing changed.
    """
    if state.status in RUNNING_STATUSES:
        return None
    cutoff = now - state.settings.participant_prune_seconds
    kept = tuple(
        p
        for p in state.participants
        if p.is_bot or p.connected or p.disconnected_at is None or p.disconnected_at > cutoff
    )
    if len(kept) == len(state.participants):
        return None
    logger.debug("pruned disconnected participants", room_id=state.room_id, count=len(state.participants) - len(kept))
    return cancel_countdown(state.model_copy(update={"participants": kept}))


def has_human_participants(state: RoomState) -> bool:
    return any(not p.is_bot for p in state.participants)
