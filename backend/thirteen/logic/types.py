"""
Pydantic models for data crossing the logic boundary.

RoomView is the per-recipient projection of a RoomState: public information
about every participant plus the recipient's own hand. Other hands are
reduced to a card count.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from thirteen.logic.cards import CardField
from thirteen.logic.enums import CombinationType, RoomStatus
from thirteen.logic.state import LastAction

if TYPE_CHECKING:
    from thirteen.logic.state import RoomState


class ParticipantView(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    name: str
    seat: int | None
    connected: bool
    ready: bool
    is_bot: bool
    hand_count: int


class RoomView(BaseModel):
    """Snapshot of a room as seen by one participant."""

    model_config = ConfigDict(frozen=True)

    room_id: str
    status: RoomStatus
    seat_count: int
    viewer_id: str
    hand: tuple[CardField, ...]
    participants: tuple[ParticipantView, ...]
    pile: tuple[CardField, ...]
    combination_type: CombinationType | None
    current_player_id: str | None
    passed_ids: tuple[str, ...]
    round_number: int
    last_action: LastAction | None
    winner_id: str | None
    winner_cards: tuple[CardField, ...]
    countdown_remaining: int


def build_room_view(state: RoomState, viewer_id: str) -> RoomView:
    own_hand: tuple = ()
    participants = []
    for participant in state.participants:
        if participant.user_id == viewer_id:
            own_hand = participant.hand
        participants.append(
            ParticipantView(
                user_id=participant.user_id,
                name=participant.name,
                seat=participant.seat,
                connected=participant.connected,
                ready=participant.ready,
                is_bot=participant.is_bot,
                hand_count=len(participant.hand),
            ),
        )
    turn = state.turn
    return RoomView(
        room_id=state.room_id,
        status=state.status,
        seat_count=state.settings.seat_count,
        viewer_id=viewer_id,
        hand=own_hand,
        participants=tuple(participants),
        pile=state.pile,
        combination_type=state.current_combination.type if state.current_combination is not None else None,
        current_player_id=turn.current_player_id if turn is not None else None,
        passed_ids=turn.passed_ids if turn is not None else (),
        round_number=turn.round_number if turn is not None else 0,
        last_action=state.last_action,
        winner_id=state.winner_id,
        winner_cards=state.winner_cards,
        countdown_remaining=state.countdown_remaining,
    )
