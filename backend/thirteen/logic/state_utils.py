"""
Immutable state update utilities using Pydantic model_copy.

These helpers never mutate their input; they return new RoomState objects
with the requested change applied.
"""

from __future__ import annotations

from thirteen.logic.state import Participant, RoomState


def get_participant(state: RoomState, user_id: str) -> Participant | None:
    for participant in state.participants:
        if participant.user_id == user_id:
            return participant
    return None


def participant_at_seat(state: RoomState, seat: int) -> Participant | None:
    for participant in state.participants:
        if participant.seat == seat:
            return participant
    return None


def seated_participants(state: RoomState) -> list[Participant]:
    """Seated participants in seat order."""
    return sorted(
        (p for p in state.participants if p.is_seated),
        key=lambda p: p.seat if p.seat is not None else -1,
    )


def connected_seated(state: RoomState) -> list[Participant]:
    return [p for p in seated_participants(state) if p.connected]


def connected_humans(state: RoomState) -> list[Participant]:
    return [p for p in state.participants if p.connected and not p.is_bot]


def first_empty_seat(state: RoomState) -> int | None:
    for seat, user_id in enumerate(state.seats):
        if user_id is None:
            return seat
    return None


def update_participant(state: RoomState, user_id: str, **updates: object) -> RoomState:
    """
    Return new state with the participant's fields updated.

    Raises:
        KeyError: If no participant has the given user_id.

    """
    participants = list(state.participants)
    for index, participant in enumerate(participants):
        if participant.user_id == user_id:
            participants[index] = participant.model_copy(update=updates)
            return state.model_copy(update={"participants": tuple(participants)})
    raise KeyError(user_id)


def add_participant(state: RoomState, participant: Participant) -> RoomState:
    return state.model_copy(update={"participants": (*state.participants, participant)})


def remove_participant(state: RoomState, user_id: str) -> RoomState:
    return state.model_copy(
        update={"participants": tuple(p for p in state.participants if p.user_id != user_id)},
    )
