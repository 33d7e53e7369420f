"""Domain event models and service event transport container.

Domain events are produced by the game service for every transition.
ServiceEvent wraps each one with a typed routing target; convert_events()
performs that mapping.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, model_validator

from thirteen.logic.cards import CardField
from thirteen.logic.enums import GameErrorCode
from thirteen.logic.types import RoomView

_USER_TARGET_PREFIX = "user:"

# ---------------------------------------------------------------------------
# Typed routing targets
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BroadcastTarget:
    """Event should be sent to every connected participant of the room."""


@dataclass(frozen=True)
class ParticipantTarget:
    """Event should be sent to one participant."""

    user_id: str


EventTarget = BroadcastTarget | ParticipantTarget


def user_target(user_id: str) -> str:
    return f"{_USER_TARGET_PREFIX}{user_id}"


def parse_event_target(value: str) -> EventTarget:
    """Parse a string target into a typed EventTarget."""
    if value == "all":
        return BroadcastTarget()
    if value.startswith(_USER_TARGET_PREFIX) and len(value) > len(_USER_TARGET_PREFIX):
        return ParticipantTarget(user_id=value[len(_USER_TARGET_PREFIX) :])
    raise ValueError(f"invalid target value: {value}")


# ---------------------------------------------------------------------------
# Event type enum
# ---------------------------------------------------------------------------


class EventType(str, Enum):
    """Types of game events."""

    ROOM_STATE = "room_state"
    COUNTDOWN = "countdown"
    GAME_STARTED = "game_started"
    CARDS_DEALT = "cards_dealt"
    GAME_UPDATE = "game_update"
    GAME_ENDED = "game_ended"
    ERROR = "error"


# event types that carry a per-recipient RoomView
VIEW_EVENT_TYPES = frozenset(
    {EventType.ROOM_STATE, EventType.GAME_STARTED, EventType.CARDS_DEALT, EventType.GAME_UPDATE},
)

# ---------------------------------------------------------------------------
# Domain event models
# ---------------------------------------------------------------------------


class GameEvent(BaseModel):
    """Base class for all domain game events."""

    model_config = ConfigDict(frozen=True)

    type: EventType
    target: str


class RoomViewEvent(GameEvent):
    """Base for events that deliver a room snapshot to one participant."""

    room: RoomView


class RoomStateEvent(RoomViewEvent):
    """Seating, readiness or connection changed."""

    type: Literal[EventType.ROOM_STATE] = EventType.ROOM_STATE


class GameStartedEvent(RoomViewEvent):
    type: Literal[EventType.GAME_STARTED] = EventType.GAME_STARTED


class CardsDealtEvent(RoomViewEvent):
    type: Literal[EventType.CARDS_DEALT] = EventType.CARDS_DEALT


class GameUpdateEvent(RoomViewEvent):
    """Sent after every resolved play or pass."""

    type: Literal[EventType.GAME_UPDATE] = EventType.GAME_UPDATE


class CountdownEvent(GameEvent):
    type: Literal[EventType.COUNTDOWN] = EventType.COUNTDOWN
    target: str = "all"
    seconds: int


class GameEndedEvent(GameEvent):
    type: Literal[EventType.GAME_ENDED] = EventType.GAME_ENDED
    target: str = "all"
    winner_id: str
    winner_name: str
    cards: tuple[CardField, ...]


class ErrorEvent(GameEvent):
    type: Literal[EventType.ERROR] = EventType.ERROR
    code: GameErrorCode
    message: str


VIEW_EVENT_CLASSES: dict[EventType, type[RoomViewEvent]] = {
    EventType.ROOM_STATE: RoomStateEvent,
    EventType.GAME_STARTED: GameStartedEvent,
    EventType.CARDS_DEALT: CardsDealtEvent,
    EventType.GAME_UPDATE: GameUpdateEvent,
}

Event = (
    RoomStateEvent
    | GameStartedEvent
    | CardsDealtEvent
    | GameUpdateEvent
    | CountdownEvent
    | GameEndedEvent
    | ErrorEvent
)


# ---------------------------------------------------------------------------
# Service event transport container
# ---------------------------------------------------------------------------


class ServiceEvent(BaseModel):
    """Event transport container for the game service layer.

    Uses typed internal targets (BroadcastTarget / ParticipantTarget) for routing.
    """

    model_config = {"arbitrary_types_allowed": True}

    event: EventType
    data: GameEvent
    target: EventTarget = BroadcastTarget()

    @model_validator(mode="after")
    def _ensure_event_matches_data(self) -> ServiceEvent:
        if self.event != self.data.type:
            raise ValueError(
                f"ServiceEvent.event '{self.event.value}' does not match data.type '{self.data.type.value}'",
            )
        return self


def convert_events(raw_events: list[GameEvent]) -> list[ServiceEvent]:
    """Convert domain events to service events with typed targets."""
    return [
        ServiceEvent(event=event.type, data=event, target=parse_event_target(event.target)) for event in raw_events
    ]
