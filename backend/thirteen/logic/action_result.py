"""Result type shared by all room transition functions."""

from typing import NamedTuple

from thirteen.logic.events import EventType, GameEvent
from thirteen.logic.state import RoomState


class ActionResult(NamedTuple):
    """
    Result of a room transition.

    ``state`` is the new immutable room state. ``view`` names the per-recipient
    snapshot event to fan out after the transition (None for no snapshot), and
    ``events`` holds any additional events, sent after the snapshots.
    """

    state: RoomState
    view: EventType | None = EventType.ROOM_STATE
    events: tuple[GameEvent, ...] = ()
