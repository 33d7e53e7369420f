from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from thirteen.logic.bot import BotDecision
    from thirteen.logic.enums import GameAction, TimeoutType
    from thirteen.logic.events import ServiceEvent
    from thirteen.logic.state import RoomState


class GameService(ABC):
    """
    Abstract interface for room game logic.

    The service owns the authoritative RoomState of every loaded room. Every
    mutating method returns the service events produced by the transition;
    an empty list means the request was dropped without a state change.
    Event targets are BroadcastTarget (every connected participant) or
    ParticipantTarget (one participant by stable user id).
    """

    @abstractmethod
    def load_room(self, room_id: str, snapshot: RoomState | None = None) -> RoomState:
        """
        Register a room, restoring it from a snapshot when one is given.

        Restored humans start disconnected until their connection returns.
        Returns the existing state if the room is already loaded.
        """
        ...

    @abstractmethod
    def get_room_state(self, room_id: str) -> RoomState | None: ...

    @abstractmethod
    def cleanup_room(self, room_id: str) -> None:
        """Forget a room's in-memory state."""
        ...

    @abstractmethod
    def join(self, room_id: str, user_id: str, name: str) -> list[ServiceEvent]:
        """Add a participant as spectator, or reconnect a known one."""
        ...

    @abstractmethod
    def handle_action(
        self,
        room_id: str,
        user_id: str,
        action: GameAction,
        data: dict[str, Any],
    ) -> list[ServiceEvent]:
        """Handle a client action for a participant."""
        ...

    @abstractmethod
    def handle_disconnect(self, room_id: str, user_id: str) -> list[ServiceEvent]: ...

    @abstractmethod
    def handle_timeout(self, room_id: str, timeout_type: TimeoutType, user_id: str) -> list[ServiceEvent]:
        """Perform the transition a fired room timer was armed for, if still valid."""
        ...

    @abstractmethod
    def plan_bot_move(self, room_id: str, user_id: str) -> BotDecision | None:
        """Choose a bot's move and thinking delay; None if it is not the bot's turn."""
        ...

    @abstractmethod
    def submit_bot_move(self, room_id: str, user_id: str, decision: BotDecision) -> list[ServiceEvent]:
        """Submit a planned bot move; dropped if the room version moved on since planning."""
        ...

    @abstractmethod
    def prune_room(self, room_id: str) -> list[ServiceEvent]:
        """Drop long-disconnected participants outside a running game."""
        ...

    @abstractmethod
    def build_snapshot_events(self, room_id: str, user_id: str) -> list[ServiceEvent]:
        """Room snapshot for a single participant (used after reconnect)."""
        ...
