"""
Immutable room state models.

All models are frozen; transitions build new instances with model_copy and
helpers from state_utils. A RoomState is the unit that is persisted,
restored and broadcast (through per-recipient views).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from thirteen.logic.cards import CardField
from thirteen.logic.combinations import Combination
from thirteen.logic.enums import GameAction, RoomStatus
from thirteen.logic.settings import GameSettings


class Participant(BaseModel):
    """A human or bot in a room. Seat None means spectator."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    name: str
    seat: int | None = None
    connected: bool = True
    ready: bool = False
    is_bot: bool = False
    hand: tuple[CardField, ...] = ()
    disconnected_at: float | None = None

    @property
    def is_seated(self) -> bool:
        return self.seat is not None

    @property
    def has_cards(self) -> bool:
        return len(self.hand) > 0


class TurnState(BaseModel):
    """Turn rotation state of a running game."""

    model_config = ConfigDict(frozen=True)

    current_player_id: str
    passed_ids: tuple[str, ...] = ()
    last_player_id: str | None = None
    round_number: int = 1


class LastAction(BaseModel):
    """The most recent resolved play or pass, shown to clients."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    action: GameAction
    cards: tuple[CardField, ...] = ()
    round_reset: bool = False


class RoomState(BaseModel):
    """Complete state of one room."""

    model_config = ConfigDict(frozen=True)

    room_id: str
    settings: GameSettings = Field(default_factory=GameSettings)
    status: RoomStatus = RoomStatus.LOBBY
    participants: tuple[Participant, ...] = ()
    pile: tuple[CardField, ...] = ()
    current_combination: Combination | None = None
    turn: TurnState | None = None
    last_action: LastAction | None = None
    winner_id: str | None = None
    winner_cards: tuple[CardField, ...] = ()
    countdown_remaining: int = 0
    bots_added: int = 0
    version: int = 0
    created_at: float = 0.0
    updated_at: float = 0.0

    @property
    def seats(self) -> tuple[str | None, ...]:
        """User id bound to each seat index, None for empty seats."""
        bound: list[str | None] = [None] * self.settings.seat_count
        for participant in self.participants:
            if participant.seat is not None:
                bound[participant.seat] = participant.user_id
        return tuple(bound)

    @property
    def current_player_id(self) -> str | None:
        return self.turn.current_player_id if self.turn is not None else None
