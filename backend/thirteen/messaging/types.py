from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from thirteen.logic.cards import CardField
from thirteen.logic.enums import GameAction

# ASCII control character boundaries for input validation
_SPACE_ORD = 0x20
_DEL_ORD = 0x7F

MAX_PLAY_CARDS = 13


class ClientMessageType(StrEnum):
    JOIN_ROOM = "join_room"
    RECONNECT = "reconnect"
    TAKE_SEAT = "take_seat"
    STAND = "stand"
    TOGGLE_READY = "toggle_ready"
    START_GAME = "start_game"
    DEAL_CARDS = "deal_cards"
    PLAY_CARDS = "play_cards"
    PASS = "pass"
    ADD_BOT = "add_bot"
    REMOVE_BOT = "remove_bot"
    CHAT = "chat"
    PING = "ping"


class SessionMessageType(StrEnum):
    ERROR = "session_error"
    PONG = "pong"
    CHAT = "chat"


class SessionErrorCode(StrEnum):
    INVALID_MESSAGE = "invalid_message"
    INVALID_TICKET = "invalid_ticket"
    ROOM_MISMATCH = "room_mismatch"
    NOT_IN_ROOM = "not_in_room"
    ALREADY_IN_ROOM = "already_in_room"
    RATE_LIMITED = "rate_limited"
    ACTION_FAILED = "action_failed"


_ROOM_ID_FIELD = Field(min_length=1, max_length=50, pattern=r"^[a-zA-Z0-9_-]+$")


class JoinRoomMessage(BaseModel):
    type: Literal[ClientMessageType.JOIN_ROOM] = ClientMessageType.JOIN_ROOM
    room_id: str = _ROOM_ID_FIELD
    game_ticket: str = Field(min_length=1, max_length=2000)


class ReconnectMessage(BaseModel):
    type: Literal[ClientMessageType.RECONNECT] = ClientMessageType.RECONNECT
    room_id: str = _ROOM_ID_FIELD
    game_ticket: str = Field(min_length=1, max_length=2000)


class TakeSeatMessage(BaseModel):
    type: Literal[ClientMessageType.TAKE_SEAT] = ClientMessageType.TAKE_SEAT
    seat: int = Field(ge=0, lt=16)


class PlayCardsMessage(BaseModel):
    type: Literal[ClientMessageType.PLAY_CARDS] = ClientMessageType.PLAY_CARDS
    cards: list[CardField] = Field(min_length=1, max_length=MAX_PLAY_CARDS)


class RemoveBotMessage(BaseModel):
    type: Literal[ClientMessageType.REMOVE_BOT] = ClientMessageType.REMOVE_BOT
    user_id: str = Field(min_length=1, max_length=100)


class NoDataActionMessage(BaseModel):
    type: Literal[
        ClientMessageType.STAND,
        ClientMessageType.TOGGLE_READY,
        ClientMessageType.START_GAME,
        ClientMessageType.DEAL_CARDS,
        ClientMessageType.PASS,
        ClientMessageType.ADD_BOT,
    ]


class ChatMessage(BaseModel):
    type: Literal[ClientMessageType.CHAT] = ClientMessageType.CHAT
    text: str = Field(min_length=1, max_length=1000)

    @field_validator("text")
    @classmethod
    def _validate_text(cls, v: str) -> str:
        if any((ord(c) < _SPACE_ORD and c not in ("\t", "\n", "\r")) or ord(c) == _DEL_ORD for c in v):
            raise ValueError("text must not contain control characters")
        return v


class PingMessage(BaseModel):
    type: Literal[ClientMessageType.PING] = ClientMessageType.PING


GameActionMessage = TakeSeatMessage | PlayCardsMessage | RemoveBotMessage | NoDataActionMessage

ClientMessage = JoinRoomMessage | ReconnectMessage | GameActionMessage | ChatMessage | PingMessage

# client message type -> game action dispatched to the game service
GAME_ACTIONS: dict[ClientMessageType, GameAction] = {
    ClientMessageType.TAKE_SEAT: GameAction.TAKE_SEAT,
    ClientMessageType.STAND: GameAction.STAND,
    ClientMessageType.TOGGLE_READY: GameAction.TOGGLE_READY,
    ClientMessageType.START_GAME: GameAction.START_GAME,
    ClientMessageType.DEAL_CARDS: GameAction.DEAL_CARDS,
    ClientMessageType.PLAY_CARDS: GameAction.PLAY_CARDS,
    ClientMessageType.PASS: GameAction.PASS,
    ClientMessageType.ADD_BOT: GameAction.ADD_BOT,
    ClientMessageType.REMOVE_BOT: GameAction.REMOVE_BOT,
}


class ErrorMessage(BaseModel):
    type: Literal[SessionMessageType.ERROR] = SessionMessageType.ERROR
    code: SessionErrorCode
    message: str


class PongMessage(BaseModel):
    type: Literal[SessionMessageType.PONG] = SessionMessageType.PONG


class SessionChatMessage(BaseModel):
    type: Literal[SessionMessageType.CHAT] = SessionMessageType.CHAT
    user_id: str
    name: str
    text: str


_client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(
    Annotated[
        JoinRoomMessage
        | ReconnectMessage
        | TakeSeatMessage
        | PlayCardsMessage
        | RemoveBotMessage
        | NoDataActionMessage
        | ChatMessage
        | PingMessage,
        Field(discriminator="type"),
    ],
)


def parse_client_message(data: dict[str, Any]) -> ClientMessage:
    """Parse a raw dict into a typed ClientMessage (discriminated by ``type``)."""
    return _client_message_adapter.validate_python(data)
