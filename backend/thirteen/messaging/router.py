from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from thirteen.messaging.identity import IdentityResolver
from thirteen.messaging.types import (
    GAME_ACTIONS,
    ChatMessage,
    ErrorMessage,
    JoinRoomMessage,
    PingMessage,
    ReconnectMessage,
    SessionErrorCode,
    parse_client_message,
)

if TYPE_CHECKING:
    from thirteen.messaging.identity import ResolvedIdentity
    from thirteen.messaging.protocol import ConnectionProtocol
    from thirteen.messaging.types import GameActionMessage
    from thirteen.session.manager import SessionManager

logger = logging.getLogger(__name__)


class MessageRouter:
    """
    Routes incoming messages to the session manager.

    This class contains no transport code and can be tested
    without real WebSocket connections.
    """

    def __init__(self, session_manager: SessionManager, *, game_ticket_secret: str) -> None:
        self._session_manager = session_manager
        self._identity = IdentityResolver(game_ticket_secret)

    async def handle_message(
        self,
        connection: ConnectionProtocol,
        raw_message: dict[str, Any],
    ) -> None:
        try:
            message = parse_client_message(raw_message)
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning("invalid message from %s: %s", connection.connection_id, e)
            await self._send_error(connection, SessionErrorCode.INVALID_MESSAGE, str(e))
            return

        if isinstance(message, (JoinRoomMessage, ReconnectMessage)):
            await self._handle_join(connection, message)
        elif isinstance(message, PingMessage):
            await self._session_manager.handle_ping(connection)
        elif isinstance(message, ChatMessage):
            await self._session_manager.broadcast_chat(connection, message.text)
        else:
            await self._handle_game_action(connection, message)

    async def _handle_join(
        self,
        connection: ConnectionProtocol,
        message: JoinRoomMessage | ReconnectMessage,
    ) -> None:
        """Resolve the ticket to a stable identity and join (or rejoin) the room.

        join_room and reconnect share one path: the room decides from the
        stable id whether this is a first join or a return.
        """
        identity = await self._resolve_identity(connection, message)
        if identity is None:
            return
        await self._session_manager.join_room(
            connection=connection,
            room_id=identity.room_id,
            user_id=identity.user_id,
            name=identity.name,
        )

    async def _resolve_identity(
        self,
        connection: ConnectionProtocol,
        message: JoinRoomMessage | ReconnectMessage,
    ) -> ResolvedIdentity | None:
        if message.room_id != connection.room_id:
            await self._send_error(connection, SessionErrorCode.ROOM_MISMATCH, "Room does not match the connection")
            return None
        identity = self._identity.resolve_stable_id(connection.connection_id, message.game_ticket, message.room_id)
        if identity is None:
            await self._send_error(connection, SessionErrorCode.INVALID_TICKET, "Invalid game ticket")
        return identity

    async def _handle_game_action(self, connection: ConnectionProtocol, message: GameActionMessage) -> None:
        """Forward a game action; an unexpected failure is logged and contained to this request."""
        action = GAME_ACTIONS[message.type]
        data = message.model_dump(exclude={"type"}, mode="json")
        try:
            await self._session_manager.handle_game_action(connection=connection, action=action, data=data)
        except Exception:
            logger.exception("unexpected error during %s for %s", action.value, connection.connection_id)
            await self._send_error(connection, SessionErrorCode.ACTION_FAILED, "Action could not be processed")

    async def _send_error(self, connection: ConnectionProtocol, code: SessionErrorCode, message: str) -> None:
        await connection.send_message(ErrorMessage(code=code, message=message).model_dump())

    async def handle_connect(self, connection: ConnectionProtocol) -> None:
        self._session_manager.register_connection(connection)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        await self._session_manager.handle_disconnect(connection)
        self._session_manager.unregister_connection(connection)
