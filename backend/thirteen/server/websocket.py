"""
WebSocket transport for one room per socket.

The room id comes from the URL path. Every log line for the life of the
socket carries that room id and the connection id.
"""

from __future__ import annotations

import contextlib
import re
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect

from shared.logging import room_log_context
from thirteen.messaging.encoder import DecodeError, decode
from thirteen.messaging.protocol import ConnectionProtocol
from thirteen.messaging.types import ErrorMessage, SessionErrorCode
from thirteen.server.rate_limit import TokenBucket

if TYPE_CHECKING:
    from thirteen.messaging.router import MessageRouter

logger = structlog.get_logger()

_ROOM_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
_MAX_ROOM_ID_LENGTH = 50

_RATE_LIMIT_RATE = 10.0
_RATE_LIMIT_BURST = 20
_MAX_DECODE_ERRORS = 5

CLOSE_INVALID_ROOM_ID = 4000
CLOSE_TOO_MANY_DECODE_ERRORS = 4004


def is_valid_room_id(room_id: str) -> bool:
    return len(room_id) <= _MAX_ROOM_ID_LENGTH and _ROOM_ID_PATTERN.match(room_id) is not None


class WebSocketConnection(ConnectionProtocol):
    def __init__(self, websocket: WebSocket, room_id: str, connection_id: str | None = None) -> None:
        self._websocket = websocket
        self._room_id = room_id
        self._connection_id = connection_id or str(uuid4())

    @property
    def connection_id(self) -> str:
        return self._connection_id

    @property
    def room_id(self) -> str:
        return self._room_id

    async def send_bytes(self, data: bytes) -> None:
        try:
            await self._websocket.send_bytes(data)
        except WebSocketDisconnect:
            raise ConnectionError("WebSocket already disconnected") from None

    async def receive_bytes(self) -> bytes:
        try:
            return await self._websocket.receive_bytes()
        except WebSocketDisconnect:
            raise ConnectionError("WebSocket already disconnected") from None

    async def close(self, code: int = 1000, reason: str = "") -> None:
        with contextlib.suppress(WebSocketDisconnect, RuntimeError):
            await self._websocket.close(code=code, reason=reason)


class FrameGate:
    """
    Screens inbound frames for one connection.

    Frames are decoded before rate limiting so every malformed frame counts
    as a strike. A well-formed frame clears the strikes.
    """

    def __init__(self, connection: ConnectionProtocol) -> None:
        self._connection = connection
        self._bucket = TokenBucket(rate=_RATE_LIMIT_RATE, burst=_RATE_LIMIT_BURST)
        self.decode_errors = 0

    @property
    def struck_out(self) -> bool:
        return self.decode_errors >= _MAX_DECODE_ERRORS

    async def admit(self, raw: bytes) -> dict[str, Any] | None:
        """Decoded message, or None after answering the sender with an error."""
        try:
            data = decode(raw)
        except DecodeError as e:
            self.decode_errors += 1
            logger.warning("decode error", error=str(e), strikes=self.decode_errors)
            await self._reject(SessionErrorCode.INVALID_MESSAGE, str(e))
            return None

        self.decode_errors = 0
        if not self._bucket.consume():
            await self._reject(SessionErrorCode.RATE_LIMITED, "Too many messages")
            return None
        return data

    async def _reject(self, code: SessionErrorCode, message: str) -> None:
        await self._connection.send_message(ErrorMessage(code=code, message=message).model_dump())


async def _serve(connection: WebSocketConnection, router: MessageRouter) -> None:
    gate = FrameGate(connection)
    while True:
        data = await gate.admit(await connection.receive_bytes())
        if data is not None:
            await router.handle_message(connection, data)
        elif gate.struck_out:
            logger.info("too many decode errors", strikes=gate.decode_errors)
            await connection.close(code=CLOSE_TOO_MANY_DECODE_ERRORS, reason="too_many_decode_errors")
            return


async def websocket_endpoint(websocket: WebSocket, router: MessageRouter) -> None:
    room_id = websocket.path_params["room_id"]
    if not is_valid_room_id(room_id):
        await websocket.close(code=CLOSE_INVALID_ROOM_ID, reason="invalid_room_id")
        return

    await websocket.accept()
    connection = WebSocketConnection(websocket, room_id=room_id)

    with room_log_context(room_id), structlog.contextvars.bound_contextvars(connection_id=connection.connection_id):
        logger.info("websocket connected")
        await router.handle_connect(connection)
        try:
            await _serve(connection, router)
        except (WebSocketDisconnect, RuntimeError, ConnectionError):
            pass
        finally:
            logger.info("websocket disconnected")
            await router.handle_disconnect(connection)
