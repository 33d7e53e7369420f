"""Shared broadcast utility for sending messages to a room's connections."""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from thirteen.messaging.protocol import ConnectionProtocol


async def send_to_connection(connection: ConnectionProtocol | None, message: dict[str, Any]) -> None:
    """Send to one connection; a closed socket is not an error."""
    if connection is None:
        return
    with contextlib.suppress(RuntimeError, OSError):
        await connection.send_message(message)


async def broadcast_to_players(
    connections: dict[str, ConnectionProtocol],
    message: dict[str, Any],
    exclude_user_id: str | None = None,
) -> None:
    """Broadcast a message to every connection of a room, skipping one user if excluded.

    Snapshot the dict items via list() so a concurrent disconnect mutating
    the dict while we yield on send_message is harmless.
    """
    for user_id, connection in list(connections.items()):
        if user_id != exclude_user_id:
            await send_to_connection(connection, message)
