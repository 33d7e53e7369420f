from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from thirteen.messaging.protocol import ConnectionProtocol


@dataclass
class Player:
    """Bind a transient connection to a stable participant identity.

    Lifecycle:
    - Created when a join/reconnect with a valid ticket is accepted
    - Dropped on disconnect, or when a newer connection of the same user
      replaces it (the old connection's close is then ignored)
    """

    connection: ConnectionProtocol
    user_id: str
    name: str
    room_id: str

    @property
    def connection_id(self) -> str:
        return self.connection.connection_id


@dataclass
class Room:
    """In-memory session of one room: its lock and the live connections.

    ``connections`` maps stable user id -> current connection. The game
    state itself lives in the game service.
    """

    room_id: str
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    connections: dict[str, ConnectionProtocol] = field(default_factory=dict)
    last_activity: float = field(default_factory=time.monotonic)
    saved_version: int = -1

    def touch(self) -> None:
        self.last_activity = time.monotonic()

    @property
    def is_empty(self) -> bool:
        return not self.connections

    def idle_for(self, now: float) -> float:
        return now - self.last_activity
