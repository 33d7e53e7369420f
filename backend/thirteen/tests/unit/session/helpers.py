from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from thirteen.logic.enums import GameAction
from thirteen.tests.mocks.connection import MockConnection

if TYPE_CHECKING:
    from collections.abc import Callable

    from thirteen.logic.state import RoomState
    from thirteen.session.manager import SessionManager

ROOM_ID = "room1"


async def join(manager: SessionManager, user_id: str, room_id: str = ROOM_ID) -> MockConnection:
    """Register a fresh connection and join it to the room as ``user_id``."""
    conn = MockConnection(room_id=room_id)
    manager.register_connection(conn)
    await manager.join_room(conn, room_id, user_id, user_id.capitalize())
    return conn


async def act(manager: SessionManager, conn: MockConnection, action: GameAction, **data: object) -> None:
    await manager.handle_game_action(conn, action, data)


def room_state(manager: SessionManager, room_id: str = ROOM_ID) -> RoomState | None:
    return manager._game_service.get_room_state(room_id)


def install_state(manager: SessionManager, state: RoomState) -> None:
    """Replace the live room state and arm whatever timers it calls for."""
    manager._game_service._rooms[state.room_id] = state
    manager._sync_timers(state.room_id)


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    """Poll until predicate() holds; fail the test on timeout."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


def clear_outboxes(*connections: MockConnection) -> None:
    for conn in connections:
        conn._outbox.clear()
