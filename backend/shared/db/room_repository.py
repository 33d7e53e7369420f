"""SQLite-backed room repository."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import TYPE_CHECKING

import structlog

from shared.dal.models import RoomSummary, StoredRoom
from shared.dal.room_repository import RoomRepository

if TYPE_CHECKING:
    from shared.db.connection import Database

logger = structlog.get_logger()

_COLUMNS = "id, status, seated_count, connected_count, created_at, updated_at"


class SqliteRoomRepository(RoomRepository):
    """SQLite implementation of RoomRepository.

    Keeps one row per room: summary columns for listing plus the serialized
    state. Writes are serialized through an asyncio lock.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def load(self, room_id: str) -> StoredRoom | None:
        row = self._db.connection.execute(
            f"SELECT {_COLUMNS}, state FROM rooms WHERE id = ?",  # noqa: S608
            (room_id,),
        ).fetchone()
        if row is None:
            return None
        return StoredRoom(
            room_id=row[0],
            status=row[1],
            seated_count=row[2],
            connected_count=row[3],
            created_at=datetime.fromisoformat(row[4]),
            updated_at=datetime.fromisoformat(row[5]),
            state=row[6],
        )

    async def save(self, room: StoredRoom) -> None:
        """Insert or overwrite the snapshot of a room."""
        async with self._lock:
            self._db.connection.execute(
                f"INSERT INTO rooms ({_COLUMNS}, state) VALUES (?, ?, ?, ?, ?, ?, ?) "  # noqa: S608
                "ON CONFLICT(id) DO UPDATE SET "
                "status = excluded.status, "
                "seated_count = excluded.seated_count, "
                "connected_count = excluded.connected_count, "
                "updated_at = excluded.updated_at, "
                "state = excluded.state",
                (
                    room.room_id,
                    room.status,
                    room.seated_count,
                    room.connected_count,
                    room.created_at.isoformat(),
                    room.updated_at.isoformat(),
                    room.state,
                ),
            )
            self._db.connection.commit()

    async def list_active(self) -> list[RoomSummary]:
        rows = self._db.connection.execute(
            "SELECT id, status, seated_count, connected_count, updated_at FROM rooms ORDER BY updated_at DESC",
        ).fetchall()
        return [
            RoomSummary(
                room_id=row[0],
                status=row[1],
                seated_count=row[2],
                connected_count=row[3],
                updated_at=datetime.fromisoformat(row[4]),
            )
            for row in rows
        ]

    async def delete(self, room_id: str) -> None:
        async with self._lock:
            cursor = self._db.connection.execute("DELETE FROM rooms WHERE id = ?", (room_id,))
            self._db.connection.commit()
            if cursor.rowcount:
                logger.debug("room snapshot deleted", room_id=room_id)
