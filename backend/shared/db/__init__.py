"""SQLite database layer: connection management and the room repository."""

from shared.db.connection import Database
from shared.db.room_repository import SqliteRoomRepository

__all__ = [
    "Database",
    "SqliteRoomRepository",
]
