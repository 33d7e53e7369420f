"""In-memory room repository used when no database path is configured."""

from __future__ import annotations

from typing import TYPE_CHECKING

from shared.dal.room_repository import RoomRepository

if TYPE_CHECKING:
    from shared.dal.models import RoomSummary, StoredRoom


class InMemoryRoomRepository(RoomRepository):
    def __init__(self) -> None:
        self._rooms: dict[str, StoredRoom] = {}

    async def load(self, room_id: str) -> StoredRoom | None:
        return self._rooms.get(room_id)

    async def save(self, room: StoredRoom) -> None:
        self._rooms[room.room_id] = room

    async def list_active(self) -> list[RoomSummary]:
        rooms = sorted(self._rooms.values(), key=lambda r: r.updated_at, reverse=True)
        return [room.to_summary() for room in rooms]

    async def delete(self, room_id: str) -> None:
        self._rooms.pop(room_id, None)
