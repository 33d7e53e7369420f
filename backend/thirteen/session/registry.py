"""In-memory registry of live room sessions."""

from __future__ import annotations

import structlog

from thirteen.session.models import Room

logger = structlog.get_logger()


class RoomRegistry:
    """The only map shared between rooms.

    Rooms are created on first reference to their id and evicted explicitly,
    either when the last connection leaves or by the idle reaper.
    """

    def __init__(self) -> None:
        self._rooms: dict[str, Room] = {}

    def get(self, room_id: str) -> Room | None:
        return self._rooms.get(room_id)

    def get_or_create(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            room = Room(room_id=room_id)
            self._rooms[room_id] = room
            logger.debug("room session created", room_id=room_id)
        return room

    def evict(self, room: Room) -> None:
        """Forget a room, unless a newer session already took its id."""
        if self._rooms.get(room.room_id) is room:
            del self._rooms[room.room_id]
            logger.debug("room session evicted", room_id=room.room_id)

    def rooms(self) -> list[Room]:
        return list(self._rooms.values())

    def idle_rooms(self, now: float, idle_seconds: float) -> list[Room]:
        return [room for room in self._rooms.values() if room.idle_for(now) > idle_seconds]

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms
