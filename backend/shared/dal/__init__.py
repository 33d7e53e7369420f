"""Data access layer: repository interfaces and shared persistence models."""

from shared.dal.memory_room_repository import InMemoryRoomRepository
from shared.dal.models import RoomSummary, StoredRoom
from shared.dal.room_repository import RoomRepository

__all__ = [
    "InMemoryRoomRepository",
    "RoomRepository",
    "RoomSummary",
    "StoredRoom",
]
