"""Persistence models for the data access layer."""

from datetime import datetime

from pydantic import BaseModel


class RoomSummary(BaseModel, frozen=True):
    """Listing entry for an active room."""

    room_id: str
    status: str  # "lobby" | "countdown" | "dealing" | "active" | "finished"
    seated_count: int
    connected_count: int
    updated_at: datetime


class StoredRoom(BaseModel, frozen=True):
    """Room snapshot persisted to storage.

    ``state`` is the serialized room state JSON, opaque to the store.
    """

    room_id: str
    status: str
    seated_count: int
    connected_count: int
    created_at: datetime
    updated_at: datetime
    state: str

    def to_summary(self) -> RoomSummary:
        return RoomSummary(
            room_id=self.room_id,
            status=self.status,
            seated_count=self.seated_count,
            connected_count=self.connected_count,
            updated_at=self.updated_at,
        )
