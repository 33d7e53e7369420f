"""Abstract interface for room snapshot persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shared.dal.models import RoomSummary, StoredRoom


class RoomRepository(ABC):
    """Abstract interface for room snapshot persistence.

    Saves overwrite the previous snapshot of the same room.
    """

    @abstractmethod
    async def load(self, room_id: str) -> StoredRoom | None: ...

    @abstractmethod
    async def save(self, room: StoredRoom) -> None: ...

    @abstractmethod
    async def list_active(self) -> list[RoomSummary]:
        """Summaries of all stored rooms, most recently updated first."""
        ...

    @abstractmethod
    async def delete(self, room_id: str) -> None: ...
