"""Room snapshot persistence on top of a RoomRepository.

Saves are best-effort: a failing store is logged and the in-memory state
stays authoritative.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from shared.dal.models import StoredRoom
from thirteen.logic.presence import has_human_participants
from thirteen.logic.state import RoomState
from thirteen.logic.state_utils import connected_humans, seated_participants

if TYPE_CHECKING:
    from shared.dal.models import RoomSummary
    from shared.dal.room_repository import RoomRepository

logger = structlog.get_logger()


def _timestamp(seconds: float) -> datetime:
    return datetime.fromtimestamp(seconds, tz=UTC)


def to_stored_room(state: RoomState) -> StoredRoom:
    return StoredRoom(
        room_id=state.room_id,
        status=state.status.value,
        seated_count=len(seated_participants(state)),
        connected_count=len(connected_humans(state)),
        created_at=_timestamp(state.created_at),
        updated_at=_timestamp(state.updated_at),
        state=state.model_dump_json(),
    )


class RoomStore:
    def __init__(self, repository: RoomRepository) -> None:
        self._repository = repository

    async def load_state(self, room_id: str) -> RoomState | None:
        """Load and deserialize a room snapshot; unreadable snapshots are discarded."""
        try:
            stored = await self._repository.load(room_id)
        except Exception:
            logger.exception("failed to load room snapshot", room_id=room_id)
            return None
        if stored is None:
            return None
        try:
            return RoomState.model_validate_json(stored.state)
        except ValidationError:
            logger.warning("discarding unreadable room snapshot", room_id=room_id)
            return None

    async def save(self, state: RoomState) -> bool:
        """Persist the state, or drop the row when no human is left in the room."""
        try:
            if has_human_participants(state):
                await self._repository.save(to_stored_room(state))
            else:
                await self._repository.delete(state.room_id)
        except Exception:
            logger.exception("failed to persist room snapshot", room_id=state.room_id, version=state.version)
            return False
        return True

    async def list_active(self) -> list[RoomSummary]:
        return await self._repository.list_active()
