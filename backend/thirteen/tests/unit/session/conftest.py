import pytest

from shared.dal.memory_room_repository import InMemoryRoomRepository
from thirteen.logic.thirteen_service import ThirteenGameService
from thirteen.session.manager import SessionManager
from thirteen.session.store import RoomStore
from thirteen.tests.conftest import create_fast_settings


@pytest.fixture
def repository():
    return InMemoryRoomRepository()


@pytest.fixture
async def manager(repository):
    """SessionManager with default (slow) timers: nothing fires during a test."""
    manager = SessionManager(ThirteenGameService(seed="session"), room_store=RoomStore(repository))
    yield manager
    await manager.shutdown()


@pytest.fixture
async def fast_manager(repository):
    """SessionManager whose room timers fire within milliseconds."""
    manager = SessionManager(
        ThirteenGameService(create_fast_settings(), seed="session"),
        room_store=RoomStore(repository),
    )
    yield manager
    await manager.shutdown()
