from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from thirteen.logic.cards import parse_cards
from thirteen.logic.combinations import classify
from thirteen.logic.enums import RoomStatus
from thirteen.logic.settings import GameSettings
from thirteen.logic.state import Participant, RoomState, TurnState
from thirteen.logic.thirteen_service import ThirteenGameService
from thirteen.messaging.router import MessageRouter
from thirteen.server.app import create_app
from thirteen.session.manager import SessionManager
from thirteen.tests.helpers.auth import TEST_TICKET_SECRET
from thirteen.tests.mocks.connection import MockConnection

if TYPE_CHECKING:
    from collections.abc import Sequence


# ============================================================================
# Test State Builder Helpers
# ============================================================================


def create_participant(
    user_id: str,
    seat: int | None = None,
    *,
    name: str | None = None,
    hand: Sequence[str] = (),
    connected: bool = True,
    ready: bool = False,
    is_bot: bool = False,
    disconnected_at: float | None = None,
) -> Participant:
    """Create a Participant from card text, with sensible defaults for testing."""
    return Participant(
        user_id=user_id,
        name=name if name is not None else user_id.capitalize(),
        seat=seat,
        connected=connected,
        ready=ready,
        is_bot=is_bot,
        hand=parse_cards(hand),
        disconnected_at=disconnected_at,
    )


def create_room_state(
    participants: Sequence[Participant] = (),
    *,
    room_id: str = "room1",
    status: RoomStatus = RoomStatus.LOBBY,
    settings: GameSettings | None = None,
    current_player_id: str | None = None,
    passed_ids: Sequence[str] = (),
    last_player_id: str | None = None,
    round_number: int = 1,
    pile: Sequence[str] = (),
    countdown_remaining: int = 0,
) -> RoomState:
    """Create a RoomState; a current_player_id opens a turn, a pile is classified."""
    combination = classify(parse_cards(pile)) if pile else None
    turn = None
    if current_player_id is not None:
        turn = TurnState(
            current_player_id=current_player_id,
            passed_ids=tuple(passed_ids),
            last_player_id=last_player_id,
            round_number=round_number,
        )
    return RoomState(
        room_id=room_id,
        settings=settings or GameSettings(),
        status=status,
        participants=tuple(participants),
        pile=combination.cards if combination is not None else (),
        current_combination=combination,
        turn=turn,
        countdown_remaining=countdown_remaining,
    )


def create_fast_settings(**overrides: object) -> GameSettings:
    """GameSettings with every timer shortened for real-time session tests."""
    values: dict[str, object] = {
        "countdown_seconds": 1,
        "countdown_tick_seconds": 0.01,
        "deal_delay_seconds": 0.01,
        "disconnect_grace_seconds": 0.02,
        "bot_pass_delay_min_seconds": 0.0,
        "bot_pass_delay_max_seconds": 0.01,
        "bot_play_delay_min_seconds": 0.0,
        "bot_play_delay_max_seconds": 0.01,
    }
    values.update(overrides)
    return GameSettings(**values)  # type: ignore[arg-type]


@pytest.fixture
def game_service():
    return ThirteenGameService(seed="test-seed")


@pytest.fixture
def session_manager(game_service):
    return SessionManager(game_service)


@pytest.fixture
def message_router(session_manager):
    return MessageRouter(session_manager, game_ticket_secret=TEST_TICKET_SECRET)


@pytest.fixture
def mock_connection():
    return MockConnection()


@pytest.fixture
def app(game_service, session_manager, message_router):
    return create_app(
        game_service=game_service,
        session_manager=session_manager,
        message_router=message_router,
    )
