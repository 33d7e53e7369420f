from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute

from shared.dal.memory_room_repository import InMemoryRoomRepository
from shared.db import Database, SqliteRoomRepository
from shared.logging import setup_logging
from thirteen.logic.thirteen_service import ThirteenGameService
from thirteen.messaging.router import MessageRouter
from thirteen.server.settings import ServerSettings
from thirteen.server.websocket import websocket_endpoint
from thirteen.session.manager import SessionManager
from thirteen.session.store import RoomStore

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from starlette.requests import Request
    from starlette.websockets import WebSocket

    from shared.dal.room_repository import RoomRepository
    from thirteen.logic.service import GameService


async def health(request: Request) -> JSONResponse:
    session_manager: SessionManager = request.app.state.session_manager
    return JSONResponse({"status": "ok", "rooms_loaded": session_manager.room_count})


async def list_rooms(request: Request) -> JSONResponse:
    session_manager: SessionManager = request.app.state.session_manager
    rooms = await session_manager.list_rooms()
    return JSONResponse({"rooms": [room.model_dump(mode="json") for room in rooms]})


def create_app(
    settings: ServerSettings | None = None,
    game_service: GameService | None = None,
    session_manager: SessionManager | None = None,
    message_router: MessageRouter | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = ServerSettings()  # ty: ignore[missing-argument]

    if game_service is None:
        game_service = ThirteenGameService()

    # When the app creates its own SessionManager, it owns the DB lifecycle.
    owned_db: Database | None = None

    if session_manager is None:
        repository: RoomRepository
        if settings.uses_database:
            owned_db = Database(settings.database_path)
            owned_db.connect()
            repository = SqliteRoomRepository(owned_db)
        else:
            repository = InMemoryRoomRepository()
        session_manager = SessionManager(
            game_service,
            room_store=RoomStore(repository),
            room_idle_seconds=settings.room_idle_seconds,
            reaper_interval_seconds=settings.reaper_interval_seconds,
        )

    if message_router is None:
        message_router = MessageRouter(session_manager, game_ticket_secret=settings.game_ticket_secret)

    async def ws_endpoint(websocket: WebSocket) -> None:
        await websocket_endpoint(websocket, message_router)

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncIterator[None]:
        session_manager.start_reaper()
        logger.info("thirteen server ready")
        try:
            yield
        finally:
            await session_manager.shutdown()
            if owned_db is not None:
                owned_db.close()

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/rooms", list_rooms, methods=["GET"]),
        WebSocketRoute("/ws/{room_id}", ws_endpoint),
    ]

    app = Starlette(routes=routes, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.session_manager = session_manager
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (uvicorn thirteen.server.app:get_app --factory)."""
    settings = ServerSettings()  # ty: ignore[missing-argument]
    setup_logging(log_dir=settings.log_dir)
    return create_app(settings=settings)
