from __future__ import annotations

import asyncio
import contextlib
import time
from typing import TYPE_CHECKING, Any

import structlog

from shared.dal.memory_room_repository import InMemoryRoomRepository
from shared.logging import room_log_context
from thirteen.logic.enums import RoomStatus, TimeoutType
from thirteen.logic.events import BroadcastTarget, ErrorEvent, ParticipantTarget
from thirteen.logic.presence import grace_candidate
from thirteen.logic.state_utils import get_participant
from thirteen.messaging.event_payload import service_event_payload
from thirteen.messaging.types import ErrorMessage, PongMessage, SessionChatMessage, SessionErrorCode
from thirteen.session.broadcast import broadcast_to_players, send_to_connection
from thirteen.session.models import Player
from thirteen.session.registry import RoomRegistry
from thirteen.session.store import RoomStore
from thirteen.session.timer_manager import TimerManager

if TYPE_CHECKING:
    from shared.dal.models import RoomSummary
    from thirteen.logic.enums import GameAction
    from thirteen.logic.events import ServiceEvent
    from thirteen.logic.service import GameService
    from thirteen.logic.state import RoomState
    from thirteen.messaging.protocol import ConnectionProtocol
    from thirteen.session.models import Room

logger = structlog.get_logger()

DEFAULT_ROOM_IDLE_SECONDS = 1800.0
DEFAULT_REAPER_INTERVAL_SECONDS = 30.0


class SessionManager:
    """
    Glue between connections, the game service, the store and room timers.

    Every room event (client message, timer fire, disconnect) runs under the
    room's lock as: service transition -> broadcast -> snapshot save -> timer
    sync. The service installs the new state before any await, so other
    coroutines never observe a half-applied transition.
    """

    def __init__(
        self,
        game_service: GameService,
        *,
        room_store: RoomStore | None = None,
        registry: RoomRegistry | None = None,
        room_idle_seconds: float = DEFAULT_ROOM_IDLE_SECONDS,
        reaper_interval_seconds: float = DEFAULT_REAPER_INTERVAL_SECONDS,
    ) -> None:
        self._game_service = game_service
        self._store = room_store or RoomStore(InMemoryRoomRepository())
        self._registry = registry or RoomRegistry()
        self._room_idle_seconds = room_idle_seconds
        self._reaper_interval_seconds = reaper_interval_seconds
        self._connections: dict[str, ConnectionProtocol] = {}
        self._players: dict[str, Player] = {}  # connection_id -> Player
        self._timer_manager = TimerManager(on_timeout=self._handle_timeout)
        self._reaper_task: asyncio.Task[None] | None = None

    # --- Connections ---

    def register_connection(self, connection: ConnectionProtocol) -> None:
        self._connections[connection.connection_id] = connection

    def unregister_connection(self, connection: ConnectionProtocol) -> None:
        self._connections.pop(connection.connection_id, None)
        self._players.pop(connection.connection_id, None)

    def get_player(self, connection_id: str) -> Player | None:
        return self._players.get(connection_id)

    def is_in_room(self, connection_id: str) -> bool:
        return connection_id in self._players

    def get_room(self, room_id: str) -> Room | None:
        return self._registry.get(room_id)

    @property
    def room_count(self) -> int:
        return len(self._registry)

    @property
    def timer_manager(self) -> TimerManager:
        return self._timer_manager

    async def list_rooms(self) -> list[RoomSummary]:
        return await self._store.list_active()

    async def _send_error(self, connection: ConnectionProtocol, code: SessionErrorCode, message: str) -> None:
        logger.warning("session error sent to client", error_code=code.value, error_message=message)
        await send_to_connection(connection, ErrorMessage(code=code, message=message).model_dump())

    # --- Join / reconnect ---

    async def join_room(
        self,
        connection: ConnectionProtocol,
        room_id: str,
        user_id: str,
        name: str,
    ) -> None:
        """
        Bind a connection to its stable identity in a room.

        Used for both first joins and reconnects: a user already known to the
        room is marked connected again with hand, seat and ready untouched.
        A previous connection of the same user is replaced and closed.
        """
        if connection.connection_id in self._players:
            await self._send_error(connection, SessionErrorCode.ALREADY_IN_ROOM, "Connection already joined a room")
            return

        stale_connection: ConnectionProtocol | None = None
        with room_log_context(room_id, user_id):
            while True:
                room = self._registry.get(room_id)
                snapshot = None
                if room is None:
                    snapshot = await self._store.load_state(room_id)
                    room = self._registry.get_or_create(room_id)
                async with room.lock:
                    if self._registry.get(room_id) is not room:
                        continue  # evicted while we waited for the lock
                    stale_connection = await self._join_locked(room, connection, user_id, name, snapshot)
                    break

        if stale_connection is not None:
            with contextlib.suppress(RuntimeError, OSError):
                await stale_connection.close(code=1000, reason="replaced_by_reconnect")

    async def _join_locked(
        self,
        room: Room,
        connection: ConnectionProtocol,
        user_id: str,
        name: str,
        snapshot: RoomState | None,
    ) -> ConnectionProtocol | None:
        """Join under the room lock. Returns the connection this join replaced, if any."""
        self._game_service.load_room(room.room_id, snapshot)
        events = self._game_service.join(room.room_id, user_id, name)

        rejections = [e for e in events if isinstance(e.data, ErrorEvent)]
        if rejections:
            for event in rejections:
                await send_to_connection(connection, service_event_payload(event))
            if room.is_empty:
                await self._release_room(room)
            return None

        previous = room.connections.get(user_id)
        stale = previous if previous is not None and previous is not connection else None
        if stale is not None:
            self._players.pop(stale.connection_id, None)
        room.connections[user_id] = connection
        self._players[connection.connection_id] = Player(
            connection=connection,
            user_id=user_id,
            name=name,
            room_id=room.room_id,
        )
        room.touch()
        logger.info("participant joined", replaced_connection=stale is not None)
        await self._apply(room, events)
        return stale

    # --- Room events ---

    async def handle_game_action(
        self,
        connection: ConnectionProtocol,
        action: GameAction,
        data: dict[str, Any],
    ) -> None:
        player = self._players.get(connection.connection_id)
        if player is None:
            await self._send_error(connection, SessionErrorCode.NOT_IN_ROOM, "You must join a room first")
            return
        room = self._registry.get(player.room_id)
        if room is None:
            return

        with room_log_context(room.room_id, player.user_id):
            async with room.lock:
                room.touch()
                events = self._game_service.handle_action(room.room_id, player.user_id, action, data)
                await self._apply(room, events)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        """Mark the participant disconnected in place; release the room once nobody is connected."""
        player = self._players.pop(connection.connection_id, None)
        if player is None:
            return
        room = self._registry.get(player.room_id)
        if room is None:
            return

        with room_log_context(room.room_id, player.user_id):
            async with room.lock:
                if room.connections.get(player.user_id) is not connection:
                    return
                del room.connections[player.user_id]
                logger.info("participant disconnected")
                events = self._game_service.handle_disconnect(room.room_id, player.user_id)
                await self._apply(room, events)
                if room.is_empty:
                    await self._release_room(room)

    async def handle_ping(self, connection: ConnectionProtocol) -> None:
        player = self._players.get(connection.connection_id)
        if player is not None:
            room = self._registry.get(player.room_id)
            if room is not None:
                room.touch()
        await send_to_connection(connection, PongMessage().model_dump())

    async def broadcast_chat(self, connection: ConnectionProtocol, text: str) -> None:
        player = self._players.get(connection.connection_id)
        if player is None:
            await self._send_error(connection, SessionErrorCode.NOT_IN_ROOM, "You must join a room first")
            return
        room = self._registry.get(player.room_id)
        if room is None:
            return
        room.touch()
        message = SessionChatMessage(user_id=player.user_id, name=player.name, text=text).model_dump()
        await broadcast_to_players(room.connections, message)

    # --- Transition plumbing ---

    async def _apply(self, room: Room, events: list[ServiceEvent]) -> None:
        """Route events, persist the new version and resync timers. Caller holds the room lock."""
        await self._broadcast_events(room, events)
        state = self._game_service.get_room_state(room.room_id)
        if state is not None and state.version != room.saved_version:
            if await self._store.save(state):
                room.saved_version = state.version
        self._sync_timers(room.room_id)

    async def _broadcast_events(self, room: Room, events: list[ServiceEvent]) -> None:
        for event in events:
            message = service_event_payload(event)
            if isinstance(event.target, BroadcastTarget):
                await broadcast_to_players(room.connections, message)
            elif isinstance(event.target, ParticipantTarget):
                await send_to_connection(room.connections.get(event.target.user_id), message)

    def _sync_timers(self, room_id: str) -> None:
        """Arm exactly the timers the current room state calls for and cancel the rest."""
        state = self._game_service.get_room_state(room_id)
        timers = self._timer_manager
        if state is None:
            timers.cleanup_room(room_id)
            return
        settings = state.settings

        if state.status == RoomStatus.COUNTDOWN:
            if not timers.is_armed(room_id, TimeoutType.COUNTDOWN):
                timers.arm(room_id, TimeoutType.COUNTDOWN, settings.countdown_tick_seconds)
        else:
            timers.cancel(room_id, TimeoutType.COUNTDOWN)

        if state.status == RoomStatus.DEALING:
            if not timers.is_armed(room_id, TimeoutType.DEAL):
                timers.arm(room_id, TimeoutType.DEAL, settings.deal_delay_seconds)
        else:
            timers.cancel(room_id, TimeoutType.DEAL)

        bot_id = _current_bot(state)
        timers.cancel_except(room_id, TimeoutType.BOT_THINK, keep=bot_id)
        if bot_id is not None and not timers.is_armed(room_id, TimeoutType.BOT_THINK, bot_id):
            decision = self._game_service.plan_bot_move(room_id, bot_id)
            if decision is not None:
                timers.arm(room_id, TimeoutType.BOT_THINK, decision.delay, user_id=bot_id, payload=decision)

        grace_id = grace_candidate(state)
        timers.cancel_except(room_id, TimeoutType.DISCONNECT_GRACE, keep=grace_id)
        if grace_id is not None and not timers.is_armed(room_id, TimeoutType.DISCONNECT_GRACE, grace_id):
            timers.arm(room_id, TimeoutType.DISCONNECT_GRACE, settings.disconnect_grace_seconds, user_id=grace_id)

    async def _handle_timeout(self, room_id: str, timeout_type: TimeoutType, user_id: str, generation: int) -> None:
        room = self._registry.get(room_id)
        if room is None:
            return
        with room_log_context(room_id, user_id or None):
            async with room.lock:
                timer = self._timer_manager.claim(room_id, timeout_type, user_id, generation)
                if timer is None:
                    logger.debug("stale timer ignored", timeout_type=timeout_type, generation=generation)
                    return
                if timeout_type == TimeoutType.BOT_THINK:
                    events = self._game_service.submit_bot_move(room_id, user_id, timer.payload)  # type: ignore[arg-type]
                else:
                    events = self._game_service.handle_timeout(room_id, timeout_type, user_id)
                await self._apply(room, events)

    async def _release_room(self, room: Room) -> None:
        """Persist the last snapshot and drop the room from memory. Caller holds the room lock."""
        state = self._game_service.get_room_state(room.room_id)
        if state is not None and state.version != room.saved_version:
            await self._store.save(state)
        self._timer_manager.cleanup_room(room.room_id)
        self._game_service.cleanup_room(room.room_id)
        self._registry.evict(room)
        logger.info("room released", room_id=room.room_id)

    # --- Reaper ---

    def start_reaper(self) -> None:
        """Start the periodic prune/idle-eviction task. Idempotent."""
        if self._reaper_task is not None and not self._reaper_task.done():
            return
        self._reaper_task = asyncio.create_task(self._reaper_loop())

    async def stop_reaper(self) -> None:
        if self._reaper_task is not None:
            self._reaper_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reaper_task
            self._reaper_task = None

    async def shutdown(self) -> None:
        await self.stop_reaper()
        self._timer_manager.cancel_everything()

    async def _reaper_loop(self) -> None:
        while True:
            await asyncio.sleep(self._reaper_interval_seconds)
            try:
                await self.reap()
            except Exception:
                logger.exception("room reaper encountered an error")

    async def reap(self) -> None:
        """Prune long-disconnected participants and evict idle rooms."""
        for room in self._registry.rooms():
            async with room.lock:
                if self._registry.get(room.room_id) is not room:
                    continue
                events = self._game_service.prune_room(room.room_id)
                if events:
                    await self._apply(room, events)

        now = time.monotonic()
        for room in self._registry.idle_rooms(now, self._room_idle_seconds):
            to_close: list[ConnectionProtocol] = []
            async with room.lock:
                if self._registry.get(room.room_id) is not room or room.idle_for(now) <= self._room_idle_seconds:
                    continue
                logger.info("room idle, evicting", room_id=room.room_id, idle_seconds=round(room.idle_for(now)))
                to_close = list(room.connections.values())
                for connection in to_close:
                    self._players.pop(connection.connection_id, None)
                room.connections.clear()
                await self._release_room(room)
            for connection in to_close:
                with contextlib.suppress(RuntimeError, OSError):
                    await connection.close(code=1001, reason="room_idle")


def _current_bot(state: RoomState) -> str | None:
    """The current actor's id if an active game is waiting on a bot."""
    if state.status != RoomStatus.ACTIVE or state.current_player_id is None:
        return None
    participant = get_participant(state, state.current_player_id)
    return participant.user_id if participant is not None and participant.is_bot else None
