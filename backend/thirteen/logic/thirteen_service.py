"""
Thirteen implementation of the GameService interface.

Holds the authoritative RoomState and RNG of every loaded room. Each public
method runs exactly one transition function, bumps the room version and turns
the ActionResult into routed service events:

- InvalidCombinationError / IllegalMoveError: dropped silently
- PreconditionError: an ErrorEvent for the requester
- unknown room: no-op
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from thirteen.logic import presence, seating, turn
from thirteen.logic.action_result import ActionResult
from thirteen.logic.bot import BotDecision, choose_move, think_delay
from thirteen.logic.cards import parse_cards
from thirteen.logic.dealer import create_rng
from thirteen.logic.enums import GameAction, GameErrorCode, RoomStatus, TimeoutType
from thirteen.logic.events import (
    VIEW_EVENT_CLASSES,
    CountdownEvent,
    ErrorEvent,
    EventType,
    GameEvent,
    ServiceEvent,
    convert_events,
    user_target,
)
from thirteen.logic.exceptions import IllegalMoveError, InvalidCombinationError, PreconditionError
from thirteen.logic.service import GameService
from thirteen.logic.settings import GameSettings
from thirteen.logic.state import RoomState
from thirteen.logic.state_utils import get_participant
from thirteen.logic.types import build_room_view

if TYPE_CHECKING:
    import random
    from collections.abc import Callable

logger = structlog.get_logger()


class ThirteenGameService(GameService):
    def __init__(
        self,
        settings: GameSettings | None = None,
        *,
        seed: str | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings or GameSettings()
        self._seed = seed
        self._clock = clock
        self._rooms: dict[str, RoomState] = {}
        self._rngs: dict[str, random.Random] = {}

    # --- Room registry ---

    def load_room(self, room_id: str, snapshot: RoomState | None = None) -> RoomState:
        existing = self._rooms.get(room_id)
        if existing is not None:
            return existing

        now = self._clock()
        if snapshot is None:
            state = RoomState(room_id=room_id, settings=self._settings, created_at=now, updated_at=now)
        else:
            state = snapshot.model_copy(
                update={
                    "participants": tuple(
                        p
                        if p.is_bot or not p.connected
                        else p.model_copy(update={"connected": False, "disconnected_at": now})
                        for p in snapshot.participants
                    ),
                },
            )
            logger.info("room restored from snapshot", room_id=room_id, status=state.status)
        self._rooms[room_id] = state
        self._rngs[room_id] = create_rng(f"{self._seed}:{room_id}" if self._seed is not None else None)
        return state

    def get_room_state(self, room_id: str) -> RoomState | None:
        return self._rooms.get(room_id)

    def cleanup_room(self, room_id: str) -> None:
        self._rooms.pop(room_id, None)
        self._rngs.pop(room_id, None)

    # --- Transitions ---

    def join(self, room_id: str, user_id: str, name: str) -> list[ServiceEvent]:
        return self._run(room_id, user_id, lambda state: presence.join(state, user_id, name))

    def handle_action(
        self,
        room_id: str,
        user_id: str,
        action: GameAction,
        data: dict[str, Any],
    ) -> list[ServiceEvent]:
        logger.debug("game action", room_id=room_id, user_id=user_id, action=action)
        rng = self._rngs.get(room_id)
        handlers: dict[GameAction, Callable[[RoomState], ActionResult]] = {
            GameAction.TAKE_SEAT: lambda s: seating.take_seat(s, user_id, int(data["seat"])),
            GameAction.STAND: lambda s: seating.stand(s, user_id),
            GameAction.TOGGLE_READY: lambda s: seating.toggle_ready(s, user_id),
            GameAction.START_GAME: turn.start_game,
            GameAction.DEAL_CARDS: lambda s: turn.deal(s, rng),  # type: ignore[arg-type]
            GameAction.PLAY_CARDS: lambda s: turn.resolve_play(s, user_id, parse_cards(data["cards"])),
            GameAction.PASS: lambda s: turn.resolve_pass(s, user_id),
            GameAction.ADD_BOT: seating.add_bot,
            GameAction.REMOVE_BOT: lambda s: seating.remove_bot(s, str(data["user_id"])),
        }
        handler = handlers.get(action)
        if handler is None:
            return self._error_events(user_id, GameErrorCode.INVALID_ACTION, f"unknown action: {action}")
        state = self._rooms.get(room_id)
        if state is not None and get_participant(state, user_id) is None:
            return self._error_events(user_id, GameErrorCode.UNKNOWN_PARTICIPANT, "You are not in this room")
        try:
            return self._run(room_id, user_id, handler)
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            # malformed card text or missing fields
            logger.debug("malformed action data", room_id=room_id, action=action, error=str(e))
            return []

    def handle_disconnect(self, room_id: str, user_id: str) -> list[ServiceEvent]:
        now = self._clock()
        return self._run(room_id, user_id, lambda state: presence.mark_disconnected(state, user_id, now))

    def handle_timeout(self, room_id: str, timeout_type: TimeoutType, user_id: str) -> list[ServiceEvent]:
        state = self._rooms.get(room_id)
        if state is None:
            return []

        if timeout_type == TimeoutType.COUNTDOWN:
            return self._run(room_id, user_id, self._countdown_tick)
        if timeout_type == TimeoutType.DEAL:
            if state.status != RoomStatus.DEALING:
                return []
            return self._run(room_id, user_id, lambda s: turn.deal(s, self._rngs[room_id]))
        if timeout_type == TimeoutType.DISCONNECT_GRACE:
            if presence.grace_candidate(state) != user_id:
                return []
            logger.info("disconnect grace expired, passing", room_id=room_id, user_id=user_id)
            return self._run(room_id, user_id, lambda s: turn.resolve_pass(s, user_id))

        logger.error("unexpected timeout type", room_id=room_id, timeout_type=timeout_type)
        raise ValueError(f"Unknown timeout type: {timeout_type}")

    def _countdown_tick(self, state: RoomState) -> ActionResult:
        if state.status != RoomStatus.COUNTDOWN:
            raise IllegalMoveError("no countdown is running")
        remaining = state.countdown_remaining - 1
        if remaining > 0:
            return ActionResult(
                state.model_copy(update={"countdown_remaining": remaining}),
                view=None,
                events=(CountdownEvent(seconds=remaining),),
            )
        if not seating.is_ready_to_start(state):
            return ActionResult(seating.cancel_countdown(state))
        return turn.start_game(state)

    def plan_bot_move(self, room_id: str, user_id: str) -> BotDecision | None:
        state = self._rooms.get(room_id)
        if state is None or state.status != RoomStatus.ACTIVE or state.current_player_id != user_id:
            return None
        bot = get_participant(state, user_id)
        if bot is None or not bot.is_bot:
            return None
        rng = self._rngs[room_id]
        move = choose_move(bot.hand, state.current_combination, rng)
        delay = think_delay(state.settings, rng, passing=move is None)
        return BotDecision(cards=move.cards if move is not None else None, delay=delay, version=state.version)

    def submit_bot_move(self, room_id: str, user_id: str, decision: BotDecision) -> list[ServiceEvent]:
        state = self._rooms.get(room_id)
        if state is None or state.version != decision.version:
            logger.debug("stale bot decision dropped", room_id=room_id, user_id=user_id)
            return []
        if decision.cards is None:
            return self._run(room_id, user_id, lambda s: turn.resolve_pass(s, user_id))
        cards = decision.cards
        return self._run(room_id, user_id, lambda s: turn.resolve_play(s, user_id, cards))

    def prune_room(self, room_id: str) -> list[ServiceEvent]:
        state = self._rooms.get(room_id)
        if state is None:
            return []
        pruned = presence.prune_disconnected(state, self._clock())
        if pruned is None:
            return []
        return self._commit(state, pruned, EventType.ROOM_STATE, ())

    def build_snapshot_events(self, room_id: str, user_id: str) -> list[ServiceEvent]:
        state = self._rooms.get(room_id)
        if state is None:
            return []
        event = VIEW_EVENT_CLASSES[EventType.ROOM_STATE](room=build_room_view(state, user_id), target=user_target(user_id))
        return convert_events([event])

    # --- Internals ---

    def _run(
        self,
        room_id: str,
        user_id: str,
        transition: Callable[[RoomState], ActionResult],
    ) -> list[ServiceEvent]:
        state = self._rooms.get(room_id)
        if state is None:
            logger.debug("room not found", room_id=room_id)
            return []
        try:
            result = transition(state)
        except PreconditionError as e:
            logger.info("precondition failed", room_id=room_id, user_id=user_id, code=e.code, reason=e.message)
            return self._error_events(user_id, e.code, e.message)
        except (InvalidCombinationError, IllegalMoveError) as e:
            logger.debug("move rejected", room_id=room_id, user_id=user_id, reason=str(e))
            return []
        if result.state is state and result.view is None and not result.events:
            return []
        return self._commit(state, result.state, result.view, result.events)

    def _commit(
        self,
        old_state: RoomState,
        new_state: RoomState,
        view: EventType | None,
        extra_events: tuple[GameEvent, ...],
    ) -> list[ServiceEvent]:
        new_state = new_state.model_copy(update={"version": old_state.version + 1, "updated_at": self._clock()})
        self._rooms[new_state.room_id] = new_state

        raw_events: list[GameEvent] = []
        if view is not None:
            event_cls = VIEW_EVENT_CLASSES[view]
            raw_events.extend(
                event_cls(room=build_room_view(new_state, p.user_id), target=user_target(p.user_id))
                for p in new_state.participants
                if p.connected and not p.is_bot
            )
        raw_events.extend(extra_events)
        return convert_events(raw_events)

    def _error_events(self, user_id: str, code: GameErrorCode, message: str) -> list[ServiceEvent]:
        if not user_id:
            # timer-driven transitions have no requester to notify
            return []
        return convert_events([ErrorEvent(code=code, message=message, target=user_target(user_id))])
