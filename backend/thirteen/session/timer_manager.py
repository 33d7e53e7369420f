"""Manage per-room timers (countdown, auto-deal, disconnect grace, bot think)."""

import logging
from collections.abc import Awaitable, Callable

from thirteen.logic.enums import TimeoutType
from thirteen.logic.timer import RoomTimer

logger = logging.getLogger(__name__)

# Callback type: (room_id, timeout_type, user_id, generation) -> Awaitable[None]
TimeoutCallback = Callable[[str, TimeoutType, str, int], Awaitable[None]]

TimerKey = tuple[TimeoutType, str]


class TimerManager:
    """Own every room timer, keyed by room, kind and participant.

    Each room carries a generation counter bumped on every arm and cancel.
    A fired timer reports the generation it was armed with; the caller must
    claim() it under the room lock, and a timer whose entry was re-armed or
    cancelled in the meantime claims nothing. The manager does NOT decide
    which timers should run -- SessionManager does that from room state.
    """

    def __init__(self, on_timeout: TimeoutCallback) -> None:
        self._timers: dict[str, dict[TimerKey, RoomTimer]] = {}
        self._generations: dict[str, int] = {}
        self._on_timeout = on_timeout

    def _next_generation(self, room_id: str) -> int:
        generation = self._generations.get(room_id, 0) + 1
        self._generations[room_id] = generation
        return generation

    def generation(self, room_id: str) -> int:
        return self._generations.get(room_id, 0)

    def arm(
        self,
        room_id: str,
        timeout_type: TimeoutType,
        delay: float,
        user_id: str = "",
        payload: object = None,
    ) -> RoomTimer:
        """Start a timer, replacing any timer with the same key."""
        self.cancel(room_id, timeout_type, user_id)
        generation = self._next_generation(room_id)
        timer = RoomTimer(generation, payload)
        self._timers.setdefault(room_id, {})[(timeout_type, user_id)] = timer
        timer.start(delay, lambda: self._on_timeout(room_id, timeout_type, user_id, generation))
        logger.debug("armed %s timer for room %s (user=%r, delay=%.2fs)", timeout_type.value, room_id, user_id, delay)
        return timer

    def is_armed(self, room_id: str, timeout_type: TimeoutType, user_id: str = "") -> bool:
        timer = self._timers.get(room_id, {}).get((timeout_type, user_id))
        return timer is not None and timer.is_pending

    def armed_users(self, room_id: str, timeout_type: TimeoutType) -> list[str]:
        timers = self._timers.get(room_id, {})
        return [uid for (kind, uid), timer in timers.items() if kind == timeout_type and timer.is_pending]

    def cancel(self, room_id: str, timeout_type: TimeoutType, user_id: str | None = None) -> None:
        """Cancel one timer, or every timer of the kind when user_id is None."""
        timers = self._timers.get(room_id)
        if not timers:
            return
        keys = [key for key in timers if key[0] == timeout_type and (user_id is None or key[1] == user_id)]
        if not keys:
            return
        for key in keys:
            timers.pop(key).cancel()
        self._next_generation(room_id)

    def cancel_except(self, room_id: str, timeout_type: TimeoutType, keep: str | None) -> None:
        """Cancel every timer of a kind except the one armed for ``keep``."""
        for user_id in self.armed_users(room_id, timeout_type):
            if user_id != keep:
                self.cancel(room_id, timeout_type, user_id)

    def claim(self, room_id: str, timeout_type: TimeoutType, user_id: str, generation: int) -> RoomTimer | None:
        """Take ownership of a fired timer.

        Returns the timer (with its payload) only if it is still the one
        registered under its key; a stale fire returns None.
        """
        timers = self._timers.get(room_id)
        if not timers:
            return None
        timer = timers.get((timeout_type, user_id))
        if timer is None or timer.generation != generation:
            return None
        # popped, not cancelled: the caller is running inside this timer's task
        del timers[(timeout_type, user_id)]
        return timer

    def cleanup_room(self, room_id: str) -> None:
        """Cancel all timers of a room.

        The generation counter is kept so a recreated room never reuses a
        generation an old, already-fired timer may still report.
        """
        timers = self._timers.pop(room_id, None)
        if timers:
            for timer in timers.values():
                timer.cancel()

    def cancel_everything(self) -> None:
        for room_id in list(self._timers):
            self.cleanup_room(room_id)

    def has_room(self, room_id: str) -> bool:
        return bool(self._timers.get(room_id))
