"""
Cancellable one-shot room timers.

Each RoomTimer wraps a single asyncio task that sleeps and then invokes its
callback. Timers carry the generation number they were armed with, which the
TimerManager checks before letting a fired timer act.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = structlog.get_logger()


class RoomTimer:
    """A scheduled callback tagged with a generation and an optional payload."""

    def __init__(self, generation: int, payload: object = None) -> None:
        self.generation = generation
        self.payload = payload
        self._task: asyncio.Task[None] | None = None

    @property
    def is_pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, delay: float, on_fire: Callable[[], Awaitable[None]]) -> None:
        self.cancel()
        self._task = asyncio.create_task(self._run(delay, on_fire))

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self, delay: float, on_fire: Callable[[], Awaitable[None]]) -> None:
        try:
            await asyncio.sleep(delay)
            await on_fire()
        except asyncio.CancelledError:
            pass
        except (RuntimeError, OSError, ConnectionError, ValueError):
            logger.exception("timer callback failed")
