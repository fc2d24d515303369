"""Periodic server heartbeat.

Runs on the worker loop. Each tick starts the registration as its own task so a
slow database never pushes the next tick back, and a failing registration never
stops the timer.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger("bancheck")

MIN_INTERVAL_SECONDS = 10.0


class HeartbeatScheduler:
    """Repeating timer that re-announces this server to the store."""

    def __init__(
        self,
        register: Callable[[], Awaitable[object]],
        interval_seconds: float,
    ) -> None:
        self._register = register
        self.interval = max(MIN_INTERVAL_SECONDS, float(interval_seconds))
        self._timer: asyncio.Task | None = None
        self._pending: set[asyncio.Task] = set()

    @property
    def is_armed(self) -> bool:
        return self._timer is not None and not self._timer.done()

    async def start(self) -> None:
        """Register once right away, then arm the repeating timer."""
        await self._register_safely()
        self.arm()

    def arm(self) -> None:
        """(Re)start the repeating timer. Must be called on the worker loop."""
        if self._timer is not None:
            self._timer.cancel()
        self._timer = asyncio.create_task(self._tick_forever(), name="bancheck-heartbeat")

    def trigger(self) -> asyncio.Task:
        """Start one registration now, independent of the timer phase."""
        task = asyncio.create_task(self._register_safely())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def stop(self) -> None:
        """Cancel the timer and any registration still running."""
        tasks = list(self._pending)
        if self._timer is not None:
            tasks.append(self._timer)
            self._timer = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._pending.clear()

    async def _tick_forever(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.trigger()

    async def _register_safely(self) -> None:
        try:
            await self._register()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("[bancheck] Heartbeat registration failed")
