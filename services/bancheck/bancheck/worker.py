"""Background asyncio loop for all database and Steam I/O.

The host calls into the plugin from its game thread and must never wait on the
network. BackgroundLoop runs a dedicated event loop on a daemon thread; the game
thread hands it coroutines with spawn() and returns immediately.

Shutdown cancels every task still on the loop, waits for them to unwind, runs
the async cleanup hook (close HTTP client, dispose engine) and stops the loop.
"""

import asyncio
import concurrent.futures
import logging
import threading
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any

logger = logging.getLogger("bancheck")

DEFAULT_STOP_TIMEOUT = 5.0


class BackgroundLoop:
    """Event loop running on its own thread."""

    def __init__(self, name: str = "bancheck-worker") -> None:
        self._name = name
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._started = threading.Event()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            raise RuntimeError("Worker loop not started. Call start() first.")
        return self._loop

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the loop thread and wait until the loop is running."""
        if self.is_running:
            return
        self._loop = asyncio.new_event_loop()
        self._started.clear()
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()
        self._started.wait()

    def _run(self) -> None:
        loop = self.loop
        asyncio.set_event_loop(loop)
        loop.call_soon(self._started.set)
        try:
            loop.run_forever()
        finally:
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> concurrent.futures.Future:
        """Schedule a coroutine on the loop without waiting for it.

        Unexpected failures are logged from the done callback; cancellation is
        silent. Raises RuntimeError if the loop is not running.
        """
        try:
            future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        except Exception:
            coro.close()
            raise
        future.add_done_callback(_log_unhandled)
        return future

    def stop(
        self,
        cleanup: Callable[[], Awaitable[None]] | None = None,
        timeout: float = DEFAULT_STOP_TIMEOUT,
    ) -> None:
        """Cancel outstanding work, run cleanup, and stop the loop thread."""
        if not self.is_running:
            return

        future = asyncio.run_coroutine_threadsafe(self._shutdown(cleanup), self.loop)
        try:
            future.result(timeout=timeout)
        except concurrent.futures.TimeoutError:
            logger.warning("[bancheck] Worker shutdown timed out after %.1fs", timeout)
        except Exception:
            logger.exception("[bancheck] Worker shutdown failed")

        self.loop.call_soon_threadsafe(self.loop.stop)
        if self._thread is not None:
            self._thread.join(timeout=timeout)
        self._thread = None
        self._loop = None

    async def _shutdown(self, cleanup: Callable[[], Awaitable[None]] | None) -> None:
        current = asyncio.current_task()
        tasks = [t for t in asyncio.all_tasks() if t is not current]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        if cleanup is not None:
            await cleanup()


def _log_unhandled(future: concurrent.futures.Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.error("[bancheck] Background task failed", exc_info=exc)
