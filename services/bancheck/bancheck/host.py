"""Contract with the host game-server runtime.

The host owns a single game thread. Player lookups, console commands and chat
output are only safe on that thread, so background work hands callbacks to a
FrameQueue which the host drains once per game frame.
"""

import logging
import queue
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger("bancheck")


class PlayerHandle(Protocol):
    """A connected (or formerly connected) player as the host reports it."""

    @property
    def is_valid(self) -> bool: ...

    @property
    def is_bot(self) -> bool: ...

    @property
    def is_hltv(self) -> bool: ...

    @property
    def steam_id64(self) -> str | None:
        """Authorized SteamID64, or None before authorization."""
        ...

    @property
    def name(self) -> str | None: ...

    @property
    def user_id(self) -> int | None:
        """Engine user id used by `kickid`, or None without a live session."""
        ...

    def print_to_chat(self, message: str) -> None: ...


class HostRuntime(Protocol):
    """Game-thread-only operations the plugin needs from the host."""

    def get_player_from_slot(self, slot: int) -> PlayerHandle | None: ...

    def execute_command(self, command: str) -> None: ...


class FrameQueue:
    """Thread-safe queue of callbacks to run on the host game thread."""

    def __init__(self) -> None:
        self._callbacks: queue.SimpleQueue[Callable[[], None]] = queue.SimpleQueue()

    def post(self, callback: Callable[[], None]) -> None:
        """Schedule a callback for the next drain. Safe from any thread."""
        self._callbacks.put(callback)

    def drain(self) -> int:
        """Run every callback queued so far. Call from the host thread only.

        Callbacks posted while draining wait for the next frame. A failing
        callback is logged and does not stop the others.

        Returns:
            Number of callbacks run.
        """
        pending = self._callbacks.qsize()
        ran = 0
        for _ in range(pending):
            try:
                callback = self._callbacks.get_nowait()
            except queue.Empty:
                break
            try:
                callback()
            except Exception:
                logger.exception("[bancheck] Game-thread callback failed")
            ran += 1
        return ran

    def clear(self) -> None:
        while True:
            try:
                self._callbacks.get_nowait()
            except queue.Empty:
                return

    def __len__(self) -> int:
        return self._callbacks.qsize()
