"""In-flight guard keyed by player slot.

The host can fire the "player put in server" event more than once for the same
slot (map change, reconnect before the previous check finished). Only the first
event starts a ban check; later ones are dropped until the slot is released.

Each admission gets a ticket. A check that outlives its player (disconnect, then
a new player in the same slot) releases with its own ticket, which no longer
matches, so it cannot free the newer player's slot.
"""

import itertools
import threading


class InFlightGuard:
    """Set of player slots with a ban check currently running."""

    def __init__(self) -> None:
        self._slots: dict[int, int] = {}
        self._tickets = itertools.count(1)
        self._lock = threading.Lock()

    def acquire(self, slot: int) -> int | None:
        """Mark a slot as in flight.

        Returns:
            A ticket for this admission, or None if the slot is already held.
        """
        with self._lock:
            if slot in self._slots:
                return None
            ticket = next(self._tickets)
            self._slots[slot] = ticket
            return ticket

    def try_admit(self, slot: int) -> bool:
        return self.acquire(slot) is not None

    def release(self, slot: int, ticket: int | None = None) -> None:
        """Free a slot.

        Releasing a slot that is not held is a no-op. With a ticket, the slot is
        only freed if it is still held by that same admission.
        """
        with self._lock:
            current = self._slots.get(slot)
            if current is None:
                return
            if ticket is not None and ticket != current:
                return
            del self._slots[slot]

    def clear(self) -> None:
        with self._lock:
            self._slots.clear()

    def __contains__(self, slot: object) -> bool:
        with self._lock:
            return slot in self._slots

    def __len__(self) -> int:
        with self._lock:
            return len(self._slots)
