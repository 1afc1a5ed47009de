"""Manual-override gate.

When an operator edits a drone through the CRUD layer, the engine must not
overwrite the edit on its next tick with a stale in-memory value. The gate
records a ``paused_until`` deadline per drone; the tick skips a drone while
``is_paused`` is true. Expired entries are dropped lazily on the next check,
so no sweeper task is needed.
"""

from collections.abc import Callable
import logging
import threading
import time

from fleetsim.config import DEFAULT_PAUSE_DURATION

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class ManualOverrideGate:
    """Per-drone cooldown after a manual update.

    Args:
        cooldown (float): Seconds a drone stays paused.
        clock (Clock): Monotonic time source in seconds; injectable for tests.

    Example:
        >>> gate = ManualOverrideGate(cooldown=10.0)
        >>> gate.pause("drone-1")
        >>> gate.is_paused("drone-1")
        True
    """

    def __init__(self, cooldown: float = DEFAULT_PAUSE_DURATION, clock: Clock = time.monotonic):
        self.cooldown = cooldown
        self._clock = clock
        self._paused_until: dict[str, float] = {}
        self._lock = threading.Lock()

    def pause(self, drone_id: str) -> float:
        """Start (or restart) the cooldown of ``drone_id``.

        Returns:
            float: Clock value at which the pause expires.
        """
        until = self._clock() + self.cooldown
        with self._lock:
            self._paused_until[drone_id] = until
        logger.info("Pausing simulation of drone %s for %.0f s after manual update", drone_id, self.cooldown)
        return until

    def is_paused(self, drone_id: str) -> bool:
        """Whether ``drone_id`` is inside its cooldown; clears expired entries."""
        with self._lock:
            until = self._paused_until.get(drone_id)
            if until is None:
                return False
            if self._clock() < until:
                return True
            del self._paused_until[drone_id]
        logger.info("Resuming simulation of drone %s", drone_id)
        return False

    def paused_until(self, drone_id: str) -> float | None:
        with self._lock:
            return self._paused_until.get(drone_id)

    def is_active(self, drone_id: str) -> bool:
        """Whether ``drone_id`` is inside its cooldown, without clearing anything."""
        now = self._clock()
        with self._lock:
            until = self._paused_until.get(drone_id)
        return until is not None and now < until

    def active_count(self) -> int:
        """Number of drones still inside their cooldown, without clearing anything."""
        now = self._clock()
        with self._lock:
            return sum(1 for until in self._paused_until.values() if now < until)

    def clear(self) -> None:
        with self._lock:
            self._paused_until.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._paused_until)
