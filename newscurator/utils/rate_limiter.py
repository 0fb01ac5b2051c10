"""Global spacing of outbound calls to the search API."""

import logging
import threading
import time
from typing import Optional

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Enforces a minimum interval between outbound calls across all threads.

    Each caller reserves the next free slot under a lock and then sleeps
    until that slot outside the lock, so callers are served in arrival
    order and nobody waits longer than its position in line.
    """

    def __init__(self, min_interval: float = 0.1):
        """
        Args:
            min_interval: Minimum seconds between two calls (0 disables waiting)
        """
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self.min_interval = min_interval
        self._lock = threading.Lock()
        self._next_slot = 0.0

    def _reserve_slot(self) -> float:
        with self._lock:
            now = time.monotonic()
            slot = max(now, self._next_slot)
            self._next_slot = slot + self.min_interval
            return slot

    def _release_slot(self, slot: float) -> None:
        # Only the newest reservation can be handed back; later callers
        # already sleep towards their own slots.
        with self._lock:
            if self._next_slot == slot + self.min_interval:
                self._next_slot = slot

    def wait_for_rate_limit(self, cancel: Optional[threading.Event] = None) -> bool:
        """
        Block until the calling thread may issue its next call.

        Args:
            cancel: Optional cancellation token that cuts the wait short

        Returns:
            True when the slot was reached, False if cancelled while waiting
        """
        slot = self._reserve_slot()
        delay = slot - time.monotonic()
        if delay <= 0:
            return True

        if cancel is None:
            time.sleep(delay)
            return True

        if cancel.wait(delay):
            self._release_slot(slot)
            logger.debug("[RATE_LIMIT] Wait cancelled with %.3fs remaining", delay)
            return False
        return True
