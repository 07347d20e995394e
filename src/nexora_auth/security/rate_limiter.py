"""Fixed-window request counter keyed by an arbitrary string."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock

logger = logging.getLogger(__name__)


@dataclass
class RateLimitRecord:
    count: int
    reset_time: float


class RateLimiter:
    """Admits at most ``max_requests`` calls per key in each window.

    Windows are fixed, not sliding: a burst straddling a reset can admit up
    to twice ``max_requests`` in a short span.
    """

    def __init__(
        self,
        *,
        window_ms: int,
        max_requests: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._window = window_ms / 1000
        self._max_requests = max_requests
        self._clock = clock
        self._data: dict[str, RateLimitRecord] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._data)

    @property
    def max_requests(self) -> int:
        return self._max_requests

    def is_allowed(self, identifier: str) -> bool:
        """Record one attempt for *identifier* and say whether it is admitted."""
        now = self._clock()
        with self._lock:
            record = self._data.get(identifier)
            if record is None or record.reset_time < now:
                self._data[identifier] = RateLimitRecord(count=1, reset_time=now + self._window)
                return True
            if record.count >= self._max_requests:
                logger.warning("Rate limit exceeded for %s", identifier)
                return False
            record.count += 1
            return True

    def remaining(self, identifier: str) -> int:
        """Advisory count of admissions left; stale windows are not rolled."""
        with self._lock:
            record = self._data.get(identifier)
            if record is None:
                return self._max_requests
            return max(0, self._max_requests - record.count)

    def sweep_expired(self) -> int:
        """Drop windows whose reset time has passed; returns how many."""
        now = self._clock()
        with self._lock:
            stale = [key for key, rec in self._data.items() if rec.reset_time < now]
            for key in stale:
                del self._data[key]
        return len(stale)

    def retry_after(self, identifier: str) -> int:
        """Seconds until the window for *identifier* resets (0 if none)."""
        now = self._clock()
        with self._lock:
            record = self._data.get(identifier)
            if record is None or record.reset_time < now:
                return 0
            return max(0, math.ceil(record.reset_time - now))
