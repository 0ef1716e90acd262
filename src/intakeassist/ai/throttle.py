"""Minimum-interval gate in front of suggestion requests."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

__all__ = ["DEFAULT_MIN_INTERVAL", "Throttler"]

LOGGER = logging.getLogger(__name__)

DEFAULT_MIN_INTERVAL = 2.0


class Throttler:
    """Allow at most one request per ``min_interval`` seconds.

    Only calls that pass the gate move the reference timestamp; rejected calls
    leave it alone so they never push the next opening further out.
    """

    def __init__(self, min_interval: float = DEFAULT_MIN_INTERVAL, *, clock: Callable[[], float] = time.monotonic) -> None:
        if min_interval < 0:
            raise ValueError("min_interval must be non-negative")
        self._min_interval = float(min_interval)
        self._clock = clock
        self._last_allowed: float | None = None
        self._lock = threading.Lock()

    @property
    def min_interval(self) -> float:
        return self._min_interval

    def allow(self) -> bool:
        with self._lock:
            now = self._clock()
            if self._last_allowed is not None and now - self._last_allowed < self._min_interval:
                LOGGER.debug("Throttled request; %.2fs since last allowed call", now - self._last_allowed)
                return False
            self._last_allowed = now
            return True

    def remaining(self) -> float:
        """Seconds until :meth:`allow` would next succeed (0 when open)."""

        with self._lock:
            if self._last_allowed is None:
                return 0.0
            return max(0.0, self._min_interval - (self._clock() - self._last_allowed))

    def reset(self) -> None:
        with self._lock:
            self._last_allowed = None
