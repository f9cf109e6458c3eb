from __future__ import annotations

import threading
import time
from typing import Callable, Optional


class BackendIdGenerator:
    """
    Produce `b-<millis>-<counter>` identifiers.

    The counter never repeats within a process, so ids are unique for the
    generator's lifetime. Across restarts the timestamp makes collisions
    unlikely. Two processes writing the same file can still collide.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None, prefix: str = "b"):
        self._clock = clock or time.time
        self._prefix = prefix
        self._lock = threading.Lock()
        self._last_ms = 0
        self._counter = 0

    def next(self) -> str:
        with self._lock:
            # wall clock may step back; never let the timestamp part decrease
            now_ms = max(int(self._clock() * 1000), self._last_ms)
            self._last_ms = now_ms
            counter = self._counter
            self._counter += 1
        return f"{self._prefix}-{now_ms}-{counter}"
