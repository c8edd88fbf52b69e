"""Time sources for recording sessions and record timestamps."""

import threading
import time
from abc import ABC, abstractmethod


class Clock(ABC):
    """Abstract millisecond time source."""

    @abstractmethod
    def now_ms(self) -> int:
        pass


class SystemClock(Clock):
    """Wall-clock time, for record timestamps."""

    def now_ms(self) -> int:
        return int(time.time() * 1000)


class MonotonicClock(Clock):
    """Monotonic time, for measuring elapsed recording time."""

    def now_ms(self) -> int:
        return int(time.monotonic() * 1000)


class VirtualClock(Clock):
    """Manually advanced clock for deterministic tests."""

    def __init__(self, start_ms: int = 0):
        self._now = start_ms
        self._lock = threading.Lock()

    def now_ms(self) -> int:
        with self._lock:
            return self._now

    def advance(self, ms: int) -> int:
        with self._lock:
            self._now += ms
            return self._now
