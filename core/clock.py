"""
Источники текущего времени (секунды). Движок получает часы снаружи,
поэтому под тестами он детерминирован.
"""

import threading
import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int:
        ...


class SystemClock:
    """Системное время, округленное вниз до секунды"""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """Часы для тестов и симуляций: время двигается только вручную"""

    def __init__(self, start: int = 0):
        self._now = int(start)
        self._lock = threading.Lock()

    def now(self) -> int:
        return self._now

    def set(self, timestamp: int) -> None:
        with self._lock:
            self._now = int(timestamp)

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("Clock cannot go backwards")
        with self._lock:
            self._now += int(seconds)
            return self._now
