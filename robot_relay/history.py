"""Bounded in-memory history of the most recent telemetry reports."""

import threading
from collections import deque
from typing import Deque, List, Optional

from robot_relay.messages import Telemetry

DEFAULT_CAPACITY = 1000


class TelemetryHistory:
    """Fixed-capacity FIFO of telemetry reports.

    Appending past capacity evicts exactly the oldest report. History is
    volatile and lost on restart.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f"history capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._reports: Deque[Telemetry] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, report: Telemetry) -> None:
        with self._lock:
            self._reports.append(report)

    def latest(self) -> Optional[Telemetry]:
        """Return the most recently appended report, or None if there is none yet."""
        with self._lock:
            if not self._reports:
                return None
            return self._reports[-1]

    def recent(self, limit: int) -> List[Telemetry]:
        """Return up to ``limit`` of the newest reports, oldest first."""
        if limit < 1:
            return []
        with self._lock:
            return list(self._reports)[-limit:]

    def __len__(self) -> int:
        with self._lock:
            return len(self._reports)
