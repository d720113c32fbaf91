"""Connection registry: at most one robot, any number of consoles."""

import asyncio
import logging
import threading
from typing import Awaitable, Callable, List, Optional, Set

from robot_relay.connections import Connection

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """Owns the robot slot and the console set.

    All state is guarded by one lock. No method awaits while holding it;
    fan-out snapshots the console set first and sends outside the lock.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._device: Optional[Connection] = None
        self._consoles: Set[Connection] = set()

    # ------------------ robot slot ------------------

    def attach_device(self, connection: Connection) -> Optional[Connection]:
        """Install ``connection`` as the robot and return the one it displaced, if any."""
        with self._lock:
            previous, self._device = self._device, connection
        if previous is connection:
            return None
        return previous

    def detach_device(self, connection: Connection) -> bool:
        """Clear the robot slot if ``connection`` still holds it.

        Returns False for a stale detach from an already-replaced handle.
        """
        with self._lock:
            if self._device is not connection:
                return False
            self._device = None
            return True

    @property
    def device(self) -> Optional[Connection]:
        with self._lock:
            return self._device

    def is_current_device(self, connection: Connection) -> bool:
        with self._lock:
            return self._device is connection

    def live_device(self) -> Optional[Connection]:
        """Return the robot handle if one is installed and its transport is open right now."""
        device = self.device
        if device is not None and device.is_open:
            return device
        return None

    def is_device_live(self) -> bool:
        return self.live_device() is not None

    # ------------------ consoles ------------------

    def attach_console(self, connection: Connection) -> None:
        with self._lock:
            self._consoles.add(connection)

    def detach_console(self, connection: Connection) -> bool:
        with self._lock:
            if connection not in self._consoles:
                return False
            self._consoles.discard(connection)
            return True

    def console_count(self) -> int:
        with self._lock:
            return len(self._consoles)

    def consoles(self) -> List[Connection]:
        """Snapshot of the console set."""
        with self._lock:
            return list(self._consoles)

    async def for_each_console(self, fn: Callable[[Connection], Awaitable[None]]) -> int:
        """Run ``fn`` against every live console concurrently.

        Consoles that are closed at snapshot time are skipped. A console whose
        ``fn`` raises is detached; the others are unaffected. Returns the
        number of consoles ``fn`` completed for.
        """
        targets = [console for console in self.consoles() if console.is_open]
        if not targets:
            return 0

        results = await asyncio.gather(*(fn(console) for console in targets), return_exceptions=True)

        delivered = 0
        for console, result in zip(targets, results):
            if isinstance(result, Exception):
                logger.warning(f"Dropping console {console.label}: {result}")
                self.detach_console(console)
            else:
                delivered += 1
        return delivered
