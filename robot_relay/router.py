"""Relay router: moves frames between the robot and the consoles.

The router holds no state of its own beyond its collaborators. Every
connection handler calls into it once per event and awaits it before
reading the next frame, so per-connection ordering is preserved.
"""

import logging
import time
from enum import Enum
from typing import Callable, Optional

from robot_relay.codec import (
    RawFrame,
    decode_command,
    decode_device_message,
    encode,
    frame_text,
    to_document,
)
from robot_relay.connections import Connection
from robot_relay.exceptions import DecodeError, TransportError
from robot_relay.history import TelemetryHistory
from robot_relay.messages import (
    ConsoleMessage,
    DeviceMessage,
    ErrorNotice,
    StatusNotice,
    Telemetry,
    WireModel,
)
from robot_relay.registry import ConnectionRegistry

logger = logging.getLogger(__name__)

ROBOT_OFFLINE_MESSAGE = "Robot offline - command not sent"
# application-defined close code (4000-4999) for a robot displaced by a newer one
DEVICE_REPLACED_CLOSE_CODE = 4000
DEVICE_REPLACED_REASON = "Replaced by a newer device connection"


class RouteOutcome(str, Enum):
    """What happened to a console frame."""

    FORWARDED = "forwarded"
    REJECTED = "rejected"
    DEVICE_OFFLINE = "device_offline"


class RelayStatus(WireModel):
    device_live: bool
    console_count: int
    history_len: int
    uptime_seconds: float


class RelayRouter:
    def __init__(
        self,
        registry: Optional[ConnectionRegistry] = None,
        history: Optional[TelemetryHistory] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.registry = registry if registry is not None else ConnectionRegistry()
        self.history = history if history is not None else TelemetryHistory()
        self._clock = clock
        self._started_at = clock()

    # ------------------ robot side ------------------

    async def on_device_connected(self, connection: Connection) -> None:
        previous = self.registry.attach_device(connection)
        logger.info(f"Robot connected ({connection.label})")

        if previous is not None:
            logger.warning(f"Robot {previous.label} replaced by {connection.label}, closing it")
            try:
                await previous.close(code=DEVICE_REPLACED_CLOSE_CODE, reason=DEVICE_REPLACED_REASON)
            except TransportError as e:
                logger.warning(f"Failed to close replaced robot {previous.label}: {e}")

        await self.broadcast(StatusNotice(connected=True, message="Robot connected"))

    async def on_device_frame(self, connection: Connection, raw: RawFrame) -> Optional[DeviceMessage]:
        """Record and fan out one robot frame. Returns the decoded message, or None if dropped."""
        if not self.registry.is_current_device(connection):
            logger.debug(f"Ignoring frame from replaced robot {connection.label}")
            return None

        try:
            message = decode_device_message(raw)
        except DecodeError as e:
            logger.warning(f"Failed to parse robot message: {e.message}")
            return None

        if isinstance(message, Telemetry):
            self.history.append(message)

        # relayed as received, whatever its type
        await self.broadcast_text(frame_text(raw))
        return message

    async def on_device_disconnected(self, connection: Connection) -> None:
        if not self.registry.detach_device(connection):
            logger.info(f"Replaced robot connection {connection.label} closed")
            return

        logger.warning(f"Robot disconnected ({connection.label})")
        await self.broadcast(StatusNotice(connected=False, message="Robot disconnected"))

    # ------------------ console side ------------------

    async def on_console_connected(self, connection: Connection) -> None:
        self.registry.attach_console(connection)
        live = self.registry.is_device_live()
        logger.info(f"Console connected ({connection.label}), {self.registry.console_count()} total")

        await self.send(
            connection,
            StatusNotice(connected=live, message="Robot online" if live else "Robot offline"),
        )

    async def on_console_frame(self, connection: Connection, raw: RawFrame) -> RouteOutcome:
        try:
            command = decode_command(raw)
        except DecodeError as e:
            logger.warning(f"Rejected command from {connection.label}: {e.message}")
            await self.send(connection, ErrorNotice(message=e.message, command=e.payload))
            return RouteOutcome.REJECTED

        device = self.registry.live_device()
        if device is not None:
            try:
                await device.send_text(encode(command))
            except TransportError as e:
                logger.warning(f"Failed to forward {command.type} to robot: {e}")
                await self.on_device_disconnected(device)
            else:
                logger.debug(f"Command sent: {command.type}")
                return RouteOutcome.FORWARDED

        await self.send(connection, ErrorNotice(message=ROBOT_OFFLINE_MESSAGE, command=to_document(command)))
        return RouteOutcome.DEVICE_OFFLINE

    async def on_console_disconnected(self, connection: Connection) -> None:
        self.registry.detach_console(connection)
        logger.info(f"Console disconnected ({connection.label}), {self.registry.console_count()} remaining")

    # ------------------ delivery ------------------

    async def send(self, connection: Connection, message: ConsoleMessage) -> bool:
        """Unicast to one console. A failed send detaches that console."""
        try:
            await connection.send_text(encode(message))
        except TransportError as e:
            logger.warning(f"Failed to send message to console {connection.label}: {e}")
            self.registry.detach_console(connection)
            return False
        return True

    async def broadcast(self, message: ConsoleMessage) -> int:
        return await self.broadcast_text(encode(message))

    async def broadcast_text(self, text: str) -> int:
        """Send ``text`` to every live console; returns how many received it."""

        async def deliver(console: Connection) -> None:
            await console.send_text(text)

        return await self.registry.for_each_console(deliver)

    # ------------------ queries ------------------

    def status(self) -> RelayStatus:
        return RelayStatus(
            device_live=self.registry.is_device_live(),
            console_count=self.registry.console_count(),
            history_len=len(self.history),
            uptime_seconds=round(self._clock() - self._started_at, 3),
        )
