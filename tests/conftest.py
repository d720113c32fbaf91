from __future__ import annotations

import json
from typing import Any

import pytest

from robot_relay.exceptions import TransportError
from robot_relay.messages import Pose, ScanPoint, Speed, Telemetry

TELEMETRY_FRAME = (
    '{"type":"telemetry","pose":{"x":1,"y":0,"theta":0},"scan":[{"angle":0,"distCm":-1}],'
    '"speed":{"leftRps":0,"rightRps":0},"status":"manual","timestampMs":42}'
)


class FakeConnection:
    """In-memory stand-in for a WebSocket handle."""

    def __init__(self, label: str = "fake", *, is_open: bool = True, fail_sends: bool = False) -> None:
        self.label = label
        self.open = is_open
        self.fail_sends = fail_sends
        self.sent: list[str] = []
        self.closed_with: tuple[int, str | None] | None = None

    @property
    def is_open(self) -> bool:
        return self.open

    async def send_text(self, data: str) -> None:
        if self.fail_sends or not self.open:
            raise TransportError("connection is not open", connection=self.label)
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.open = False
        self.closed_with = (code, reason)

    def messages(self) -> list[dict[str, Any]]:
        return [json.loads(frame) for frame in self.sent]


def make_report(timestamp_ms: int = 0, *, dist_cm: float = -1.0) -> Telemetry:
    return Telemetry(
        pose=Pose(x=0.0, y=0.0, theta=0.0),
        scan=[ScanPoint(angle=0.0, dist_cm=dist_cm)],
        speed=Speed(left_rps=0.0, right_rps=0.0),
        status="manual",
        timestamp_ms=timestamp_ms,
    )


@pytest.fixture
def connection_factory():
    return FakeConnection


@pytest.fixture
def report_factory():
    return make_report


@pytest.fixture
def telemetry_frame() -> str:
    return TELEMETRY_FRAME
