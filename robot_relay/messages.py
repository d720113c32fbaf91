"""Wire models for every frame that crosses the relay.

Each frame is one JSON object discriminated by its ``type`` field:

    device -> relay -> consoles:  telemetry, status, error
    relay  -> consoles:           status, error
    console -> relay -> device:   cmd_vel, autopilot, scan, reset_pose

Keys on the wire are camelCase; fields here are snake_case and mapped
through ``to_camel``.
"""

from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        strict=True,
        frozen=True,
        extra="ignore",
        allow_inf_nan=False,
    )


# ----------------------------- DEVICE REPORTS -----------------------------


class Pose(WireModel):
    x: float  # meters
    y: float  # meters
    theta: float  # radians


class ScanPoint(WireModel):
    angle: float  # degrees
    # <= 0 means "no reading"; kept as-is so indices stay aligned with angles
    dist_cm: float


class Speed(WireModel):
    left_rps: float
    right_rps: float


class Battery(WireModel):
    voltage: float = Field(ge=0.0)
    percentage: float = Field(ge=0.0, le=100.0)


class Telemetry(WireModel):
    """Periodic state report streamed by the robot."""

    type: Literal["telemetry"] = "telemetry"
    pose: Pose
    scan: List[ScanPoint]
    speed: Speed
    battery: Optional[Battery] = None
    status: Literal["manual", "autopilot", "error"]
    # robot-local millis(), never rewritten by the relay
    timestamp_ms: int = Field(
        ge=0,
        validation_alias=AliasChoices("timestampMs", "timestamp_ms", "timestamp"),
        serialization_alias="timestampMs",
    )


# ----------------------------- NOTICES -----------------------------


class StatusNotice(WireModel):
    """Robot connectivity notice sent to consoles."""

    type: Literal["status"] = "status"
    connected: bool
    message: Optional[str] = None


class ErrorNotice(WireModel):
    """Rejected or undeliverable console message, sent back to its sender only."""

    type: Literal["error"] = "error"
    message: str
    command: Any = None


# ----------------------------- COMMANDS -----------------------------


class SetVelocity(WireModel):
    type: Literal["cmd_vel"] = "cmd_vel"
    linear: float  # m/s
    angular: float  # rad/s


class SetAutopilot(WireModel):
    type: Literal["autopilot"] = "autopilot"
    enabled: bool


class TriggerScan(WireModel):
    type: Literal["scan"] = "scan"
    start_deg: float
    end_deg: float
    step_deg: float = Field(gt=0.0)


class ResetPose(WireModel):
    type: Literal["reset_pose"] = "reset_pose"


Command = Annotated[
    Union[SetVelocity, SetAutopilot, TriggerScan, ResetPose],
    Field(discriminator="type"),
]

DeviceMessage = Annotated[
    Union[Telemetry, StatusNotice, ErrorNotice],
    Field(discriminator="type"),
]

ConsoleMessage = Union[Telemetry, StatusNotice, ErrorNotice]

COMMAND_TYPES = frozenset({"cmd_vel", "autopilot", "scan", "reset_pose"})
DEVICE_MESSAGE_TYPES = frozenset({"telemetry", "status", "error"})
