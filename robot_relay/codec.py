"""Frame codec: raw text/bytes <-> wire models.

Decoding never trusts the sender. Anything that is not a JSON object with
a known ``type`` and valid fields raises :class:`DecodeError`, carrying
the best-effort parsed payload so it can be echoed back.
"""

import json
import math
from typing import Any, Dict, FrozenSet, Tuple, Union

from pydantic import BaseModel, TypeAdapter, ValidationError

from robot_relay.exceptions import DecodeError
from robot_relay.messages import (
    COMMAND_TYPES,
    DEVICE_MESSAGE_TYPES,
    Command,
    DeviceMessage,
    ErrorNotice,
)

RawFrame = Union[str, bytes, bytearray]

_command_adapter: TypeAdapter = TypeAdapter(Command)
_device_message_adapter: TypeAdapter = TypeAdapter(DeviceMessage)


def frame_text(raw: RawFrame) -> str:
    """Return the frame as text, raising DecodeError if it is not UTF-8."""
    if isinstance(raw, str):
        return raw
    try:
        return bytes(raw).decode("utf-8")
    except UnicodeDecodeError:
        raise DecodeError(
            "Frame is not valid UTF-8",
            payload=bytes(raw).decode("utf-8", errors="replace"),
        ) from None


def _reject_constant(name: str) -> float:
    raise ValueError(f"non-finite number {name}")


def _finite_float(literal: str) -> float:
    value = float(literal)
    if math.isinf(value):
        raise ValueError(f"number out of range: {literal}")
    return value


def _load(raw: RawFrame) -> Tuple[str, Dict[str, Any]]:
    text = frame_text(raw)
    try:
        document = json.loads(text, parse_float=_finite_float, parse_constant=_reject_constant)
    except ValueError as e:
        raise DecodeError(f"Invalid JSON: {e}", payload=text) from None
    if not isinstance(document, dict):
        raise DecodeError("Frame must be a JSON object", payload=document)
    return text, document


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        parts.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "; ".join(parts)


def _decode(raw: RawFrame, adapter: TypeAdapter, known: FrozenSet[str], kind: str) -> Any:
    text, document = _load(raw)

    message_type = document.get("type")
    if not message_type:
        raise DecodeError(f"missing {kind} type", payload=document)
    if not isinstance(message_type, str) or message_type not in known:
        raise DecodeError(f"unknown {kind} type: {message_type!r}", payload=document)

    try:
        return adapter.validate_json(text)
    except ValidationError as e:
        raise DecodeError(f"invalid {message_type}: {_describe(e)}", payload=document) from None


def decode_command(raw: RawFrame) -> Command:
    """Decode a console frame into one of the command models."""
    return _decode(raw, _command_adapter, COMMAND_TYPES, "command")


def decode_device_message(raw: RawFrame) -> DeviceMessage:
    """Decode a robot frame into a telemetry, status or error model."""
    return _decode(raw, _device_message_adapter, DEVICE_MESSAGE_TYPES, "message")


def _exclude_none(message: BaseModel) -> bool:
    # an error notice always echoes the rejected payload, even a JSON null
    return not isinstance(message, ErrorNotice)


def encode(message: BaseModel) -> str:
    """Serialize a wire model to its JSON frame."""
    return message.model_dump_json(by_alias=True, exclude_none=_exclude_none(message))


def to_document(message: BaseModel) -> Dict[str, Any]:
    """Serialize a wire model to a JSON-compatible dict (for REST responses)."""
    return message.model_dump(mode="json", by_alias=True, exclude_none=_exclude_none(message))
