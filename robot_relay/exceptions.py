"""Error taxonomy for the robot relay."""

from typing import Any


class RelayError(Exception):
    """Base exception for all relay errors."""


class DecodeError(RelayError):
    """A frame could not be decoded into a known message shape.

    ``payload`` is whatever could be recovered from the frame (the parsed
    JSON document, or the raw text when it was not valid JSON) so the
    caller can echo it back to the sender.
    """

    def __init__(self, message: str, *, payload: Any = None) -> None:
        self.message = message
        self.payload = payload
        super().__init__(message)


class TransportError(RelayError):
    """Sending to or closing a connection failed."""

    def __init__(self, message: str, *, connection: str = "") -> None:
        self.connection = connection
        super().__init__(message)
