"""Runtime settings, read from the environment once at startup."""

import os
from typing import List, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from robot_relay.history import DEFAULT_CAPACITY


class RelaySettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(default=3001, ge=0, le=65535)
    reload: bool = False
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    history_capacity: int = Field(default=DEFAULT_CAPACITY, ge=1)
    log_level: str = "info"

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.strip().lower()
        if level not in ("critical", "error", "warning", "info", "debug", "trace"):
            raise ValueError(f"unknown log level: {value!r}")
        return level

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RelaySettings":
        """Build settings from HOST, PORT, DEBUG, CORS_ORIGIN, HISTORY_CAPACITY and LOG_LEVEL."""
        env = os.environ if environ is None else environ
        values = {}
        if "HOST" in env:
            values["host"] = env["HOST"]
        if "PORT" in env:
            values["port"] = int(env["PORT"])
        if "DEBUG" in env:
            values["reload"] = env["DEBUG"].lower() == "true"
        if "CORS_ORIGIN" in env:
            values["cors_origins"] = [o.strip() for o in env["CORS_ORIGIN"].split(",") if o.strip()]
        if "HISTORY_CAPACITY" in env:
            values["history_capacity"] = int(env["HISTORY_CAPACITY"])
        if "LOG_LEVEL" in env:
            values["log_level"] = env["LOG_LEVEL"]
        return cls(**values)
