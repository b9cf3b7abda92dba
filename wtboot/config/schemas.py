"""
Configuration schemas using Pydantic for validation.
"""

from __future__ import annotations

import signal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..descriptor import DEFAULT_ADDRESS
from ..supervisor import DEFAULT_COMMAND

_LOG_LEVELS = ["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "FALSE"]


class ServerConfig(BaseModel):
    """How to start the server and where clients reach it."""

    command: list[str] = Field(
        default_factory=lambda: list(DEFAULT_COMMAND),
        min_length=1,
        description="Server command line",
    )
    address: str = Field(default=DEFAULT_ADDRESS, description="Endpoint address")
    cwd: str | None = Field(default=None, description="Server working directory")

    @field_validator("command", mode="before")
    @classmethod
    def split_command(cls, v: Any) -> Any:
        """Accept a plain string command line."""
        if isinstance(v, str):
            return v.split()
        return v

    model_config = ConfigDict(extra="forbid")


class HandshakeConfig(BaseModel):
    """Readiness handshake settings."""

    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Seconds to wait for the server's first output; unset waits forever",
    )

    model_config = ConfigDict(extra="forbid")


class GuardConfig(BaseModel):
    """Lifecycle guard settings."""

    signal: str = Field(
        default="SIGKILL", description="Signal sent to the server process group"
    )

    @field_validator("signal")
    @classmethod
    def validate_signal(cls, v: str) -> str:
        name = v.upper()
        if not name.startswith("SIG"):
            name = "SIG" + name
        if name not in signal.Signals.__members__:
            raise ValueError(f"Unknown signal '{v}'")
        return name

    @property
    def kill_signal(self) -> signal.Signals:
        return signal.Signals[self.signal]

    model_config = ConfigDict(extra="forbid")


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str | bool = Field(default="info", description="Log level")
    colors: bool = Field(default=True, description="Colored console output")
    micros: bool = Field(default=False, description="Show microsecond timestamps")
    location: bool | int = Field(default=0, description="Show file locations in logs")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: Any) -> Any:
        """Validate log level is a recognized level."""
        if isinstance(v, str) and not v.isnumeric() and v.upper() not in _LOG_LEVELS:
            raise ValueError(
                f"Invalid log level '{v}'. Must be one of: {', '.join(_LOG_LEVELS)}"
            )
        return v

    model_config = ConfigDict(extra="forbid")


class BootstrapConfig(BaseModel):
    """Root configuration."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    handshake: HandshakeConfig = Field(default_factory=HandshakeConfig)
    guard: GuardConfig = Field(default_factory=GuardConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra="forbid")
