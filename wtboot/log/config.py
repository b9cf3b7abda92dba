"""
Configuration for the logging system.

LogConfig is immutable so that a logger and its formatter always agree on how
records are rendered.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .constants import LogConstants
from .exceptions import InvalidLogLevelError


@dataclass(frozen=True)
class LogConfig:
    """
    Immutable logger configuration.

    Attributes:
        level: Numeric level, or False to disable logging entirely
        location: Show the calling file and line when nonzero
        micros: Append microseconds to timestamps
        colors: Render ANSI colors
    """

    level: int | bool = logging.INFO
    location: int = 0
    micros: bool = False
    colors: bool = True

    @staticmethod
    def _resolve_level(level: str | int | bool) -> int | bool:
        """Resolve level parameter to int or False."""
        if isinstance(level, bool):
            return False if not level else logging.INFO
        if isinstance(level, str):
            name = level.lower()
            if name.isnumeric():
                return int(name)
            if name in LogConstants.LEVEL_NAMES:
                return LogConstants.LEVEL_NAMES[name]
            raise InvalidLogLevelError(level)
        return level

    @classmethod
    def from_params(
        cls,
        level: str | int | bool,
        location: bool | int = 0,
        micros: bool = False,
        colors: bool = True,
    ) -> LogConfig:
        """
        Create LogConfig from individual parameters.

        Args:
            level: Log level (name, numeric value, or False to disable logging)
            location: Location display (bool or int)
            micros: Whether to show microsecond precision
            colors: Whether to enable colored output

        Raises:
            InvalidLogLevelError: If the level name is not recognized
        """
        return cls(
            level=cls._resolve_level(level),
            location=1 if location is True else (0 if location is False else int(location)),
            micros=micros,
            colors=colors,
        )

    @classmethod
    def from_config(cls, section: dict[str, Any]) -> LogConfig:
        """
        Create LogConfig from the ``logging`` section of a config dict.

        Example:
            config = load_config("etc/wtboot.yaml")
            log_config = LogConfig.from_config(config.logging.model_dump())
        """
        return cls.from_params(
            level=section.get("level", "info"),
            location=section.get("location", 0),
            micros=section.get("micros", False),
            colors=section.get("colors", True),
        )
