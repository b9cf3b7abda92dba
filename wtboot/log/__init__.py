"""
Structured logging with colored console output.

This module extends Python's standard logging with:
- A custom TRACE level below DEBUG
- Colored console output with ANSI escape sequences
- Optional microsecond timestamps and file locations
- Structured [key:value] extra fields
- Derived "view" loggers sharing the root logger's handlers
- Complete logging disable (level=False or level="false")
"""

from .colors import ColorManager
from .config import LogConfig
from .constants import LogConstants
from .exceptions import InvalidLogLevelError, LogError
from .factory import LoggerFactory
from .formatters import LogFormatter
from .logger import Logger

__all__ = [
    "ColorManager",
    "InvalidLogLevelError",
    "LogConfig",
    "LogConstants",
    "LogError",
    "LogFormatter",
    "Logger",
    "LoggerFactory",
]
