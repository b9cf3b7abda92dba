"""
Log formatter with colored output and structured extra fields.

A record renders as::

    [12:34:56,789] [I] server ready        [pid:4242] [1234] [/supervisor]

Extra fields passed with ``extra={...}`` follow the message, aligned on a
rule, then the process id and the logger name.
"""

import logging
import os
import re
import traceback
from typing import Any

from .colors import ColorManager
from .config import LogConfig
from .constants import LogConstants

_ANSI_PATTERN = re.compile(r"\x1b\[[0-9;]*m")

EXTRA_ATTR = "__wtboot__extra"


def _visual_len(text: str) -> int:
    """Width of text, excluding ANSI escape codes."""
    if "\x1b" not in text:
        return len(text)
    return len(_ANSI_PATTERN.sub("", text))


def _quote(text: str) -> str:
    # Extra values end up inside the format string
    return text.replace("%", "%%")


def _render_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    if isinstance(value, bytes):
        return value.hex()
    return str(value)


def _render_exception(e: BaseException) -> str:
    lines = traceback.format_exception(type(e), e, e.__traceback__)
    return "".join(lines).rstrip()


class LogFormatter(logging.Formatter):
    """
    Formatter producing rich console lines.

    Provides:
    - ANSI color codes per log level (disabled with colors=False)
    - Bracketed [key:value] rendering of extra fields
    - Exception traceback rendering for an ``exception`` extra field
    - Optional microsecond timestamps and file locations
    """

    def __init__(self, config: LogConfig) -> None:
        super().__init__(LogConstants.DEFAULT_FORMAT)
        self._config = config

    @property
    def config(self) -> LogConfig:
        return self._config

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        s = super().formatTime(record, datefmt)
        if self._config.micros:
            micros = int((record.created % 1) * 1000000) % 1000
            s += f".{micros:03d}"
        return s

    def format(self, record: logging.LogRecord) -> str:
        extra = getattr(record, EXTRA_ATTR, None) or {}
        exc = extra.get("exception")
        fields = {k: v for k, v in extra.items() if k != "exception"}

        fmt = self._build_format(record, fields)
        self._style._fmt = fmt
        out = super().format(record)

        if isinstance(exc, BaseException):
            out += "\n" + _render_exception(exc)
        return out

    def _rule_padding(self, record: logging.LogRecord) -> str:
        # "[" + timestamp + "] [" + level + "] " + message
        timestamp_len = 16 if self._config.micros else 12
        width = 1 + timestamp_len + 4 + 1 + 2 + _visual_len(record.getMessage())
        rule = (
            LogConstants.MICRO_RULE_WIDTH
            if self._config.micros
            else LogConstants.DEFAULT_RULE_WIDTH
        )
        return " " * max(1, rule - width)

    def _location(self, record: logging.LogRecord) -> str:
        if not self._config.location:
            return ""
        name = "./" + os.path.relpath(record.pathname, os.getcwd())
        return f" [{name}:{record.lineno}]"

    def _build_format(self, record: logging.LogRecord, fields: dict[str, Any]) -> str:
        if not self._config.colors:
            fmt = LogConstants.DEFAULT_FORMAT + self._rule_padding(record)
            fmt += "".join(
                f"[{k}:{_quote(_render_value(v))}] " for k, v in fields.items()
            )
            fmt += "[%(process)d] [%(name)s]"
            return fmt + _quote(self._location(record))

        col = ColorManager.get_color_for_level(record.levelno)
        bold = ColorManager.create_bold_color(col)
        col += "m"
        reset = ColorManager.RESET
        gray = ColorManager.create_gray_level(9) + "m"

        fmt = col + "[%(asctime)s] [" + bold + "%(levelname).1s" + reset + col + "] "
        fmt += bold + "%(message)s" + reset + col + self._rule_padding(record)
        for k, v in fields.items():
            fmt += f"{k}[{bold}{_quote(_render_value(v))}{reset}{col}] "
        fmt += gray + "[%(process)d] [%(name)s]"
        fmt += _quote(self._location(record))
        return fmt + reset
