"""
Factory for creating and configuring loggers.

The root logger ("/") owns a console handler; derived loggers ("/supervisor",
"/server/stderr", ...) are lightweight views sharing the root's handlers.
"""

import logging
import sys
from typing import Any, TextIO, cast

from .config import LogConfig
from .formatters import LogFormatter
from .logger import Logger


class LoggerFactory:
    """Factory for creating and configuring loggers."""

    @staticmethod
    def create_root(config: LogConfig, stream: TextIO | None = None) -> Logger:
        """
        Create the root logger with the specified configuration.

        Example:
            >>> config = LogConfig.from_params(level="info", colors=False)
            >>> lg = LoggerFactory.create_root(config)
            >>> lg.info("bootstrap started")
            [12:34:56,789] [I] bootstrap started      [1234] [/]
        """
        return LoggerFactory.create("/", config, stream=stream)

    @staticmethod
    def create(
        name: str,
        config: LogConfig,
        extra: dict[str, Any] | None = None,
        stream: TextIO | None = None,
    ) -> Logger:
        """
        Create a logger with its own console handler.

        An existing logger of the same name is reconfigured rather than
        duplicated, so repeated runs in one interpreter do not stack handlers.

        Args:
            name: Logger name
            config: Logger configuration
            extra: Pre-populated extra fields to include in all log records
            stream: Output stream (defaults to sys.stdout)
        """
        existing = logging.root.manager.loggerDict.get(name)
        if isinstance(existing, Logger):
            for handler in list(existing.handlers):
                existing.removeHandler(handler)
            lg = existing
            lg._config = config
            lg._logging_disabled = config.level is False
        else:
            lg = Logger(name, config, extra)
            logging.root.manager.loggerDict[name] = lg

        level = logging.CRITICAL + 1 if config.level is False else config.level
        lg.setLevel(cast(int, level))

        handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
        handler.setLevel(cast(int, level))
        handler.setFormatter(LogFormatter(config))
        lg.addHandler(handler)
        lg.propagate = False
        lg.parent = logging.root

        lg.trace("created logger", extra={"level": logging.getLevelName(level)})
        return lg

    @staticmethod
    def derive(parent: Logger, tags: str | list[str]) -> Logger:
        """
        Derive a "view" logger that delegates to root's handlers.

        Examples:
            >>> LoggerFactory.derive(root, "supervisor").name
            '/supervisor'
            >>> LoggerFactory.derive(root, ["server", "stderr"]).name
            '/server/stderr'
        """
        if isinstance(tags, str):
            tags = [tags]

        prefix = parent.name if parent.name == "/" else parent.name + "/"
        name = prefix + "/".join(tags)
        root = parent._root_logger if parent._root_logger else parent

        existing = logging.root.manager.loggerDict.get(name)
        if isinstance(existing, Logger) and existing._root_logger is root:
            existing._config = parent.config
            existing._logging_disabled = parent.config.level is False
            existing.setLevel(parent.level)
            return existing

        lg = parent.__class__(name, parent.config, dict(parent._extra))
        lg.setLevel(parent.level)
        lg._root_logger = root
        lg.parent = parent
        lg.propagate = False
        logging.root.manager.loggerDict[name] = lg

        lg.trace("derived logger", extra={"root": root.name})
        return lg
