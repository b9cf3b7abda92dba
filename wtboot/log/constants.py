"""
Constants for the logging system.

Format strings, rule widths and level names shared by the logger, its
configuration and the formatter.
"""

import logging


class LogConstants:
    """Constants for the logging system."""

    DEFAULT_FORMAT: str = "[%(asctime)s] [%(levelname).1s] %(message)s"

    # Rule widths for aligning extra fields
    DEFAULT_RULE_WIDTH: int = 70
    MICRO_RULE_WIDTH: int = 74

    CUSTOM_LEVELS: dict[str, int] = {"TRACE": 5}

    LEVEL_NAMES: dict[str, int | bool] = {
        "critical": logging.CRITICAL,
        "error": logging.ERROR,
        "warning": logging.WARNING,
        "info": logging.INFO,
        "debug": logging.DEBUG,
        "trace": 5,
        "false": False,  # Disables all logging
    }

    RESET: str = "\x1b[0m"

    # Gray level range (256-color palette)
    GRAY_BASE: int = 232
    GRAY_MAX_LEVELS: int = 24


logging.addLevelName(LogConstants.CUSTOM_LEVELS["TRACE"], "TRACE")
