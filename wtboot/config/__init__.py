"""
Configuration management package.

This module provides:
- load_config() for YAML files with WTBOOT_* environment overrides
- Pydantic schemas validating the result
"""

from .config import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    MAX_CONFIG_SIZE_BYTES,
    collect_env_overrides,
    convert_env_value,
    load_config,
)
from .schemas import (
    BootstrapConfig,
    GuardConfig,
    HandshakeConfig,
    LoggingConfig,
    ServerConfig,
)

__all__ = [
    "load_config",
    "collect_env_overrides",
    "convert_env_value",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "MAX_CONFIG_SIZE_BYTES",
    "BootstrapConfig",
    "ServerConfig",
    "HandshakeConfig",
    "GuardConfig",
    "LoggingConfig",
]
