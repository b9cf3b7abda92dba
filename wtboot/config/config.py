"""
Configuration loading from YAML files and environment variables.

Environment Variable Override Format:
    WTBOOT_<SECTION>_<KEY>=value

Examples:
    WTBOOT_LOGGING_LEVEL=debug
    WTBOOT_HANDSHAKE_TIMEOUT=10
    WTBOOT_SERVER_COMMAND=go,run,server.go
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from ..exceptions import ConfigError
from .schemas import BootstrapConfig

ENV_PREFIX = "WTBOOT_"
DEFAULT_CONFIG_FILE = Path("etc") / "wtboot.yaml"

# Maximum config file size (1MB)
MAX_CONFIG_SIZE_BYTES = 1024 * 1024


def _read_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML mapping from disk."""
    if not path.is_file():
        raise ConfigError("config file not found", path=str(path))

    file_size = os.path.getsize(path)
    if file_size > MAX_CONFIG_SIZE_BYTES:
        raise ConfigError(
            f"config file is {file_size} bytes, exceeding maximum of "
            f"{MAX_CONFIG_SIZE_BYTES} bytes",
            path=str(path),
        )

    with open(path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid YAML: {e}", path=str(path)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping", path=str(path))
    return data


def convert_env_value(value: str) -> bool | int | float | str | list[Any] | None:
    """
    Convert environment variable string to appropriate type.

    Args:
        value: Environment variable value as string

    Returns:
        None for "null"/"none"/"", bool for "true"/"false", a list for
        comma-separated values, int or float when numeric, else the string
    """
    if value.lower() in ("null", "none", ""):
        return None

    if value.lower() in ("true", "false"):
        return value.lower() == "true"

    if "," in value:
        return [convert_env_value(v.strip()) for v in value.split(",")]

    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        pass

    return value


def collect_env_overrides(
    environ: Mapping[str, str] | None = None, prefix: str = ENV_PREFIX
) -> dict[str, Any]:
    """
    Collect overrides from prefixed environment variables.

    Variables whose first segment is not a config section (e.g.
    WTBOOT_TEST_VALUE) belong to something else and are skipped.

    Returns:
        Mapping of dotted config paths to converted values,
        e.g. {"logging.level": "debug"}
    """
    environ = os.environ if environ is None else environ
    overrides = {}
    for key, value in environ.items():
        if not key.startswith(prefix):
            continue
        path = key[len(prefix) :].lower().split("_", 1)
        if len(path) < 2 or path[0] not in BootstrapConfig.model_fields:
            continue
        overrides[".".join(path)] = convert_env_value(value)
    return overrides


def set_nested_value(data: dict[str, Any], path: str, value: Any) -> None:
    """Set value at a dotted path, creating intermediate sections."""
    parts = path.split(".")
    current = data
    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]
    current[parts[-1]] = value


def _stringify_command(value: Any) -> Any:
    # "go,run,server.go" arrives as a list; single words arrive as scalars
    if isinstance(value, list):
        return [str(v) for v in value]
    if value is not None:
        return str(value)
    return value


def load_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
    enable_env_overrides: bool = True,
) -> BootstrapConfig:
    """
    Load configuration.

    Sources, later ones winning: built-in defaults, the YAML file (``path``,
    or etc/wtboot.yaml when it exists), WTBOOT_* environment variables,
    explicit ``overrides`` keyed by dotted path (CLI flags).

    Raises:
        ConfigError: If the file cannot be read or the result fails validation
    """
    data: dict[str, Any] = {}
    if path is not None:
        data = _read_yaml(Path(path))
    elif DEFAULT_CONFIG_FILE.is_file():
        data = _read_yaml(DEFAULT_CONFIG_FILE)

    if enable_env_overrides:
        for key, value in collect_env_overrides(environ).items():
            if key == "server.command":
                value = _stringify_command(value)
            elif key == "server.address" and value is not None:
                value = str(value)
            set_nested_value(data, key, value)

    for key, value in (overrides or {}).items():
        if value is not None:
            set_nested_value(data, key, value)

    try:
        return BootstrapConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e
