"""
Tests for wtboot configuration loading.

Tests key features including:
- Built-in defaults and YAML files
- WTBOOT_* environment overrides and value conversion
- Explicit overrides from the command line
- Schema validation errors
"""

import signal
from pathlib import Path

import pytest

from wtboot.config import (
    MAX_CONFIG_SIZE_BYTES,
    BootstrapConfig,
    GuardConfig,
    collect_env_overrides,
    convert_env_value,
    load_config,
)
from wtboot.config.config import set_nested_value
from wtboot.descriptor import DEFAULT_ADDRESS
from wtboot.exceptions import ConfigError


@pytest.fixture
def config_file(tmp_path):
    def _write(content: str) -> Path:
        path = tmp_path / "wtboot.yaml"
        path.write_text(content)
        return path

    return _write


# =============================================================================
# Test defaults and files
# =============================================================================


@pytest.mark.unit
class TestLoadConfig:
    """Test load_config sources."""

    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        config = load_config(environ={})

        assert config.server.command == ["go", "run", "server.go"]
        assert config.server.address == DEFAULT_ADDRESS
        assert config.server.cwd is None
        assert config.handshake.timeout is None
        assert config.guard.kill_signal is signal.SIGKILL
        assert config.logging.level == "info"

    def test_default_file_in_etc(self, monkeypatch, tmp_path):
        (tmp_path / "etc").mkdir()
        (tmp_path / "etc" / "wtboot.yaml").write_text("handshake:\n  timeout: 5\n")
        monkeypatch.chdir(tmp_path)

        assert load_config(environ={}).handshake.timeout == 5.0

    def test_yaml_file(self, config_file):
        path = config_file(
            """
server:
  command: ./server --port 4433
  address: https://localhost:4433/echo
logging:
  level: debug
  colors: false
"""
        )
        config = load_config(path, environ={})

        assert config.server.command == ["./server", "--port", "4433"]
        assert config.server.address == "https://localhost:4433/echo"
        assert config.logging.level == "debug"
        assert config.logging.colors is False

    def test_empty_file(self, config_file):
        assert load_config(config_file(""), environ={}) == BootstrapConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "missing.yaml", environ={})

    def test_invalid_yaml(self, config_file):
        with pytest.raises(ConfigError, match="invalid YAML"):
            load_config(config_file("server: [unclosed"), environ={})

    def test_non_mapping_root(self, config_file):
        with pytest.raises(ConfigError, match="mapping"):
            load_config(config_file("- a\n- b\n"), environ={})

    def test_file_too_large(self, config_file):
        path = config_file("#" * (MAX_CONFIG_SIZE_BYTES + 1))
        with pytest.raises(ConfigError, match="exceeding maximum"):
            load_config(path, environ={})

    def test_unknown_key_rejected(self, config_file):
        with pytest.raises(ConfigError, match="invalid configuration"):
            load_config(config_file("server:\n  port: 1\n"), environ={})

    def test_invalid_timeout_rejected(self, config_file):
        with pytest.raises(ConfigError):
            load_config(config_file("handshake:\n  timeout: 0\n"), environ={})

    def test_empty_command_rejected(self, config_file):
        with pytest.raises(ConfigError):
            load_config(config_file("server:\n  command: []\n"), environ={})


# =============================================================================
# Test overrides
# =============================================================================


@pytest.mark.unit
class TestOverrides:
    """Test environment and explicit overrides."""

    def test_env_overrides_file(self, config_file):
        path = config_file("logging:\n  level: info\n")
        config = load_config(
            path,
            environ={
                "WTBOOT_LOGGING_LEVEL": "debug",
                "WTBOOT_HANDSHAKE_TIMEOUT": "2.5",
                "WTBOOT_GUARD_SIGNAL": "term",
            },
        )

        assert config.logging.level == "debug"
        assert config.handshake.timeout == 2.5
        assert config.guard.kill_signal is signal.SIGTERM

    def test_env_command_list(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        config = load_config(environ={"WTBOOT_SERVER_COMMAND": "./server,--port,4433"})
        assert config.server.command == ["./server", "--port", "4433"]

    def test_env_command_single_word(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        config = load_config(environ={"WTBOOT_SERVER_COMMAND": "./server"})
        assert config.server.command == ["./server"]

    def test_env_overrides_disabled(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        config = load_config(
            environ={"WTBOOT_LOGGING_LEVEL": "debug"}, enable_env_overrides=False
        )
        assert config.logging.level == "info"

    def test_explicit_overrides_win(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        config = load_config(
            environ={"WTBOOT_LOGGING_LEVEL": "debug"},
            overrides={"logging.level": "warning", "server.cwd": None},
        )
        assert config.logging.level == "warning"
        assert config.server.cwd is None

    def test_collect_env_overrides(self):
        overrides = collect_env_overrides(
            {"WTBOOT_LOGGING_LEVEL": "debug", "HOME": "/root", "WTBOOT_GUARD_SIGNAL": "SIGINT"}
        )
        assert overrides == {"logging.level": "debug", "guard.signal": "SIGINT"}

    def test_collect_env_overrides_skips_unknown_sections(self):
        overrides = collect_env_overrides(
            {"WTBOOT_TEST_VALUE": "x", "WTBOOT_DEBUG": "1", "WTBOOT_LOGGING_LEVEL": "debug"}
        )
        assert overrides == {"logging.level": "debug"}

    def test_unrelated_env_variable_does_not_break_loading(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        config = load_config(
            environ={"WTBOOT_TEST_VALUE": "x", "WTBOOT_LOGGING_LEVEL": "debug"}
        )
        assert config.logging.level == "debug"

    def test_set_nested_value(self):
        data = {"server": "not a section"}
        set_nested_value(data, "server.cwd", "/srv")
        set_nested_value(data, "a.b.c", 1)
        assert data == {"server": {"cwd": "/srv"}, "a": {"b": {"c": 1}}}


@pytest.mark.unit
class TestConvertEnvValue:
    """Test environment value conversion."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("", None),
            ("null", None),
            ("None", None),
            ("true", True),
            ("FALSE", False),
            ("42", 42),
            ("2.5", 2.5),
            ("debug", "debug"),
            ("a, b ,3", ["a", "b", 3]),
        ],
    )
    def test_conversion(self, raw, expected):
        assert convert_env_value(raw) == expected


@pytest.mark.unit
class TestGuardConfig:
    """Test kill signal validation."""

    @pytest.mark.parametrize("name", ["SIGKILL", "kill", "sigkill"])
    def test_signal_names(self, name):
        assert GuardConfig(signal=name).kill_signal is signal.SIGKILL

    def test_unknown_signal(self):
        with pytest.raises(ValueError):
            GuardConfig(signal="SIGNOPE")
