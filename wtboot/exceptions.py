"""
Exception hierarchy for the bootstrap harness.

Every error raised by wtboot derives from BootstrapError so callers can catch
all harness failures with a single except clause, while the specific classes
tell a startup failure apart from a server that crashed later on.
"""

from typing import Any


class BootstrapError(Exception):
    """
    Base exception for all wtboot errors.

    Example:
        try:
            descriptor = await supervisor.start_server()
        except BootstrapError as e:
            lg.error("bootstrap failed", extra={"exception": e})
    """

    def __init__(self, message: str, **context: Any) -> None:
        """
        Initialize the exception with a message and optional context.

        Args:
            message: Human-readable error message
            **context: Additional context information (stored in self.context)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """String representation with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class ConfigError(BootstrapError):
    """
    Configuration-related errors.

    Examples:
        - Config file not found
        - Invalid YAML syntax
        - Value rejected by schema validation
    """

    pass


class SupervisorError(BootstrapError):
    """
    Supervisor misuse.

    Examples:
        - start_server() called twice
        - wait_exit() before the server was started
    """

    pass


class StartupFailure(BootstrapError):
    """
    The server failed before signalling readiness.

    The message is the server's own error text, verbatim, whenever the failure
    was reported on its error stream.

    Examples:
        - Port already in use
        - Missing toolchain or dependency
        - Executable not found
    """

    pass


class HandshakeError(StartupFailure):
    """The readiness line on standard output could not be decoded."""

    pass


class HandshakeTimeout(StartupFailure):
    """The server wrote nothing within the configured handshake timeout."""

    pass


class AbnormalExit(BootstrapError):
    """
    The server exited with a nonzero code.

    Raised whether or not the handshake already succeeded: a server that
    crashes after becoming ready is still a fault.
    """

    def __init__(self, code: int, **context: Any) -> None:
        super().__init__(f"server exited with code {code}", **context)
        self.code = code
