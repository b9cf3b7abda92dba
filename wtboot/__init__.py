"""
wtboot - supervised bootstrap of a demo transport server.

Starts the server in its own process group, waits for the certificate hash
it announces on stdout, and guarantees the whole group is killed when the
parent exits.
"""

from .descriptor import (
    DEFAULT_ADDRESS,
    CertificateHash,
    ConnectionDescriptor,
    ExitOutcome,
)
from .exceptions import (
    AbnormalExit,
    BootstrapError,
    ConfigError,
    HandshakeError,
    HandshakeTimeout,
    StartupFailure,
    SupervisorError,
)
from .guard import LifecycleGuard, ShutdownReason
from .handshake import Handshake, Readiness, ReadinessState
from .snippet import render_client_snippet
from .supervisor import ProcessSupervisor
from .version import get_version

__version__ = get_version()

__all__ = [
    "__version__",
    # Supervision
    "ProcessSupervisor",
    "LifecycleGuard",
    "ShutdownReason",
    # Handshake
    "Handshake",
    "Readiness",
    "ReadinessState",
    # Values
    "DEFAULT_ADDRESS",
    "CertificateHash",
    "ConnectionDescriptor",
    "ExitOutcome",
    # Consumer
    "render_client_snippet",
    # Exceptions
    "BootstrapError",
    "ConfigError",
    "SupervisorError",
    "StartupFailure",
    "HandshakeError",
    "HandshakeTimeout",
    "AbnormalExit",
]
