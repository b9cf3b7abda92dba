"""
Values exchanged between the supervisor and its consumers.

ConnectionDescriptor is what a successful handshake produces; ExitOutcome is
what the end of the server process produces. Both are immutable.
"""

from __future__ import annotations

import signal
from dataclasses import dataclass, field
from typing import Any

DEFAULT_ADDRESS = "https://127.0.0.1:12345/say-hello"
SHA256 = "sha-256"


@dataclass(frozen=True)
class CertificateHash:
    """A server certificate fingerprint the client pins instead of a CA chain."""

    value: bytes
    algorithm: str = SHA256

    def to_dict(self) -> dict[str, Any]:
        return {"algorithm": self.algorithm, "value": self.value}


@dataclass(frozen=True)
class ConnectionDescriptor:
    """
    Where to connect and which certificate to trust.

    Attributes:
        address: Endpoint URI the client session opens
        server_certificate_hashes: Ordered fingerprints of the server certificate
    """

    address: str
    server_certificate_hashes: tuple[CertificateHash, ...] = field(
        default_factory=tuple
    )

    @classmethod
    def from_sha256(
        cls, digest: bytes, address: str = DEFAULT_ADDRESS
    ) -> ConnectionDescriptor:
        """Build a descriptor carrying a single SHA-256 fingerprint."""
        return cls(address=address, server_certificate_hashes=(CertificateHash(digest),))

    def to_dict(self) -> dict[str, Any]:
        """Consumer-facing record, keyed the way the browser API expects."""
        return {
            "address": self.address,
            "serverCertificateHashes": [
                h.to_dict() for h in self.server_certificate_hashes
            ],
        }


@dataclass(frozen=True)
class ExitOutcome:
    """How the server process ended.

    A negative code means the process was killed by that signal number.
    """

    code: int

    @property
    def graceful(self) -> bool:
        return self.code == 0

    @property
    def signal(self) -> signal.Signals | None:
        if self.code >= 0:
            return None
        try:
            return signal.Signals(-self.code)
        except ValueError:
            return None

    def describe(self) -> str:
        sig = self.signal
        if sig is not None:
            return f"killed by {sig.name}"
        return f"exited with code {self.code}"
