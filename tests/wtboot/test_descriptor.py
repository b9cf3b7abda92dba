"""
Tests for wtboot/descriptor.py.
"""

import signal
from dataclasses import FrozenInstanceError

import pytest

from wtboot.descriptor import (
    DEFAULT_ADDRESS,
    SHA256,
    CertificateHash,
    ConnectionDescriptor,
    ExitOutcome,
)


@pytest.mark.unit
class TestConnectionDescriptor:
    """Test descriptor construction and export."""

    def test_default_address(self):
        assert DEFAULT_ADDRESS == "https://127.0.0.1:12345/say-hello"

    def test_from_sha256(self):
        descriptor = ConnectionDescriptor.from_sha256(b"hello")

        assert descriptor.address == DEFAULT_ADDRESS
        assert len(descriptor.server_certificate_hashes) == 1
        assert descriptor.server_certificate_hashes[0].algorithm == SHA256
        assert descriptor.server_certificate_hashes[0].value == b"hello"

    def test_to_dict(self):
        descriptor = ConnectionDescriptor.from_sha256(b"\x00\xff", address="https://a/b")

        assert descriptor.to_dict() == {
            "address": "https://a/b",
            "serverCertificateHashes": [{"algorithm": "sha-256", "value": b"\x00\xff"}],
        }

    def test_hashes_keep_order(self):
        hashes = (CertificateHash(b"a"), CertificateHash(b"b"))
        descriptor = ConnectionDescriptor("https://a/b", hashes)

        assert [h["value"] for h in descriptor.to_dict()["serverCertificateHashes"]] == [
            b"a",
            b"b",
        ]

    def test_immutable(self):
        descriptor = ConnectionDescriptor.from_sha256(b"hello")
        with pytest.raises(FrozenInstanceError):
            descriptor.address = "https://elsewhere/"  # type: ignore[misc]


@pytest.mark.unit
class TestExitOutcome:
    """Test exit outcome interpretation."""

    def test_zero_is_graceful(self):
        outcome = ExitOutcome(0)
        assert outcome.graceful
        assert outcome.signal is None
        assert outcome.describe() == "exited with code 0"

    def test_nonzero_is_not_graceful(self):
        outcome = ExitOutcome(2)
        assert not outcome.graceful
        assert outcome.describe() == "exited with code 2"

    def test_negative_code_is_signal(self):
        outcome = ExitOutcome(-signal.SIGKILL)
        assert not outcome.graceful
        assert outcome.signal is signal.SIGKILL
        assert outcome.describe() == "killed by SIGKILL"

    def test_unknown_signal_number(self):
        outcome = ExitOutcome(-999)
        assert outcome.signal is None
        assert outcome.describe() == "exited with code -999"
