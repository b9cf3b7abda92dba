"""
Readiness handshake between the supervisor and the server process.

The server reports readiness by writing a base64-encoded certificate hash as
its very first output on stdout. Anything written to stderr before that is a
startup failure whose text becomes the error message. Whichever stream speaks
first decides the outcome; everything afterwards is plain log output.

The handshake value is the first line of the first stdout chunk. Output the
server wrote right after it may arrive in the same read and is logged like
any later stdout. A value split across several reads is not reassembled.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
from enum import Enum
from typing import TYPE_CHECKING

from .descriptor import DEFAULT_ADDRESS, ConnectionDescriptor
from .exceptions import HandshakeError, StartupFailure

if TYPE_CHECKING:
    from .log import Logger


class ReadinessState(Enum):
    """Single-assignment readiness of the server."""

    PENDING = "pending"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class Stream(Enum):
    """Output stream of the server process."""

    STDOUT = "stdout"
    STDERR = "stderr"


def decode_text(chunk: bytes) -> str:
    return chunk.decode("utf-8", errors="replace")


def split_handshake(chunk: bytes) -> tuple[bytes, bytes]:
    """Split the first stdout chunk into the handshake line and what follows it."""
    value, sep, rest = chunk.lstrip().partition(b"\n")
    return value + sep, rest


def decode_certificate_hash(chunk: bytes) -> bytes:
    """
    Decode the handshake chunk into raw certificate hash bytes.

    Surrounding whitespace (the newline the server prints after the value) is
    ignored.

    Raises:
        HandshakeError: If the chunk is not valid base64
    """
    text = chunk.strip()
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise HandshakeError(
            f"invalid handshake value: {decode_text(chunk)!r}", reason=str(e)
        ) from e


class Readiness:
    """
    Pending -> {Resolved, Rejected}, at most one transition.

    Wraps a future owned by the running loop. resolve() and reject() report
    whether they performed the transition so callers can tell a winning event
    from a late one.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop or asyncio.get_running_loop()
        self._future: asyncio.Future[ConnectionDescriptor] = self._loop.create_future()
        self._state = ReadinessState.PENDING

    @property
    def state(self) -> ReadinessState:
        return self._state

    @property
    def pending(self) -> bool:
        return self._state is ReadinessState.PENDING

    def resolve(self, descriptor: ConnectionDescriptor) -> bool:
        if not self.pending:
            return False
        self._state = ReadinessState.RESOLVED
        if not self._future.done():
            self._future.set_result(descriptor)
        return True

    def reject(self, error: BaseException) -> bool:
        if not self.pending:
            return False
        self._state = ReadinessState.REJECTED
        if not self._future.done():
            self._future.set_exception(error)
        return True

    def cancel(self) -> None:
        """Drop a pending wait, e.g. when the supervisor is closed."""
        if not self._future.done():
            self._future.cancel()

    async def wait(self) -> ConnectionDescriptor:
        # shield: a cancelled waiter must not cancel the shared outcome
        return await asyncio.shield(self._future)


class Handshake:
    """
    Routes server output according to the readiness state.

    While pending, the first stdout chunk resolves readiness with a
    descriptor and the first stderr chunk rejects it. Once settled, stdout is
    logged as information and stderr as non-fatal diagnostics.
    """

    def __init__(
        self,
        readiness: Readiness,
        lg: Logger,
        address: str = DEFAULT_ADDRESS,
        out_lg: Logger | None = None,
        err_lg: Logger | None = None,
    ) -> None:
        self._readiness = readiness
        self._lg = lg
        self._address = address
        self._out_lg = out_lg or lg
        self._err_lg = err_lg or lg

    @property
    def readiness(self) -> Readiness:
        return self._readiness

    def feed(self, stream: Stream, chunk: bytes) -> None:
        """Handle one chunk read from the given stream."""
        if not chunk:
            return
        if stream is Stream.STDOUT:
            self.on_stdout(chunk)
        else:
            self.on_stderr(chunk)

    def on_stdout(self, chunk: bytes) -> None:
        if not self._readiness.pending:
            self._out_lg.info(decode_text(chunk).rstrip("\n"))
            return

        value, rest = split_handshake(chunk)
        try:
            digest = decode_certificate_hash(value)
        except HandshakeError as e:
            self._readiness.reject(e)
            return

        descriptor = ConnectionDescriptor.from_sha256(digest, address=self._address)
        self._readiness.resolve(descriptor)
        self._lg.info(
            "server ready", extra={"address": self._address, "hash": digest}
        )
        if rest.strip():
            self.on_stdout(rest)

    def on_stderr(self, chunk: bytes) -> None:
        text = decode_text(chunk)
        if self._readiness.pending:
            self._readiness.reject(StartupFailure(text))
            self._lg.debug("server failed before readiness")
            return
        self._err_lg.warning(text.rstrip("\n"))
