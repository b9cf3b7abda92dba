"""
Supervision of the server process.

ProcessSupervisor starts the server in a process group of its own, pumps
both of its output streams into the readiness handshake and reports how the
process ended. It never signals the process group itself; that belongs to
LifecycleGuard.

Example:
    async with ProcessSupervisor(["go", "run", "server.go"], lg) as sup:
        guard.attach(sup)
        descriptor = await sup.start_server()
        ...
        await sup.wait_exit()
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from .descriptor import DEFAULT_ADDRESS, ConnectionDescriptor, ExitOutcome
from .exceptions import (
    AbnormalExit,
    HandshakeTimeout,
    StartupFailure,
    SupervisorError,
)
from .handshake import Handshake, Readiness, ReadinessState, Stream
from .log import LogConfig, LoggerFactory

if TYPE_CHECKING:
    from .log import Logger

DEFAULT_COMMAND = ("go", "run", "server.go")
DEFAULT_CHUNK_SIZE = 64 * 1024
EXIT_DRAIN_TIMEOUT = 1.0

# Marks the end of one output stream on the event queue
_EOF = b""


class _ServerProtocol(asyncio.subprocess.SubprocessStreamProtocol):
    """
    Stream protocol that also reports the moment the process exits.

    Process.wait() only returns once every pipe is closed as well, which
    never happens while a descendant still holds them.
    """

    def __init__(
        self,
        exited: asyncio.Future[int],
        limit: int,
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        super().__init__(limit=limit, loop=loop)
        self._exited = exited

    def process_exited(self) -> None:
        super().process_exited()
        code = self._transport.get_returncode()
        if not self._exited.done() and code is not None:
            self._exited.set_result(code)


class ProcessSupervisor:
    """
    Owns the server process and its readiness handshake.

    Features:
    - Single spawn attempt, in a new session so the process leads its own group
    - Raw chunk pumping from stdout and stderr, dispatched in arrival order
    - First-output readiness race (see wtboot.handshake)
    - Exactly one ExitOutcome per process; nonzero exits become AbnormalExit
    - Optional handshake timeout
    """

    def __init__(
        self,
        command: Sequence[str] = DEFAULT_COMMAND,
        lg: Logger | None = None,
        address: str = DEFAULT_ADDRESS,
        cwd: str | os.PathLike[str] | None = None,
        env: Mapping[str, str] | None = None,
        handshake_timeout: float | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        """
        Initialize supervisor.

        Args:
            command: Server command line
            lg: Parent logger; supervisor and server output loggers derive from it
            address: Endpoint address placed in the connection descriptor
            cwd: Working directory for the server
            env: Extra environment variables for the server
            handshake_timeout: Seconds to wait for the first output, None to
                wait indefinitely
            chunk_size: Maximum bytes per read from each stream
        """
        if not command:
            raise SupervisorError("server command is empty")

        self._command = list(command)
        self._address = address
        self._cwd = cwd
        self._env = dict(env) if env else None
        self._handshake_timeout = handshake_timeout
        self._chunk_size = chunk_size

        if lg is None:
            lg = LoggerFactory.create_root(LogConfig.from_params("info"))
        self._lg = LoggerFactory.derive(lg, "supervisor")
        self._out_lg = LoggerFactory.derive(lg, ["server", "stdout"])
        self._err_lg = LoggerFactory.derive(lg, ["server", "stderr"])

        self._process: asyncio.subprocess.Process | None = None
        self._readiness: Readiness | None = None
        self._handshake: Handshake | None = None
        self._events: asyncio.Queue[tuple[Stream, bytes]] | None = None
        self._exited: asyncio.Future[int] | None = None
        self._exit: asyncio.Future[ExitOutcome] | None = None
        self._tasks: list[asyncio.Task[Any]] = []
        self._dispatcher: asyncio.Task[None] | None = None
        self._open_streams = 0
        self._detached = False

    async def __aenter__(self) -> ProcessSupervisor:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    @property
    def command(self) -> list[str]:
        return list(self._command)

    @property
    def address(self) -> str:
        return self._address

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process else None

    @property
    def pgid(self) -> int | None:
        """Process group id; the server leads its own group."""
        return self.pid

    @property
    def returncode(self) -> int | None:
        return self._process.returncode if self._process else None

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    @property
    def readiness(self) -> ReadinessState:
        if self._readiness is None:
            return ReadinessState.PENDING
        return self._readiness.state

    @property
    def detached(self) -> bool:
        return self._detached

    def detach(self) -> None:
        """
        Mark the process as being terminated on purpose.

        Called by LifecycleGuard before it signals the group; exits observed
        afterwards are expected and not reported as faults.
        """
        self._detached = True

    async def start_server(self) -> ConnectionDescriptor:
        """
        Start the server and wait for its readiness handshake.

        Returns:
            Connection descriptor carrying the server's certificate hash

        Raises:
            SupervisorError: If the server was already started
            StartupFailure: If the server wrote to stderr first, could not be
                spawned, or exited before signalling readiness
            HandshakeTimeout: If the handshake timeout expired
            AbnormalExit: If the server exited nonzero before readiness
        """
        if self._process is not None:
            raise SupervisorError("server already started", pid=self._process.pid)

        loop = asyncio.get_running_loop()
        self._readiness = Readiness(loop)
        self._handshake = Handshake(
            self._readiness,
            self._lg,
            address=self._address,
            out_lg=self._out_lg,
            err_lg=self._err_lg,
        )
        self._events = asyncio.Queue()
        self._exited = loop.create_future()
        self._exit = loop.create_future()

        self._lg.info("starting server", extra={"command": " ".join(self._command)})
        self._process = await self._spawn(loop)
        self._lg.debug("server spawned", extra={"pid": self._process.pid})

        assert self._process.stdout is not None and self._process.stderr is not None
        self._open_streams = 2
        self._dispatcher = loop.create_task(self._dispatch())
        self._tasks = [
            loop.create_task(self._pump(Stream.STDOUT, self._process.stdout)),
            loop.create_task(self._pump(Stream.STDERR, self._process.stderr)),
            self._dispatcher,
            loop.create_task(self._watch(loop)),
        ]

        if self._handshake_timeout is None:
            return await self._readiness.wait()

        try:
            return await asyncio.wait_for(
                self._readiness.wait(), timeout=self._handshake_timeout
            )
        except asyncio.TimeoutError:
            self._readiness.reject(
                HandshakeTimeout(
                    "server did not signal readiness",
                    timeout=self._handshake_timeout,
                )
            )
            # Raises the timeout, unless readiness settled as the timer fired
            return await self._readiness.wait()

    async def _spawn(
        self, loop: asyncio.AbstractEventLoop
    ) -> asyncio.subprocess.Process:
        assert self._exited is not None
        exited = self._exited
        env = None
        if self._env is not None:
            env = {**os.environ, **self._env}
        try:
            transport, protocol = await loop.subprocess_exec(
                lambda: _ServerProtocol(exited, limit=self._chunk_size, loop=loop),
                *self._command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self._cwd,
                env=env,
                start_new_session=True,
            )
        except OSError as e:
            raise StartupFailure(
                f"failed to start server: {e.strerror or e}", command=self._command[0]
            ) from e
        return asyncio.subprocess.Process(transport, protocol, loop)

    async def _pump(self, stream: Stream, reader: asyncio.StreamReader) -> None:
        """Forward raw chunks from one stream; no line buffering."""
        assert self._events is not None
        while True:
            chunk = await reader.read(self._chunk_size)
            await self._events.put((stream, chunk))
            if chunk == _EOF:
                return

    async def _dispatch(self) -> None:
        """Consume output events in arrival order."""
        assert self._events is not None and self._handshake is not None
        while self._open_streams > 0:
            stream, chunk = await self._events.get()
            if chunk == _EOF:
                self._open_streams -= 1
                self._lg.trace("stream closed", extra={"stream": stream.value})
                continue
            self._handshake.feed(stream, chunk)

    async def _watch(self, loop: asyncio.AbstractEventLoop) -> None:
        """Wait for the process to end and report its outcome once."""
        assert self._exited is not None and self._exit is not None
        code = await asyncio.shield(self._exited)

        # Let buffered output reach the handshake before judging the exit.
        # Bounded: pipes stay open while a descendant of the server holds them.
        if self._dispatcher is not None and not self._dispatcher.done():
            await asyncio.wait({self._dispatcher}, timeout=EXIT_DRAIN_TIMEOUT)

        outcome = ExitOutcome(code)
        self._exit.set_result(outcome)
        self._report(outcome, loop)

    def _report(self, outcome: ExitOutcome, loop: asyncio.AbstractEventLoop) -> None:
        assert self._readiness is not None
        extra = {"pid": self.pid, "code": outcome.code}

        if self._detached:
            self._lg.debug("server stopped: " + outcome.describe(), extra=extra)
            self._readiness.cancel()
            return

        if outcome.graceful:
            self._lg.info("server exited with code 0", extra=extra)
            self._readiness.reject(
                StartupFailure("server exited before signalling readiness", code=0)
            )
            return

        error = AbnormalExit(outcome.code, pid=self.pid)
        if self._readiness.reject(error):
            return
        if self._readiness.state is ReadinessState.REJECTED:
            # Startup already failed and was raised from start_server()
            self._lg.debug("server " + outcome.describe(), extra=extra)
            return

        # Ready and now crashed: hand the fault to whatever handles uncaught
        # errors on this loop (LifecycleGuard when installed)
        loop.call_exception_handler(
            {
                "message": "server " + outcome.describe(),
                "exception": error,
            }
        )

    async def wait_exit(self) -> ExitOutcome:
        """
        Wait for the server to exit.

        Raises:
            SupervisorError: If the server was never started
            AbnormalExit: If the server exited with a nonzero code
        """
        if self._exit is None:
            raise SupervisorError("server not started")
        outcome = await asyncio.shield(self._exit)
        if not outcome.graceful and not self._detached:
            raise AbnormalExit(outcome.code, pid=self.pid)
        return outcome

    async def close(self) -> None:
        """Stop pumping output. Does not signal the process group."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        if self._readiness is not None:
            self._readiness.cancel()
