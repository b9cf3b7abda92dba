"""
Lifecycle guard for the supervised server.

Installs interrupt and fault handlers for the parent process and makes sure
the server's whole process group is killed before the parent goes away, on
every exit path: normal completion, operator interrupt, or an uncaught fault.

Usage:
    guard = LifecycleGuard(lg)

    async def main() -> None:
        async with ProcessSupervisor(command, lg) as sup:
            guard.attach(sup)
            descriptor = await sup.start_server()
            ...

    sys.exit(asyncio.run(guard.run(main())))
"""

from __future__ import annotations

import asyncio
import atexit
import os
import signal
import sys
from collections.abc import Coroutine, Sequence
from enum import Enum
from types import TracebackType
from typing import TYPE_CHECKING, Any, Protocol

from .log import LoggerFactory

if TYPE_CHECKING:
    from .log import Logger


class SupervisedChild(Protocol):
    """What the guard needs from the supervised process."""

    @property
    def pgid(self) -> int | None: ...

    def detach(self) -> None: ...


class ShutdownReason(Enum):
    """Why the run ended, and the parent exit code it maps to."""

    COMPLETED = "completed"
    INTERRUPTED = "interrupted"
    FAULT = "fault"

    @property
    def exit_code(self) -> int:
        return 1 if self is ShutdownReason.FAULT else 0


class LifecycleGuard:
    """
    Guarantees the server process group never outlives the parent.

    Registers:
    - Loop signal handlers for interrupt signals (SIGINT, SIGTERM)
    - The loop exception handler, for faults raised in tasks and callbacks
    - sys.excepthook, for faults raised outside the loop
    - An atexit hook, for plain interpreter exit

    All of them funnel into shutdown(), which kills the group first and only
    then lets the parent terminate.
    """

    def __init__(
        self,
        lg: Logger,
        kill_signal: signal.Signals = signal.SIGKILL,
        interrupt_signals: Sequence[signal.Signals] = (signal.SIGINT, signal.SIGTERM),
    ) -> None:
        """
        Initialize guard.

        Args:
            lg: Parent logger
            kill_signal: Signal sent to the server's process group
            interrupt_signals: Signals treated as a graceful shutdown request
        """
        self._lg = LoggerFactory.derive(lg, "guard")
        self._kill_signal = kill_signal
        self._interrupt_signals = tuple(interrupt_signals)

        self._child: SupervisedChild | None = None
        self._reason: ShutdownReason | None = None
        self._error: BaseException | None = None
        self._group_killed = False

        self._main_task: asyncio.Task[Any] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._original_exception_handler: Any = None
        self._original_excepthook: Any = None
        self._installed = False

    @property
    def reason(self) -> ShutdownReason | None:
        return self._reason

    @property
    def error(self) -> BaseException | None:
        return self._error

    @property
    def group_killed(self) -> bool:
        return self._group_killed

    def is_shutting_down(self) -> bool:
        return self._reason is not None

    def attach(self, child: SupervisedChild) -> None:
        """Take ownership of the child whose group is killed on shutdown."""
        self._child = child
        self._lg.trace("child attached")

    # -- installation -------------------------------------------------------

    def install(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Register all handlers. Installed once per run."""
        if self._installed:
            return

        loop = loop or asyncio.get_running_loop()
        self._loop = loop

        for sig in self._interrupt_signals:
            loop.add_signal_handler(sig, self._handle_interrupt, sig)

        self._original_exception_handler = loop.get_exception_handler()
        loop.set_exception_handler(self._handle_loop_exception)

        self._original_excepthook = sys.excepthook
        sys.excepthook = self._handle_uncaught

        atexit.register(self.kill_group)
        self._installed = True
        self._lg.debug(
            "guard installed",
            extra={"signals": [s.name for s in self._interrupt_signals]},
        )

    def uninstall(self) -> None:
        """Restore the handlers that were in place before install()."""
        if not self._installed:
            return

        loop = self._loop
        if loop is not None and not loop.is_closed():
            for sig in self._interrupt_signals:
                loop.remove_signal_handler(sig)
            loop.set_exception_handler(self._original_exception_handler)

        if sys.excepthook == self._handle_uncaught:
            sys.excepthook = self._original_excepthook

        atexit.unregister(self.kill_group)
        self._installed = False

    # -- handlers -----------------------------------------------------------

    def _handle_interrupt(self, sig: signal.Signals) -> None:
        self._lg.info("interrupt received", extra={"signal": sig.name})
        self.shutdown(ShutdownReason.INTERRUPTED)

    def _handle_loop_exception(
        self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]
    ) -> None:
        error = context.get("exception")
        if error is None:
            error = RuntimeError(context.get("message", "unhandled event loop error"))
        self.shutdown(ShutdownReason.FAULT, error)

    def _handle_uncaught(
        self,
        exc_type: type[BaseException],
        exc: BaseException,
        tb: TracebackType | None,
    ) -> None:
        self.shutdown(ShutdownReason.FAULT, exc)
        if self._original_excepthook is not None:
            self._original_excepthook(exc_type, exc, tb)

    # -- termination --------------------------------------------------------

    def kill_group(self) -> bool:
        """
        Send the kill signal to the server's whole process group.

        Returns:
            True if the group was signaled, False if there was nothing to kill
        """
        if self._group_killed:
            return False
        child = self._child
        if child is None or child.pgid is None:
            return False

        child.detach()
        self._group_killed = True
        try:
            os.killpg(child.pgid, self._kill_signal)
        except ProcessLookupError:
            self._lg.debug("server group already gone", extra={"pgid": child.pgid})
            return False

        self._lg.debug(
            "server group killed",
            extra={"pgid": child.pgid, "signal": self._kill_signal.name},
        )
        return True

    def shutdown(
        self, reason: ShutdownReason, error: BaseException | None = None
    ) -> int:
        """
        Terminate the server group and end the run.

        The first call decides the reason; later calls only return its exit
        code. The group is always killed before the main task is cancelled.

        Args:
            reason: Why the run ends
            error: The fault, for ShutdownReason.FAULT

        Returns:
            Exit code for the parent process
        """
        if self._reason is not None:
            return self._reason.exit_code

        self._reason = reason
        self._error = error
        self.kill_group()

        if reason is ShutdownReason.FAULT:
            self._lg.error("shutting down on fault", extra={"exception": error})
        else:
            self._lg.info("shutting down", extra={"reason": reason.value})

        task = self._main_task
        if task is not None and not task.done():
            task.cancel()
        return reason.exit_code

    async def run(self, main: Coroutine[Any, Any, Any]) -> int:
        """
        Run the main coroutine under the guard.

        Returns:
            Exit code: 0 on completion or interrupt, 1 on fault
        """
        loop = asyncio.get_running_loop()
        self.install(loop)
        self._main_task = loop.create_task(main)
        try:
            await self._main_task
        except asyncio.CancelledError:
            if self._reason is None:
                # The guard itself was cancelled from outside
                self.shutdown(ShutdownReason.INTERRUPTED)
                raise
        except Exception as e:
            self.shutdown(ShutdownReason.FAULT, e)
        else:
            self.shutdown(ShutdownReason.COMPLETED)
        finally:
            self.uninstall()

        assert self._reason is not None
        return self._reason.exit_code
