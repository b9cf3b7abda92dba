"""
User-facing output of the CLI.

The client snippet is written here rather than through the logger, so it can
be copied from the terminal without timestamps and stays out of log files.
"""

import sys
from typing import Protocol, TextIO


class OutputWriter(Protocol):
    def write(self, text: str = "") -> None: ...


class ConsoleOutput:
    """
    Writes lines to stdout, or to the given stream.

    Every write is flushed so the snippet shows up while the server keeps
    running.

    Example:
        buffer = io.StringIO()
        ConsoleOutput(buffer).write("ready")
        assert buffer.getvalue() == "ready\\n"
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout

    def write(self, text: str = "") -> None:
        print(text, file=self._stream, flush=True)
