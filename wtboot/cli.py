#!/usr/bin/env python3
"""
wtboot - start a demo transport server and print a client for it.

Usage:
    wtboot                              # runs `go run server.go`
    wtboot --timeout 30 -- ./server --port 12345
    wtboot --config etc/wtboot.yaml --log-level debug
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence
from typing import TYPE_CHECKING

from .args import DefaultsHelpFormatter
from .config import BootstrapConfig, load_config
from .descriptor import ExitOutcome
from .exceptions import ConfigError
from .guard import LifecycleGuard
from .log import InvalidLogLevelError, LogConfig, LoggerFactory
from .output import ConsoleOutput, OutputWriter
from .snippet import render_client_snippet
from .supervisor import ProcessSupervisor
from .version import version_string

if TYPE_CHECKING:
    from .log import Logger

EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wtboot",
        description="Start a demo transport server and print a client for it",
        formatter_class=DefaultsHelpFormatter,
    )
    parser.add_argument("--config", help="YAML config file (default: etc/wtboot.yaml if present)")
    parser.add_argument("--log-level", help="log level (trace, debug, info, ...)")
    parser.add_argument(
        "--no-colors", action="store_true", help="disable colored log output"
    )
    parser.add_argument("--address", help="endpoint address handed to the client")
    parser.add_argument(
        "--timeout",
        type=float,
        help="seconds to wait for the server handshake (waits forever if unset)",
    )
    parser.add_argument("--cwd", help="server working directory")
    parser.add_argument("--version", action="version", version=version_string())
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="server command line, after `--` (default: go run server.go)",
    )
    return parser


def _cli_overrides(args: argparse.Namespace) -> dict[str, object]:
    command = list(args.command)
    if command and command[0] == "--":
        command = command[1:]
    return {
        "server.command": command or None,
        "server.address": args.address,
        "server.cwd": args.cwd,
        "handshake.timeout": args.timeout,
        "logging.level": args.log_level,
        "logging.colors": False if args.no_colors else None,
    }


async def serve(
    config: BootstrapConfig,
    lg: Logger,
    guard: LifecycleGuard,
    out: OutputWriter,
) -> ExitOutcome:
    """
    Start the server, hand its descriptor to the client renderer and wait
    for the server to finish.
    """
    async with ProcessSupervisor(
        config.server.command,
        lg,
        address=config.server.address,
        cwd=config.server.cwd,
        handshake_timeout=config.handshake.timeout,
    ) as sup:
        guard.attach(sup)
        descriptor = await sup.start_server()
        out.write(render_client_snippet(descriptor))
        return await sup.wait_exit()


def main(argv: Sequence[str] | None = None, out: OutputWriter | None = None) -> int:
    """Main entry point for the wtboot CLI."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config, overrides=_cli_overrides(args))
        log_config = LogConfig.from_config(config.logging.model_dump())
    except (ConfigError, InvalidLogLevelError) as e:
        print(f"wtboot: {e}", file=sys.stderr)
        return EXIT_USAGE

    lg = LoggerFactory.create_root(log_config)
    guard = LifecycleGuard(lg, kill_signal=config.guard.kill_signal)
    return asyncio.run(guard.run(serve(config, lg, guard, out or ConsoleOutput())))


if __name__ == "__main__":
    sys.exit(main())
