"""
Version and build information.

setup.py writes ``wtboot/_build_info.py`` into the built package; a source
checkout has no such module and reports no commit.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, version

DIST_NAME = "wtboot"


@dataclass(frozen=True)
class BuildInfo:
    """Commit the installed package was built from."""

    commit: str
    commit_short: str
    message: str
    build_time: str
    modified: bool = False


def get_version() -> str:
    try:
        return version(DIST_NAME)
    except PackageNotFoundError:
        return "0.1.0-dev"


def get_build_info() -> BuildInfo | None:
    """Read the generated build info module, None when absent."""
    try:
        mod = importlib.import_module("wtboot._build_info")
    except ModuleNotFoundError:
        return None
    return BuildInfo(
        commit=getattr(mod, "COMMIT_HASH", ""),
        commit_short=getattr(mod, "COMMIT_SHORT", ""),
        message=getattr(mod, "COMMIT_MESSAGE", ""),
        build_time=getattr(mod, "BUILD_TIME", ""),
        modified=bool(getattr(mod, "MODIFIED", False)),
    )


def version_string() -> str:
    """e.g. ``wtboot 0.1.0 (a1b2c3d, modified)``"""
    text = f"{DIST_NAME} {get_version()}"
    info = get_build_info()
    if info is None or not info.commit_short:
        return text
    suffix = ", modified" if info.modified else ""
    return f"{text} ({info.commit_short}{suffix})"
