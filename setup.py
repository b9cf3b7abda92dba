"""Build hook writing wtboot/_build_info.py into the build directory.

pyproject.toml carries the project metadata; this file only adds the
build_py step that records which commit the package was built from, read
back by wtboot.version.get_build_info().
"""

import subprocess
import sys
from datetime import UTC, datetime
from pathlib import Path

from setuptools import setup
from setuptools.command.build_py import build_py

_TEMPLATE = '''\
"""Build information - generated at build time, do not edit."""

COMMIT_HASH = "{commit}"
COMMIT_SHORT = "{short}"
COMMIT_MESSAGE = "{message}"
BUILD_TIME = "{built}"
MODIFIED = {modified}
'''


def _git(*args: str) -> str | None:
    try:
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            timeout=5,
            cwd=Path(__file__).parent,
        )
    except (subprocess.SubprocessError, OSError):
        return None
    return result.stdout.strip() if result.returncode == 0 else None


def write_build_info(package_dir: Path) -> bool:
    commit = _git("rev-parse", "HEAD")
    if not commit:
        print("wtboot: no git commit, skipping _build_info.py", file=sys.stderr)
        return False

    message = (_git("log", "-1", "--format=%s") or "").replace("\\", "\\\\")
    content = _TEMPLATE.format(
        commit=commit,
        short=commit[:7],
        message=message.replace('"', '\\"'),
        built=datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ"),
        modified=bool(_git("status", "--porcelain")),
    )
    (package_dir / "_build_info.py").write_text(content)
    print(f"wtboot: wrote _build_info.py ({commit[:7]})", file=sys.stderr)
    return True


class BuildPyWithBuildInfo(build_py):
    """build_py that leaves the source tree untouched and stamps the build copy."""

    def run(self):
        super().run()
        if self.build_lib:
            package_dir = Path(self.build_lib) / "wtboot"
            if package_dir.is_dir():
                write_build_info(package_dir)


setup(cmdclass={"build_py": BuildPyWithBuildInfo})
