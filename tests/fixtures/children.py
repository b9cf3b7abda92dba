"""
Server process fixtures.

Real child processes are small Python scripts run with the current
interpreter; each one plays a server behavior the supervisor must handle.
"""

import sys
import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

# base64 of b"hello"
HELLO_B64 = "aGVsbG8="

READY_THEN_EXIT = f"""
import sys
sys.stdout.write("{HELLO_B64}\\n")
sys.stdout.flush()
"""

FAIL_ON_STDERR = """
import sys, time
sys.stderr.write("port already in use")
sys.stderr.flush()
time.sleep(0.5)
sys.exit(1)
"""

READY_THEN_CRASH = f"""
import sys, time
sys.stdout.write("{HELLO_B64}\\n")
sys.stdout.flush()
time.sleep(0.3)
sys.exit(1)
"""

CRASH_SILENTLY = """
import sys
sys.exit(3)
"""

EXIT_SILENTLY = """
import sys
sys.exit(0)
"""

SILENT_FOREVER = """
import time
time.sleep(60)
"""

READY_WITH_DIAGNOSTICS = f"""
import sys, time
sys.stdout.write("{HELLO_B64}\\n")
sys.stdout.flush()
time.sleep(0.2)
sys.stderr.write("incoming session failed\\n")
sys.stderr.flush()
time.sleep(0.2)
sys.stdout.write("session closed\\n")
sys.stdout.flush()
time.sleep(0.2)
"""

READY_FOREVER = f"""
import sys, time
sys.stdout.write("{HELLO_B64}\\n")
sys.stdout.flush()
time.sleep(60)
"""

# Announces the value of WTBOOT_TEST_VALUE as its certificate hash
ECHO_ENV_AS_HASH = """
import base64, os, sys
value = os.environ["WTBOOT_TEST_VALUE"].encode()
sys.stdout.write(base64.b64encode(value).decode() + "\\n")
sys.stdout.flush()
"""

# Announces the name of its working directory as its certificate hash
ECHO_CWD_AS_HASH = """
import base64, os, sys
value = os.path.basename(os.getcwd()).encode()
sys.stdout.write(base64.b64encode(value).decode() + "\\n")
sys.stdout.flush()
"""

INVALID_HANDSHAKE = """
import sys, time
sys.stdout.write("not base64 at all!\\n")
sys.stdout.flush()
time.sleep(0.5)
"""

# Handshake line and its first log line arrive in a single write
READY_WITH_MERGED_OUTPUT = f"""
import sys
sys.stdout.write("{HELLO_B64}\\nlistening on 127.0.0.1:12345\\n")
sys.stdout.flush()
"""

# Crashes after readiness while a descendant keeps its pipes open
READY_THEN_CRASH_WITH_DESCENDANT = f"""
import subprocess, sys, time
subprocess.Popen([sys.executable, "-c", "import time; time.sleep(5)"])
sys.stdout.write("{HELLO_B64}\\n")
sys.stdout.flush()
time.sleep(0.2)
sys.exit(1)
"""


def ready_with_grandchild(pid_file: Path) -> str:
    """Server that spawns a long-lived descendant, records its pid, then serves."""
    return f"""
import subprocess, sys, time
grandchild = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(60)"])
with open({str(pid_file)!r}, "w") as f:
    f.write(str(grandchild.pid))
sys.stdout.write("{HELLO_B64}\\n")
sys.stdout.flush()
time.sleep(60)
"""


@pytest.fixture
def server_command(tmp_path: Path) -> Callable[[str], list[str]]:
    """
    Write a server script and return the command line that runs it.

    Example:
        cmd = server_command(READY_THEN_EXIT)
        sup = ProcessSupervisor(cmd, lg)
    """
    counter = {"n": 0}

    def _make(source: str) -> list[str]:
        counter["n"] += 1
        path = tmp_path / f"server_{counter['n']}.py"
        path.write_text(textwrap.dedent(source))
        return [sys.executable, "-u", str(path)]

    return _make
