"""Shell execution utilities.

Provides deadline-bounded execution of read-only system queries. A
query that runs past its deadline is killed together with its whole
process group and reported as ``TIMED_OUT``; it never raises.
"""

import logging
import os
import shutil
import signal
import subprocess
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

# Exit code used by timeout(1) and tools that follow its convention
TIMEOUT_EXIT_CODE = 124


class QueryStatus(str, Enum):
    """Classification of a bounded command run.

    Attributes:
        OK: Command exited with status 0.
        FAILED: Command exited with a generic non-zero status.
        TIMED_OUT: Deadline exceeded, or the tool reported its own timeout.
        UNAVAILABLE: Executable missing or not runnable.
    """

    OK = "ok"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True, slots=True)
class BoundedResult:
    """Result of a deadline-bounded command execution.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command (None if it never finished).
        status: Classification of the run.
    """

    stdout: str
    stderr: str
    returncode: int | None
    status: QueryStatus

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.status == QueryStatus.OK

    @property
    def unknown(self) -> bool:
        """Check if the command gave no usable answer."""
        return self.status in (QueryStatus.TIMED_OUT, QueryStatus.UNAVAILABLE)


def _kill_group(proc: subprocess.Popen[str]) -> None:
    """Kill a child and every process it started."""
    try:
        if hasattr(os, "killpg"):
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except ProcessLookupError:
        pass


def run_bounded(
    args: list[str],
    deadline: float,
    *,
    cwd: str | None = None,
) -> BoundedResult:
    """Execute a read-only query with a hard deadline.

    The child runs in its own session so that on timeout the whole
    process group can be killed, not just the direct child.

    Args:
        args: Command and arguments to execute.
        deadline: Maximum time in seconds to wait for the command.
        cwd: Working directory for the command. If None, uses current directory.

    Returns:
        BoundedResult describing the outcome. Never raises for timeouts,
        missing executables or non-zero exits.
    """
    if deadline <= 0:
        msg = f"Deadline must be positive, got {deadline}"
        raise ValueError(msg)

    try:
        proc = subprocess.Popen(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
            text=True,
            cwd=cwd,
            start_new_session=True,
        )
    except OSError as e:
        logger.debug("Cannot run %s: %s", args[0] if args else "<empty>", e)
        return BoundedResult(
            stdout="", stderr=str(e), returncode=None, status=QueryStatus.UNAVAILABLE
        )

    try:
        stdout, stderr = proc.communicate(timeout=deadline)
    except subprocess.TimeoutExpired:
        _kill_group(proc)
        stdout, stderr = proc.communicate()
        logger.debug("Query %s exceeded %.2fs deadline", args[0], deadline)
        return BoundedResult(
            stdout=stdout or "",
            stderr=stderr or "",
            returncode=None,
            status=QueryStatus.TIMED_OUT,
        )

    if proc.returncode == 0:
        status = QueryStatus.OK
    elif proc.returncode == TIMEOUT_EXIT_CODE:
        status = QueryStatus.TIMED_OUT
    else:
        status = QueryStatus.FAILED

    return BoundedResult(stdout=stdout, stderr=stderr, returncode=proc.returncode, status=status)


def command_exists(name: str) -> bool:
    """Check if a command exists in the system PATH.

    Args:
        name: Command name to check.

    Returns:
        True if command exists, False otherwise.
    """
    return shutil.which(name) is not None
