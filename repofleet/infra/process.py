"""
Subprocess execution for repofleet.

All external commands (git, git-cliff) go through run_process, which adds
a per-command timeout and cooperative cancellation: a caller-supplied
threading.Event is polled while the child runs, and the child is killed
as soon as the event is set.
"""

import logging
import subprocess
import threading
import time
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.1


class OperationCancelled(Exception):
    """Raised when a running command was killed because of a cancel signal."""
    def __init__(self, cmd: List[str]):
        super().__init__(f"Cancelled: {' '.join(cmd)}")
        self.cmd = cmd


def _kill(proc: subprocess.Popen) -> None:
    proc.kill()
    try:
        proc.communicate(timeout=5)
    except subprocess.TimeoutExpired:
        logger.warning(f"Process {proc.pid} did not exit after kill")


def run_process(
    cmd: List[str],
    cwd: Optional[str] = None,
    timeout: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
    capture_stderr: bool = False,
) -> Tuple[Optional[str], int]:
    """
    Run a command without a shell.

    Args:
        cmd: Command and arguments
        cwd: Working directory
        timeout: Seconds before the command is killed (None = no limit)
        cancel: Event that aborts the command when set
        capture_stderr: Append stderr to the returned output

    Returns:
        Tuple of (output, returncode). returncode is -1 when the command
        could not be started or timed out.

    Raises:
        OperationCancelled: if ``cancel`` was set while the command ran
    """
    if cancel is not None and cancel.is_set():
        raise OperationCancelled(cmd)

    logger.debug(f"Running command in '{cwd or '.'}': {' '.join(cmd)}")
    try:
        proc = subprocess.Popen(
            cmd,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except OSError as e:
        logger.error(f"Command failed to start: {' '.join(cmd)} - {e}")
        return None, -1

    started = time.monotonic()
    while True:
        try:
            stdout, stderr = proc.communicate(timeout=POLL_INTERVAL)
            break
        except subprocess.TimeoutExpired:
            if cancel is not None and cancel.is_set():
                logger.warning(f"Cancelling command: {' '.join(cmd)}")
                _kill(proc)
                raise OperationCancelled(cmd)
            if timeout and time.monotonic() - started > timeout:
                logger.warning(f"Command timed out after {timeout}s: {' '.join(cmd)}")
                _kill(proc)
                return None, -1

    output = stdout or ""
    if capture_stderr and stderr:
        output += stderr
    if proc.returncode != 0 and stderr:
        logger.debug(stderr.strip())

    return output.strip() if output else None, proc.returncode
