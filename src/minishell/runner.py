from __future__ import annotations

import os
import shutil
import signal
import subprocess
from pathlib import Path
from typing import Callable, Optional, Union

from .logger import setup_logger
from .models import FailureKind, Invocation, InvocationResult

_logger = setup_logger()

Runner = Callable[..., InvocationResult]

_POSIX = os.name == "posix"

# Seconds a timed-out tool gets to exit after SIGTERM, and to flush its pipes after the kill
_TERM_GRACE = 2.0
_DRAIN_TIMEOUT = 2.0


def _signal_group(proc: subprocess.Popen, sig: int) -> bool:
    try:
        os.killpg(proc.pid, sig)
    except (ProcessLookupError, PermissionError):
        return False
    return True


def _stop(proc: subprocess.Popen, own_group: bool) -> None:
    """
    Stop a running tool and everything it started.

    A tool in its own process group is stopped as a group, which also takes
    down helpers such as dpkg that inherited its pipes. Otherwise the direct
    child gets SIGTERM first, which `sudo` relays to the elevated command.
    """
    if own_group:
        _signal_group(proc, signal.SIGTERM)
    else:
        proc.terminate()
    try:
        proc.wait(timeout=_TERM_GRACE)
    except subprocess.TimeoutExpired:
        pass
    if own_group:
        _signal_group(proc, signal.SIGKILL)
    if proc.poll() is None:
        proc.kill()


def _drain(proc: subprocess.Popen):
    try:
        return proc.communicate(timeout=_DRAIN_TIMEOUT)
    except subprocess.TimeoutExpired:
        # Something outside our reach still holds the pipes open
        _logger.debug("Output of pid %s was still open after the kill, discarding it", proc.pid)
        return "", ""


def run_invocation(
    invocation: Invocation,
    timeout: Optional[float] = None,
    cwd: Optional[Union[str, Path]] = None,
    which=shutil.which,
) -> InvocationResult:
    """
    Run one backend invocation to completion and capture its output.

    The exit code is authoritative: 0 is success, anything else is a
    failure whatever the tool printed. stdin is inherited so that `sudo`
    can still prompt for a password. Elevated runs stay in the terminal's
    session for the same reason; everything else gets a process group of
    its own so a timeout can stop the whole tree.
    """
    backend = invocation.backend

    # The binary may have gone away since detection
    resolved = which(invocation.executable)
    if not resolved:
        return InvocationResult(
            backend=backend,
            exit_code=None,
            failure=FailureKind.BACKEND_NOT_FOUND,
            detail=f"'{invocation.executable}' is no longer on the search path",
        )

    argv = [resolved, *invocation.args]
    if invocation.elevated:
        argv.insert(0, "sudo")
    own_group = _POSIX and not invocation.elevated

    _logger.debug("Spawning %s (cwd=%s, timeout=%s)", argv, cwd or ".", timeout)
    try:
        proc = subprocess.Popen(
            argv,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
            start_new_session=own_group,
        )
    except FileNotFoundError as e:
        return InvocationResult(
            backend=backend, exit_code=None, failure=FailureKind.BACKEND_NOT_FOUND, detail=str(e)
        )
    except OSError as e:
        return InvocationResult(backend=backend, exit_code=None, failure=FailureKind.SPAWN_FAILED, detail=str(e))

    # Popen's context manager closes the pipes and reaps the child on every path
    with proc:
        try:
            stdout, stderr = proc.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            _stop(proc, own_group)
            stdout, stderr = _drain(proc)
            _logger.warning("%s did not finish within %ss and was killed", backend.label, timeout)
            return InvocationResult(
                backend=backend,
                exit_code=proc.returncode,
                stdout=stdout or "",
                stderr=stderr or "",
                failure=FailureKind.TIMEOUT,
                detail=f"no result after {timeout:g}s",
            )
        except BaseException:
            # A session of its own does not see the terminal's Ctrl-C
            _stop(proc, own_group)
            raise

    code = proc.returncode
    return InvocationResult(
        backend=backend,
        exit_code=code,
        stdout=stdout or "",
        stderr=stderr or "",
        failure=None if code == 0 else FailureKind.EXIT_STATUS,
    )
