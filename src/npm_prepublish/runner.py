"""Bounded process execution.

Every process-based check goes through :func:`run_bounded`, which starts a
child, waits for it up to a deadline and resolves to exactly one of
``Completed``, ``TimedOut`` or ``StartFailed``. Output is spooled to a temporary
file rather than a pipe so a chatty child can never stall on a full pipe buffer,
and stdin is kept open so servers that read from it behave as they would when
launched interactively.
"""

from __future__ import annotations

import os
import shutil
import signal
import subprocess
import tempfile
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TypeAlias

DEFAULT_TIMEOUT_SECONDS = 5.0

_POSIX = os.name == "posix"


@dataclass(frozen=True, slots=True)
class Completed:
    """The process exited before the deadline."""

    exit_code: int
    output: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True, slots=True)
class TimedOut:
    """The deadline elapsed; the process was killed and its output dropped."""

    timeout: float


@dataclass(frozen=True, slots=True)
class StartFailed:
    """The executable could not be launched."""

    error: str


RunOutcome: TypeAlias = Completed | TimedOut | StartFailed


def _resolve_executable(command: str, cwd: Path | None = None) -> str | None:
    # a command with a path separator is relative to the child's cwd, not ours
    if os.sep in command or (os.altsep and os.altsep in command):
        path = Path(command)
        if not path.is_absolute() and cwd is not None:
            path = Path(cwd) / path
        command = str(path)
    # shutil.which honours PATHEXT, so npm resolves to npm.cmd on Windows
    return shutil.which(command)


def _kill_group(proc: subprocess.Popen[bytes]) -> None:
    """On POSIX, SIGKILL whatever is left of the child's process group."""
    if not _POSIX:
        return
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError):
        pass


def _terminate(proc: subprocess.Popen[bytes]) -> None:
    """Kill the child (and on POSIX its whole process group) and reap it."""
    if _POSIX:
        _kill_group(proc)
    else:
        proc.kill()
    proc.wait()


def run_bounded(
    command: str,
    args: Sequence[str] = (),
    *,
    env: Mapping[str, str] | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    cwd: Path | None = None,
) -> RunOutcome:
    """Run ``command`` with ``args`` and wait at most ``timeout`` seconds.

    Params:
        command: executable name (looked up on PATH) or path; a relative path
            is resolved against ``cwd``
        args: arguments passed after the executable
        env: overrides layered onto a copy of the current environment for this
            invocation only; ``os.environ`` itself is never touched
        timeout: deadline in seconds
        cwd: working directory for the child

    Returns: ``Completed`` with the exit code and combined stdout/stderr,
    ``TimedOut`` when the deadline elapsed, or ``StartFailed`` when the
    executable is missing or cannot be executed.
    """
    if timeout <= 0:
        raise ValueError("timeout must be positive")

    executable = _resolve_executable(command, cwd)
    if executable is None:
        return StartFailed(error=f"command not found: {command}")

    child_env = dict(os.environ)
    if env:
        child_env.update(env)

    with tempfile.TemporaryFile() as sink:
        try:
            proc = subprocess.Popen(
                [executable, *args],
                cwd=cwd,
                env=child_env,
                stdin=subprocess.PIPE,
                stdout=sink,
                stderr=subprocess.STDOUT,
                start_new_session=_POSIX,
            )
        except OSError as exc:
            return StartFailed(error=str(exc))

        try:
            exit_code = proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            _terminate(proc)
            return TimedOut(timeout=timeout)
        finally:
            if proc.stdin is not None:
                proc.stdin.close()
            # background children the process left behind go with it
            _kill_group(proc)

        sink.seek(0)
        output = sink.read().decode("utf-8", errors="replace")

    return Completed(exit_code=exit_code, output=output)
