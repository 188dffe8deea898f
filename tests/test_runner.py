from __future__ import annotations

import os
import sys
import time
from pathlib import Path

import pytest

from npm_prepublish.runner import Completed, StartFailed, TimedOut, run_bounded

PY = sys.executable


def test_completed_captures_exit_code_and_combined_output() -> None:
    script = "import sys; print('hello'); sys.stdout.flush(); sys.stderr.write('oops\\n'); sys.exit(3)"
    outcome = run_bounded(PY, ["-c", script])

    assert isinstance(outcome, Completed)
    assert outcome.exit_code == 3
    assert not outcome.ok
    assert "hello" in outcome.output
    assert "oops" in outcome.output


def test_timeout_does_not_block_past_deadline() -> None:
    started = time.monotonic()
    outcome = run_bounded(PY, ["-c", "import time; time.sleep(30)"], timeout=0.5)
    elapsed = time.monotonic() - started

    assert outcome == TimedOut(timeout=0.5)
    assert elapsed < 5


def test_process_waiting_on_stdin_times_out() -> None:
    outcome = run_bounded(PY, ["-c", "import sys; sys.stdin.read()"], timeout=0.5)

    assert isinstance(outcome, TimedOut)


def test_missing_executable_is_start_failure() -> None:
    outcome = run_bounded("definitely-not-a-real-binary-xyz", ["--help"])

    assert isinstance(outcome, StartFailed)
    assert "definitely-not-a-real-binary-xyz" in outcome.error


@pytest.mark.skipif(os.name != "posix", reason="execute permission bits are POSIX-only")
def test_non_executable_file_is_start_failure(tmp_path: Path) -> None:
    target = tmp_path / "tool"
    target.write_text("#!/bin/sh\necho hi\n", encoding="utf-8")
    target.chmod(0o644)

    outcome = run_bounded(str(target))

    assert isinstance(outcome, StartFailed)


def test_env_overrides_are_scoped_to_the_invocation(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NPM_PREPUBLISH_TEST_MODE", raising=False)
    script = "import os; print(os.environ.get('NPM_PREPUBLISH_TEST_MODE', 'unset'))"

    scoped = run_bounded(PY, ["-c", script], env={"NPM_PREPUBLISH_TEST_MODE": "fastmcp"})
    plain = run_bounded(PY, ["-c", script])

    assert isinstance(scoped, Completed) and scoped.output.strip() == "fastmcp"
    assert isinstance(plain, Completed) and plain.output.strip() == "unset"
    assert "NPM_PREPUBLISH_TEST_MODE" not in os.environ


def test_runs_in_requested_directory(tmp_path: Path) -> None:
    outcome = run_bounded(PY, ["-c", "import os; print(os.getcwd())"], cwd=tmp_path)

    assert isinstance(outcome, Completed)
    assert Path(outcome.output.strip()).resolve() == tmp_path.resolve()


def test_large_output_does_not_stall() -> None:
    outcome = run_bounded(PY, ["-c", "print('x' * 500000)"], timeout=10)

    assert isinstance(outcome, Completed)
    assert outcome.ok
    assert len(outcome.output.strip()) == 500000


def test_timeout_must_be_positive() -> None:
    with pytest.raises(ValueError):
        run_bounded(PY, ["-c", "pass"], timeout=0)


def _alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    # a killed orphan may linger as a zombie until init reaps it
    stat = Path(f"/proc/{pid}/stat")
    try:
        return stat.read_text().rsplit(")", 1)[1].split()[0] != "Z"
    except (OSError, IndexError):
        return True


def _wait_until_gone(pid: int, deadline: float = 5.0) -> bool:
    stop = time.monotonic() + deadline
    while time.monotonic() < stop:
        if not _alive(pid):
            return True
        time.sleep(0.05)
    return False


@pytest.mark.skipif(os.name != "posix", reason="process groups are POSIX-only")
@pytest.mark.parametrize(
    ("script", "timeout", "expected"),
    [
        ("sleep 30 & echo $! > bg.pid; exit 0", 5.0, Completed),
        ("sleep 30 & echo $! > bg.pid; sleep 30", 0.5, TimedOut),
    ],
    ids=["normal-exit", "timeout"],
)
def test_background_children_are_killed(
    tmp_path: Path, script: str, timeout: float, expected: type
) -> None:
    outcome = run_bounded("sh", ["-c", script], timeout=timeout, cwd=tmp_path)

    assert isinstance(outcome, expected)
    pid = int((tmp_path / "bg.pid").read_text().strip())
    assert _wait_until_gone(pid)


@pytest.mark.skipif(os.name != "posix", reason="execute permission bits are POSIX-only")
def test_relative_command_resolves_against_cwd(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    tool = tmp_path / "pkg" / "node_modules" / ".bin" / "license-checker"
    tool.parent.mkdir(parents=True)
    tool.write_text("#!/bin/sh\necho checked\n", encoding="utf-8")
    tool.chmod(0o755)
    elsewhere = tmp_path / "elsewhere"
    elsewhere.mkdir()
    monkeypatch.chdir(elsewhere)

    outcome = run_bounded("node_modules/.bin/license-checker", cwd=tmp_path / "pkg")

    assert isinstance(outcome, Completed)
    assert outcome.output.strip() == "checked"
