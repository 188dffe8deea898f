from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import pytest

from npm_prepublish import checks
from npm_prepublish.config import CONFIG_PATH_ENV_VAR, Settings
from npm_prepublish.runner import Completed, RunOutcome

MANIFEST = {
    "name": "demo-cli",
    "version": "1.2.3",
    "bin": {"demo": "dist/index.js"},
    "main": "dist/index.js",
    "dependencies": {"left-pad": "^1.3.0"},
}

PACKAGE_LOCK = {
    "name": "demo-cli",
    "version": "1.2.3",
    "lockfileVersion": 3,
    "packages": {
        "": {"name": "demo-cli", "version": "1.2.3"},
        "node_modules/left-pad": {"version": "1.3.0"},
    },
}


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (CONFIG_PATH_ENV_VAR, "GITHUB_STEP_SUMMARY", "NO_COLOR", "MCP_FRAMEWORK"):
        monkeypatch.delenv(name, raising=False)


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def package_root(tmp_path: Path) -> Path:
    """A package that satisfies every filesystem and manifest check."""
    root = tmp_path / "pkg"
    write_json(root / "package.json", MANIFEST)
    write_json(root / "package-lock.json", PACKAGE_LOCK)
    (root / "LICENSE").write_text("MIT License\n", encoding="utf-8")
    (root / "README.md").write_text("# demo-cli\n", encoding="utf-8")
    (root / "dist").mkdir()
    (root / "dist" / "index.js").write_text("console.log('demo');\n", encoding="utf-8")
    return root


@pytest.fixture
def settings() -> Settings:
    return Settings(check_registry=False)


class FakeRunner:
    """Stands in for run_bounded; answers by which check is calling."""

    DEFAULTS: dict[str, RunOutcome] = {
        "help": Completed(exit_code=0, output="Usage: demo [options]\n"),
        "version": Completed(exit_code=0, output="1.2.3\n"),
        "start": Completed(exit_code=0, output=""),
        "mode": Completed(exit_code=0, output=""),
        "pack": Completed(exit_code=0, output="npm notice total files: 4\n"),
        "audit": Completed(exit_code=0, output="found 0 vulnerabilities\n"),
        "licenses": Completed(exit_code=0, output=""),
    }

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.responses: dict[str, RunOutcome] = dict(self.DEFAULTS)

    @staticmethod
    def key(command: str, args: Sequence[str], env: Mapping[str, str] | None) -> str:
        if command == "license-checker":
            return "licenses"
        if args and args[0] in ("pack", "audit"):
            return args[0]
        if "--help" in args:
            return "help"
        if "--version" in args:
            return "version"
        return "mode" if env else "start"

    def keys(self) -> list[str]:
        return [call["key"] for call in self.calls]

    def __call__(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        env: Mapping[str, str] | None = None,
        timeout: float = 5.0,
        cwd: Path | None = None,
    ) -> RunOutcome:
        key = self.key(command, list(args), env)
        self.calls.append(
            {
                "key": key,
                "command": command,
                "args": list(args),
                "env": dict(env) if env else None,
                "timeout": timeout,
                "cwd": cwd,
            }
        )
        return self.responses[key]


@pytest.fixture
def fake_runner(monkeypatch: pytest.MonkeyPatch) -> FakeRunner:
    runner = FakeRunner()
    monkeypatch.setattr(checks, "run_bounded", runner)
    return runner
