"""Lockfile discovery and parsing.

Each parser returns a mapping of package name to the set of versions the
lockfile resolves for the root project's direct dependencies. Nested installs
(``node_modules/a/node_modules/b``) are ignored since only the versions a
consumer of the root manifest would get matter here.
"""

from __future__ import annotations

import json
from collections import defaultdict
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml

LOCKFILE_NAMES = ("package-lock.json", "pnpm-lock.yaml", "yarn.lock")

_PNPM_SECTIONS = ("dependencies", "devDependencies", "optionalDependencies")


class LockfileError(RuntimeError):
    """Raised when a lockfile cannot be read or parsed."""


def find_lockfile(root: Path) -> Path | None:
    """Return the first lockfile present in ``root`` (npm, then pnpm, then yarn)."""
    for name in LOCKFILE_NAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def parse_package_lock(path: Path) -> dict[str, set[str]]:
    """Supports npm v2+ ("packages" map) with a v1 ("dependencies" tree) fallback."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise LockfileError(f"{path.name} is not a JSON object")
    resolved: dict[str, set[str]] = defaultdict(set)

    packages = data.get("packages")
    if isinstance(packages, dict):
        for key, meta in packages.items():
            if not isinstance(meta, dict) or not key.startswith("node_modules/"):
                continue
            name = key[len("node_modules/"):]
            if "/node_modules/" in name:
                continue
            version = meta.get("version")
            if version:
                resolved[name].add(str(version))
        return dict(resolved)

    deps = data.get("dependencies")
    if isinstance(deps, dict):
        for name, meta in deps.items():
            if isinstance(meta, dict) and "version" in meta:
                resolved[name].add(str(meta["version"]))

    return dict(resolved)


def _pnpm_version(entry: Any) -> str | None:
    # v6+ entries are {specifier, version}; v5 entries are bare version strings
    if isinstance(entry, dict):
        entry = entry.get("version")
    if not isinstance(entry, (str, int, float)):
        return None
    # peer suffixes look like "1.2.3(react@18.2.0)" or "1.2.3_react@18.2.0"
    return str(entry).split("(", 1)[0].split("_", 1)[0]


def parse_pnpm_lock(path: Path) -> dict[str, set[str]]:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise LockfileError(f"{path.name} is not a mapping")

    # workspaces and lockfile v9 nest the root project under importers["."]
    importers = data.get("importers")
    if isinstance(importers, dict) and isinstance(importers.get("."), dict):
        project = importers["."]
    else:
        project = data

    resolved: dict[str, set[str]] = defaultdict(set)
    for section in _PNPM_SECTIONS:
        deps = project.get(section) or {}
        if not isinstance(deps, dict):
            continue
        for name, entry in deps.items():
            version = _pnpm_version(entry)
            if version:
                resolved[str(name)].add(version)

    return dict(resolved)


def _yarn_entry_name(header: str) -> str:
    first = header.split(",", 1)[0].strip().strip('"')
    if first.startswith("@"):
        idx = first.find("@", 1)
        return first[:idx] if idx > 0 else first
    return first.split("@", 1)[0]


def parse_yarn_lock(path: Path) -> dict[str, set[str]]:
    """Handles both classic (``version "1.2.3"``) and berry (``version: 1.2.3``) entries."""
    resolved: dict[str, set[str]] = defaultdict(set)

    current_name: str | None = None
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.rstrip()
        if not line:
            current_name = None
            continue
        if line.startswith("#"):
            continue
        if not line.startswith(" ") and line.endswith(":"):
            header = line[:-1]
            current_name = None if header == "__metadata" else _yarn_entry_name(header)
            continue

        stripped = line.strip()
        if current_name and stripped.startswith(("version ", "version:")):
            value = stripped[len("version"):].lstrip(":").strip().strip('"')
            if value:
                resolved[current_name].add(value)

    return dict(resolved)


PARSERS: dict[str, Callable[[Path], dict[str, set[str]]]] = {
    "package-lock.json": parse_package_lock,
    "pnpm-lock.yaml": parse_pnpm_lock,
    "yarn.lock": parse_yarn_lock,
}


def resolved_versions(path: Path) -> dict[str, set[str]]:
    """Parse ``path`` with the parser matching its file name."""
    parser = PARSERS.get(path.name)
    if parser is None:
        raise LockfileError(f"Unsupported lockfile: {path.name}")
    try:
        return parser(path)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise LockfileError(f"Failed to parse {path.name}: {exc}") from exc
