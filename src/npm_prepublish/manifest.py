"""Load package.json and validate the fields a publishable package needs."""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator

MANIFEST_NAME = "package.json"
REQUIRED_FIELDS = ("name", "version", "bin", "main")
DEPENDENCY_SECTIONS = (
    "dependencies",
    "devDependencies",
    "optionalDependencies",
)

MANIFEST_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": list(REQUIRED_FIELDS),
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "version": {"type": "string", "minLength": 1},
        "bin": {"type": ["string", "object"]},
        "main": {"type": "string", "minLength": 1},
    },
}

_VALIDATOR = Draft202012Validator(MANIFEST_SCHEMA)


class ManifestError(RuntimeError):
    """Raised when package.json is missing or is not a JSON object."""


def load_manifest(root: Path) -> dict[str, Any]:
    path = root / MANIFEST_NAME
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ManifestError(f"{MANIFEST_NAME} not found in {root}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestError(f"Failed to read {MANIFEST_NAME}: {exc}") from exc

    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ManifestError(f"Invalid JSON in {MANIFEST_NAME}: {exc}") from exc

    if not isinstance(data, dict):
        raise ManifestError(f"{MANIFEST_NAME} must contain a JSON object")
    return data


def _format_errors(errors: Iterable) -> list[str]:
    messages = []
    for error in errors:
        pointer = "/".join(str(p) for p in error.path)
        messages.append(f"{pointer}: {error.message}" if pointer else error.message)
    return messages


def validate_manifest(manifest: dict[str, Any]) -> list[str]:
    """Return human-readable problems with ``manifest``; empty when valid."""
    errors = sorted(
        _VALIDATOR.iter_errors(manifest),
        key=lambda e: ("/".join(str(p) for p in e.path), e.message),
    )
    return _format_errors(errors)


def missing_fields(manifest: dict[str, Any]) -> list[str]:
    return [name for name in REQUIRED_FIELDS if name not in manifest]


def declared_dependencies(manifest: dict[str, Any]) -> list[tuple[str, str]]:
    """Return list of (package, range) across the installable dependency sections."""
    pairs: list[tuple[str, str]] = []
    for section in DEPENDENCY_SECTIONS:
        deps = manifest.get(section) or {}
        if not isinstance(deps, dict):
            continue
        for name, version in deps.items():
            pairs.append((name, str(version)))
    return pairs
