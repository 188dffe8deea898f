"""Configuration loader for pre-publish verification.

Reads settings from a JSON file (default: ``prepublish.json`` in the package
root). Every key is optional and falls back to the defaults below, which match
a typical Node CLI/server package built into ``dist/``. This module performs its
own lightweight validation rather than invoking a full JSON Schema validator.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


DEFAULT_CONFIG_NAME = "prepublish.json"
CONFIG_PATH_ENV_VAR = "NPM_PREPUBLISH_CONFIG"

DEFAULT_ALLOWED_LICENSES = (
    "MIT",
    "ISC",
    "Apache-2.0",
    "BSD-2-Clause",
    "BSD-3-Clause",
    "0BSD",
)


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be loaded or is invalid."""


@dataclass(slots=True, frozen=True)
class ModeVariable:
    """Environment variable that switches the entry point's operating mode."""

    name: str = "MCP_FRAMEWORK"
    value: str = "fastmcp"

    @classmethod
    def from_dict(cls, data: Any) -> ModeVariable:
        if not isinstance(data, dict):
            raise ConfigError("'modeVariable' must be an object with 'name' and 'value'")
        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise ConfigError("'modeVariable.name' must be a non-empty string")
        value = data.get("value")
        if not isinstance(value, str):
            raise ConfigError("'modeVariable.value' must be a string")
        return cls(name=name, value=value)


@dataclass(slots=True, frozen=True)
class Settings:
    """Top-level settings container."""

    required_files: tuple[str, ...] = ("dist/index.js",)
    entry_point: str = "dist/index.js"
    runtime: str = "node"
    package_manager: str = "npm"
    mode_variable: ModeVariable = field(default_factory=ModeVariable)
    timeout_seconds: float = 5.0
    bundle_artifact: str = "dist/index.js"
    bundle_size_limit_kb: int = 1000
    documentation_files: tuple[str, ...] = ("LICENSE", "README.md")
    audit_level: str = "moderate"
    license_checker: str = "license-checker"
    allowed_licenses: tuple[str, ...] = DEFAULT_ALLOWED_LICENSES
    registry_url: str = "https://registry.npmjs.org"
    check_registry: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        """Create Settings from a parsed config object, validating each key."""
        defaults = cls()
        unknown = sorted(set(data) - set(_KEYS))
        if unknown:
            raise ConfigError(f"Unknown configuration key(s): {', '.join(unknown)}")

        mode_variable = defaults.mode_variable
        if "modeVariable" in data:
            mode_variable = ModeVariable.from_dict(data["modeVariable"])

        return cls(
            required_files=_string_list(data, "requiredFiles", defaults.required_files),
            entry_point=_string(data, "entryPoint", defaults.entry_point),
            runtime=_string(data, "runtime", defaults.runtime),
            package_manager=_string(data, "packageManager", defaults.package_manager),
            mode_variable=mode_variable,
            timeout_seconds=_positive_number(data, "timeoutSeconds", defaults.timeout_seconds),
            bundle_artifact=_string(data, "bundleArtifact", defaults.bundle_artifact),
            bundle_size_limit_kb=int(
                _positive_number(data, "bundleSizeLimitKb", defaults.bundle_size_limit_kb)
            ),
            documentation_files=_string_list(
                data, "documentationFiles", defaults.documentation_files
            ),
            audit_level=_choice(data, "auditLevel", defaults.audit_level, _AUDIT_LEVELS),
            license_checker=_string(data, "licenseChecker", defaults.license_checker),
            allowed_licenses=_string_list(data, "allowedLicenses", defaults.allowed_licenses),
            registry_url=_string(data, "registryUrl", defaults.registry_url).rstrip("/"),
            check_registry=_boolean(data, "checkRegistry", defaults.check_registry),
        )


_KEYS = (
    "requiredFiles",
    "entryPoint",
    "runtime",
    "packageManager",
    "modeVariable",
    "timeoutSeconds",
    "bundleArtifact",
    "bundleSizeLimitKb",
    "documentationFiles",
    "auditLevel",
    "licenseChecker",
    "allowedLicenses",
    "registryUrl",
    "checkRegistry",
)

_AUDIT_LEVELS = ("info", "low", "moderate", "high", "critical")


def _string(data: dict[str, Any], key: str, default: str) -> str:
    value = data.get(key, default)
    if not isinstance(value, str) or not value:
        raise ConfigError(f"'{key}' must be a non-empty string")
    return value


def _string_list(data: dict[str, Any], key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = data.get(key, list(default))
    if not isinstance(value, list) or any(not isinstance(v, str) or not v for v in value):
        raise ConfigError(f"'{key}' must be an array of non-empty strings")
    return tuple(value)


def _positive_number(data: dict[str, Any], key: str, default: float) -> float:
    value = data.get(key, default)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"'{key}' must be a positive number")
    return value


def _boolean(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"'{key}' must be a boolean")
    return value


def _choice(data: dict[str, Any], key: str, default: str, choices: tuple[str, ...]) -> str:
    value = _string(data, key, default)
    if value not in choices:
        raise ConfigError(f"'{key}' must be one of: {', '.join(choices)}")
    return value


def _resolve_config_path(root: Path, path: Path | str | None = None) -> tuple[Path, bool]:
    """Resolve the configuration file path.

    Priority:
    1. Explicit path argument
    2. NPM_PREPUBLISH_CONFIG environment variable
    3. prepublish.json in the package root

    The flag is True when the path was asked for explicitly and must exist.
    """
    if path is not None:
        return Path(path), True

    env_path = os.environ.get(CONFIG_PATH_ENV_VAR)
    if env_path:
        return Path(env_path), True

    return root / DEFAULT_CONFIG_NAME, False


def load_settings(root: Path, path: Path | str | None = None) -> Settings:
    """Load and validate settings for the package at ``root``.

    Args:
        root: package root; the default config file is looked up here.
        path: optional explicit config file path.

    Returns:
        A Settings object. When no explicit path is given and the default file
        does not exist, built-in defaults are returned.

    Raises:
        ConfigError: If the file cannot be read or contains invalid data.
    """
    config_path, required = _resolve_config_path(root, path)

    if not config_path.exists():
        if required:
            raise ConfigError(f"Configuration file not found: {config_path}")
        return Settings()

    try:
        content = config_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read configuration file: {exc}") from exc

    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in configuration file: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a JSON object")

    return Settings.from_dict(data)
