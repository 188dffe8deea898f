"""The individual pre-publish checks and their registry.

Each check is a plain function taking a :class:`CheckContext` and returning a
:class:`CheckResult`. ``CHECKS`` fixes their order and whether a failure aborts
the run (mandatory) or is downgraded to a warning (advisory).
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TypeAlias

from .config import Settings
from .lockfile import LockfileError, find_lockfile, resolved_versions
from .manifest import (
    MANIFEST_NAME,
    ManifestError,
    declared_dependencies,
    load_manifest,
    missing_fields,
    validate_manifest,
)
from .models import CheckResult
from .registry import RegistryError, fetch_published_versions
from .runner import RunOutcome, StartFailed, TimedOut, run_bounded
from .versions import UnsupportedRange, normalise, satisfies


@dataclass(slots=True, frozen=True)
class CheckContext:
    """Everything a check needs: where the package lives and how to check it."""

    root: Path
    settings: Settings


CheckFunction: TypeAlias = Callable[[CheckContext], CheckResult]


@dataclass(slots=True, frozen=True)
class Check:
    """Binds a check function to its identifier and severity."""

    name: str
    run: CheckFunction
    mandatory: bool = True


# ---- Shared helpers -------------------------------------------------------------------


def _first_line(output: str) -> str:
    for line in output.splitlines():
        if line.strip():
            return line.strip()
    return ""


def _tail(output: str) -> str:
    lines = [line.strip() for line in output.splitlines() if line.strip()]
    return f": {lines[-1]}" if lines else ""


def _run_entry_point(
    ctx: CheckContext, *args: str, env: Mapping[str, str] | None = None
) -> RunOutcome:
    settings = ctx.settings
    return run_bounded(
        settings.runtime,
        [str(ctx.root / settings.entry_point), *args],
        env=env,
        timeout=settings.timeout_seconds,
        cwd=ctx.root,
    )


def _run_package_manager(ctx: CheckContext, *args: str) -> RunOutcome:
    return run_bounded(
        ctx.settings.package_manager,
        list(args),
        timeout=ctx.settings.timeout_seconds,
        cwd=ctx.root,
    )


def _unsuccessful(
    name: str, label: str, outcome: RunOutcome, *, interactive: bool
) -> CheckResult | None:
    """Map anything other than a clean exit to a result; None means exit code 0."""
    if isinstance(outcome, StartFailed):
        return CheckResult.failed_with(name, f"{label} could not be started: {outcome.error}")
    if isinstance(outcome, TimedOut):
        message = f"{label} did not finish within {outcome.timeout:g}s"
        if interactive:
            return CheckResult.warned(name, f"{message}; assuming it is waiting on stdin")
        return CheckResult.failed_with(name, message)
    if not outcome.ok:
        return CheckResult.failed_with(
            name, f"{label} exited with code {outcome.exit_code}{_tail(outcome.output)}"
        )
    return None


def _manifest_or_none(root: Path) -> dict | None:
    try:
        return load_manifest(root)
    except ManifestError:
        return None


# ---- Filesystem and manifest ----------------------------------------------------------


def check_build_outputs(ctx: CheckContext) -> CheckResult:
    name = "Build outputs"
    required = ctx.settings.required_files
    missing = [path for path in required if not (ctx.root / path).exists()]
    if missing:
        return CheckResult.failed_with(name, f"missing: {', '.join(missing)}")
    return CheckResult.passed(name, f"{len(required)} required file(s) present")


def check_manifest(ctx: CheckContext) -> CheckResult:
    name = MANIFEST_NAME
    try:
        manifest = load_manifest(ctx.root)
    except ManifestError as exc:
        return CheckResult.failed_with(name, str(exc))

    missing = missing_fields(manifest)
    if missing:
        return CheckResult.failed_with(name, f"missing required field(s): {', '.join(missing)}")

    problems = validate_manifest(manifest)
    if problems:
        return CheckResult.failed_with(name, "; ".join(problems))

    return CheckResult.passed(name, f"{manifest['name']}@{manifest['version']}")


def check_documentation(ctx: CheckContext) -> CheckResult:
    name = "Documentation"
    files = ctx.settings.documentation_files
    missing = [path for path in files if not (ctx.root / path).is_file()]
    if missing:
        return CheckResult.failed_with(name, f"missing: {', '.join(missing)}")
    return CheckResult.passed(name, ", ".join(files))


# ---- Entry point ----------------------------------------------------------------------


def check_help(ctx: CheckContext) -> CheckResult:
    name = "CLI --help"
    outcome = _run_entry_point(ctx, "--help")
    problem = _unsuccessful(name, "--help", outcome, interactive=True)
    if problem is not None:
        return problem

    if not _first_line(outcome.output):
        return CheckResult.warned(name, "--help exited cleanly but printed nothing")
    return CheckResult.passed(name, "help text printed")


def check_version(ctx: CheckContext) -> CheckResult:
    name = "CLI --version"
    outcome = _run_entry_point(ctx, "--version")
    problem = _unsuccessful(name, "--version", outcome, interactive=True)
    if problem is not None:
        return problem

    reported = _first_line(outcome.output)
    if not reported:
        return CheckResult.warned(name, "--version exited cleanly but printed nothing")

    manifest = _manifest_or_none(ctx.root) or {}
    declared = manifest.get("version")
    if isinstance(declared, str) and declared:
        tokens = {normalise(token) for token in reported.split()}
        if normalise(declared) not in tokens:
            return CheckResult.warned(
                name, f"reported '{reported}' but {MANIFEST_NAME} declares {declared}"
            )
    return CheckResult.passed(name, f"reported {reported}")


def check_server_start(ctx: CheckContext) -> CheckResult:
    name = "Server start"
    outcome = _run_entry_point(ctx)
    problem = _unsuccessful(name, "server", outcome, interactive=True)
    if problem is not None:
        return problem
    return CheckResult.passed(name, "started and exited cleanly")


def check_server_start_with_mode(ctx: CheckContext) -> CheckResult:
    variable = ctx.settings.mode_variable
    name = f"Server start ({variable.name}={variable.value})"
    outcome = _run_entry_point(ctx, env={variable.name: variable.value})
    problem = _unsuccessful(name, "server", outcome, interactive=True)
    if problem is not None:
        return problem
    return CheckResult.passed(name, "started and exited cleanly")


# ---- Package manager and tooling ------------------------------------------------------

_TOTAL_FILES = re.compile(r"total files:\s*(\d+)", re.IGNORECASE)


def check_pack(ctx: CheckContext) -> CheckResult:
    label = f"{ctx.settings.package_manager} pack --dry-run"
    outcome = _run_package_manager(ctx, "pack", "--dry-run")
    problem = _unsuccessful(label, label, outcome, interactive=False)
    if problem is not None:
        return problem

    match = _TOTAL_FILES.search(outcome.output)
    if match:
        return CheckResult.passed(label, f"archive would contain {match.group(1)} file(s)")
    return CheckResult.passed(label, "dry run succeeded")


def check_audit(ctx: CheckContext) -> CheckResult:
    level = ctx.settings.audit_level
    name = f"{ctx.settings.package_manager} audit"
    outcome = _run_package_manager(ctx, "audit", f"--audit-level={level}")
    if isinstance(outcome, StartFailed):
        return CheckResult.warned(name, f"audit could not be started: {outcome.error}")
    if isinstance(outcome, TimedOut):
        return CheckResult.warned(name, f"audit did not finish within {outcome.timeout:g}s")
    if not outcome.ok:
        return CheckResult.warned(
            name, f"vulnerabilities at or above '{level}' reported{_tail(outcome.output)}"
        )
    return CheckResult.passed(name, f"no vulnerabilities at or above '{level}'")


def check_licenses(ctx: CheckContext) -> CheckResult:
    name = "License compliance"
    tool = ctx.settings.license_checker
    outcome = run_bounded(
        tool,
        ["--production", "--onlyAllow", ";".join(ctx.settings.allowed_licenses)],
        timeout=ctx.settings.timeout_seconds,
        cwd=ctx.root,
    )
    if isinstance(outcome, StartFailed):
        return CheckResult.skipped(name, f"{tool} is not installed")
    if isinstance(outcome, TimedOut):
        return CheckResult.warned(name, f"{tool} did not finish within {outcome.timeout:g}s")
    if not outcome.ok:
        return CheckResult.warned(
            name, f"dependencies with licenses outside the allow list{_tail(outcome.output)}"
        )
    return CheckResult.passed(name, "all production dependency licenses allowed")


# ---- Informational and supplementary --------------------------------------------------


def check_bundle_size(ctx: CheckContext) -> CheckResult:
    name = "Bundle size"
    artifact = ctx.settings.bundle_artifact
    path = ctx.root / artifact
    if not path.is_file():
        return CheckResult.skipped(name, f"{artifact} not found")

    size_kb = path.stat().st_size / 1024
    limit = ctx.settings.bundle_size_limit_kb
    if size_kb > limit:
        return CheckResult.warned(name, f"{artifact} is {size_kb:.1f} KB (over {limit} KB)")
    return CheckResult.passed(name, f"{artifact} is {size_kb:.1f} KB")


def check_lockfile(ctx: CheckContext) -> CheckResult:
    name = "Lockfile"
    lockfile = find_lockfile(ctx.root)
    if lockfile is None:
        return CheckResult.warned(name, "no lockfile found; installs are not reproducible")

    manifest = _manifest_or_none(ctx.root)
    if manifest is None:
        return CheckResult.skipped(name, f"{MANIFEST_NAME} could not be read")

    try:
        resolved = resolved_versions(lockfile)
    except LockfileError as exc:
        return CheckResult.warned(name, str(exc))

    missing: list[str] = []
    drifted: list[str] = []
    unevaluated = 0
    declared = declared_dependencies(manifest)
    for package, expr in declared:
        versions = resolved.get(package)
        if not versions:
            missing.append(package)
            continue
        try:
            if not any(satisfies(version, expr) for version in sorted(versions)):
                drifted.append(f"{package}@{expr} (locked {', '.join(sorted(versions))})")
        except UnsupportedRange:
            unevaluated += 1

    problems = []
    if missing:
        problems.append(f"not in {lockfile.name}: {', '.join(missing)}")
    if drifted:
        problems.append(f"out of range: {', '.join(drifted)}")
    if problems:
        return CheckResult.warned(name, "; ".join(problems))

    message = f"{lockfile.name} satisfies {len(declared)} declared dependencies"
    if unevaluated:
        message += f" ({unevaluated} range(s) not evaluated)"
    return CheckResult.passed(name, message)


def check_registry(ctx: CheckContext) -> CheckResult:
    name = "Registry version"
    if not ctx.settings.check_registry:
        return CheckResult.skipped(name, "registry lookup disabled")

    manifest = _manifest_or_none(ctx.root) or {}
    package, version = manifest.get("name"), manifest.get("version")
    if not isinstance(package, str) or not isinstance(version, str):
        return CheckResult.skipped(name, f"{MANIFEST_NAME} has no name/version")
    if manifest.get("private") is True:
        return CheckResult.skipped(name, "package is private")

    try:
        published = fetch_published_versions(
            package, ctx.settings.registry_url, ctx.settings.timeout_seconds
        )
    except RegistryError as exc:
        return CheckResult.warned(name, str(exc))

    if published is None:
        return CheckResult.passed(name, f"{package} has never been published")
    if version in published:
        return CheckResult.warned(name, f"{package}@{version} is already published")
    return CheckResult.passed(name, f"{package}@{version} is not yet published")


CHECKS: tuple[Check, ...] = (
    Check("build-outputs", check_build_outputs),
    Check("manifest", check_manifest),
    Check("documentation", check_documentation),
    Check("cli-help", check_help),
    Check("cli-version", check_version),
    Check("server-start", check_server_start),
    Check("server-start-mode", check_server_start_with_mode),
    Check("pack-dry-run", check_pack),
    Check("audit", check_audit, mandatory=False),
    Check("licenses", check_licenses, mandatory=False),
    Check("bundle-size", check_bundle_size, mandatory=False),
    Check("lockfile", check_lockfile, mandatory=False),
    Check("registry", check_registry, mandatory=False),
)
