"""Core verification entrypoint.

This module MUST NOT contain CI-specific behaviour so it can be used by both
the console script and other tooling that wants the results programmatically.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from .checks import CHECKS, Check, CheckContext
from .config import Settings, load_settings
from .models import CheckResult
from .reporter import Reporter


def verify_package(
    root: Path,
    settings: Settings | None = None,
    reporter: Reporter | None = None,
    checks: Sequence[Check] = CHECKS,
) -> list[CheckResult]:
    """Run every check against the package at ``root``, strictly in order.

    Params:
        root: package root containing package.json and the build output
        settings: verification settings; loaded from ``root`` when None
        reporter: where results are recorded and printed
        checks: the checks to run, in order

    Returns: the recorded results when every mandatory check passed.

    Raises: VerificationAborted on the first mandatory failure. Checks after
    the failing one are not run.
    """
    root = root.resolve()
    if settings is None:
        settings = load_settings(root)
    if reporter is None:
        reporter = Reporter()

    ctx = CheckContext(root=root, settings=settings)
    reporter.header(f"Pre-publish verification for: {root}")

    for check in checks:
        reporter.record(check.run(ctx), mandatory=check.mandatory)

    reporter.finish()
    return list(reporter.results)
