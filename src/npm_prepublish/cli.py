"""CLI entrypoint for verifying an npm package before it is published.

Usage:
  npm-prepublish [--root .] [--config prepublish.json] [--report out.json]
                 [--summary out.md] [--no-color]

Run from the package root with no arguments for the default checks. Exits 0
when every mandatory check passed and 1 otherwise.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any

from .config import ConfigError, load_settings
from .core import verify_package
from .report import aggregate
from .reporter import Reporter, VerificationAborted
from .summary import render_summary

STEP_SUMMARY_ENV_VAR = "GITHUB_STEP_SUMMARY"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="npm-prepublish",
        description="Verify a built npm package before publishing it.",
    )
    parser.add_argument("--root", type=Path, default=Path("."), help="Package root")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Settings file (default: $NPM_PREPUBLISH_CONFIG or prepublish.json)",
    )
    parser.add_argument("--report", type=Path, default=None, help="Write a JSON report here")
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Write a Markdown summary here (default: $GITHUB_STEP_SUMMARY when set)",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    return parser.parse_args(argv)


def _use_color(no_color: bool) -> bool:
    if no_color or os.getenv("NO_COLOR"):
        return False
    return sys.stdout.isatty()


def _write_outputs(report: dict[str, Any], args: argparse.Namespace) -> None:
    if args.report is not None:
        args.report.write_text(json.dumps(report, indent=2) + "\n", encoding="utf-8")

    if args.summary is not None:
        args.summary.write_text(render_summary(report), encoding="utf-8")
        return

    step_summary = os.getenv(STEP_SUMMARY_ENV_VAR, "").strip()
    if step_summary:
        with open(step_summary, "a", encoding="utf-8") as fh:
            fh.write(render_summary(report))


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    root = args.root.resolve()

    try:
        settings = load_settings(root, args.config)
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    reporter = Reporter(color=_use_color(args.no_color))
    exit_code = 0
    try:
        verify_package(root, settings, reporter)
    except VerificationAborted:
        exit_code = 1

    try:
        _write_outputs(aggregate(reporter.results), args)
    except OSError as exc:
        print(f"ERROR: Failed to write report: {exc}", file=sys.stderr)
        return 1

    return exit_code


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
