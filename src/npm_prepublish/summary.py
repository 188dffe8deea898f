"""Human-readable summary rendering for $GITHUB_STEP_SUMMARY."""

from __future__ import annotations

from typing import Any

_ICONS = {
    "passed": "✅",
    "warned": "⚠️",
    "failed": "❌",
    "skipped": "⏭️",
}


def _cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


def render_summary(report: dict[str, Any]) -> str:
    """Return a Markdown string with the overall status and a table of checks."""
    totals = report.get("totals", {})
    results = report.get("results", [])

    status = "✅ **PASSED**" if report.get("passed") else "❌ **FAILED**"

    lines = []
    lines.append("# Pre-publish Verification")
    lines.append("")
    lines.append(f"Overall status: {status}")
    lines.append("")
    lines.append(
        f"Passed: {totals.get('passed', 0)} | Warnings: {totals.get('warned', 0)} | "
        f"Failed: {totals.get('failed', 0)} | Skipped: {totals.get('skipped', 0)}"
    )
    lines.append("")
    lines.append("| Check | Outcome | Details |")
    lines.append("| --- | --- | --- |")

    for result in results:
        outcome = result.get("outcome", "")
        icon = _ICONS.get(outcome, "")
        lines.append(
            f"| {_cell(result.get('name', ''))} | {icon} {outcome} | "
            f"{_cell(result.get('message', ''))} |"
        )

    if not results:
        lines.append("| (no checks ran) | n/a | n/a |")

    return "\n".join(lines) + "\n"
