from __future__ import annotations

from npm_prepublish.models import CheckResult
from npm_prepublish.report import aggregate
from npm_prepublish.summary import render_summary


def test_aggregate_totals_and_order() -> None:
    report = aggregate(
        [
            CheckResult.passed("Build outputs", "ok"),
            CheckResult.warned("npm audit", "2 moderate"),
            CheckResult.skipped("License compliance", "not installed"),
        ]
    )

    assert report["passed"] is True
    assert report["totals"] == {"passed": 1, "failed": 0, "warned": 1, "skipped": 1}
    assert [r["name"] for r in report["results"]] == [
        "Build outputs",
        "npm audit",
        "License compliance",
    ]


def test_aggregate_marks_failures() -> None:
    report = aggregate([CheckResult.failed_with("package.json", "missing required field(s): bin")])

    assert report["passed"] is False
    assert report["totals"]["failed"] == 1


def test_render_summary_table() -> None:
    report = aggregate(
        [
            CheckResult.passed("Build outputs", "ok"),
            CheckResult.warned("Lockfile", "out of range: a@^1 || ^2"),
        ]
    )

    summary = render_summary(report)

    assert "Overall status: ✅ **PASSED**" in summary
    assert "| Build outputs | ✅ passed | ok |" in summary
    assert "out of range: a@^1 \\|\\| ^2" in summary


def test_render_summary_without_results() -> None:
    assert "| (no checks ran) | n/a | n/a |" in render_summary(aggregate([]))
