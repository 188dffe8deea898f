"""Report aggregation and schema-friendly output."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from .models import CheckResult, Outcome


def aggregate(results: Sequence[CheckResult]) -> dict[str, Any]:
    """Aggregate check results into a single JSON-friendly report.

    ``passed`` is True only when no result failed. Results keep the order the
    checks ran in; a run aborted early simply has fewer of them.
    """

    totals = {outcome.value: 0 for outcome in Outcome}
    for result in results:
        totals[result.outcome.value] += 1

    report: dict[str, Any] = {
        "version": "1",
        "passed": totals[Outcome.FAILED.value] == 0,
        "results": [result.to_dict() for result in results],
        "totals": totals,
    }

    return report
