"""Console reporter that records check results and stops on the first failure."""

from __future__ import annotations

import sys
from typing import TextIO

from .models import CheckResult, Outcome

# ANSI color codes for terminal output
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
BLUE = "\033[94m"
BOLD = "\033[1m"
RESET = "\033[0m"

_ICONS = {
    Outcome.PASSED: ("✓", GREEN),
    Outcome.WARNED: ("⚠", YELLOW),
    Outcome.FAILED: ("✗", RED),
    Outcome.SKIPPED: ("-", BLUE),
}


class VerificationAborted(RuntimeError):
    """Raised when a mandatory check fails; carries the failing result."""

    def __init__(self, result: CheckResult) -> None:
        super().__init__(f"{result.name}: {result.message}")
        self.result = result


class Reporter:
    """Accumulate results in the order checks ran and print one line per result."""

    def __init__(self, stream: TextIO | None = None, color: bool = False) -> None:
        self.stream = stream
        self.color = color
        self.results: list[CheckResult] = []

    def _print(self, text: str) -> None:
        print(text, file=self.stream or sys.stdout)

    def _paint(self, text: str, code: str) -> str:
        return f"{code}{text}{RESET}" if self.color else text

    def format(self, result: CheckResult) -> str:
        icon, code = _ICONS[result.outcome]
        return f"{self._paint(icon, code)} {result.name}: {result.message}"

    def header(self, title: str) -> None:
        self._print(self._paint(title, BOLD))
        self._print("")

    def record(self, result: CheckResult, *, mandatory: bool = True) -> CheckResult:
        """Record and print ``result``.

        Failures of advisory checks are recorded as warnings. A failure of a
        mandatory check raises VerificationAborted after it has been printed.
        """
        if not mandatory:
            result = result.downgraded()
        self.results.append(result)
        self._print(self.format(result))

        if result.failed:
            self._print("")
            self._print(self._paint(f"Verification aborted: {result.name} failed.", RED))
            raise VerificationAborted(result)
        return result

    def count(self, outcome: Outcome) -> int:
        return sum(1 for r in self.results if r.outcome is outcome)

    def finish(self) -> None:
        """Print the success summary; only reached when nothing failed."""
        passed = self.count(Outcome.PASSED)
        warned = self.count(Outcome.WARNED)
        skipped = self.count(Outcome.SKIPPED)
        self._print("")
        self._print(
            self._paint("All pre-publish checks passed.", GREEN)
            + f" ({passed} passed, {warned} warning(s), {skipped} skipped)"
        )
        if warned:
            self._print(self._paint("Review the warnings above before publishing.", YELLOW))
