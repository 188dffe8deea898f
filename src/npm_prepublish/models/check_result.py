"""Check result model."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class Outcome(str, Enum):
    """Final state of a single verification step."""

    PASSED = "passed"
    FAILED = "failed"
    WARNED = "warned"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one check. Frozen so the outcome is set exactly once."""

    name: str
    outcome: Outcome
    message: str

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Check name must be non-empty")
        if not isinstance(self.outcome, Outcome):
            raise ValueError(f"Invalid outcome: {self.outcome!r}")

    @property
    def failed(self) -> bool:
        return self.outcome is Outcome.FAILED

    def downgraded(self) -> CheckResult:
        """Return this result with a failure turned into a warning."""
        if self.outcome is Outcome.FAILED:
            return replace(self, outcome=Outcome.WARNED)
        return self

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "outcome": self.outcome.value,
            "message": self.message,
        }

    @classmethod
    def passed(cls, name: str, message: str) -> CheckResult:
        return cls(name=name, outcome=Outcome.PASSED, message=message)

    @classmethod
    def failed_with(cls, name: str, message: str) -> CheckResult:
        return cls(name=name, outcome=Outcome.FAILED, message=message)

    @classmethod
    def warned(cls, name: str, message: str) -> CheckResult:
        return cls(name=name, outcome=Outcome.WARNED, message=message)

    @classmethod
    def skipped(cls, name: str, message: str) -> CheckResult:
        return cls(name=name, outcome=Outcome.SKIPPED, message=message)
