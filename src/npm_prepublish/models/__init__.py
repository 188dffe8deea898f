"""Data models for pre-publish verification."""

from __future__ import annotations

from .check_result import CheckResult, Outcome

__all__ = [
    "CheckResult",
    "Outcome",
]
