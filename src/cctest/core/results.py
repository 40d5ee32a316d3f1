"""Aggregation of verdicts into a run summary."""
from __future__ import annotations

from collections import Counter
from typing import Dict, List, Tuple

from .models import FailureReason, Verdict

DEFAULT_EXCERPT_LINES = 20

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_CONFIG_ERROR = 3
EXIT_INTERRUPTED = 130


class RunSummary:
    """Counts and failures for a run.

    Verdicts may be added in any order; the resulting counts and the
    failure list (sorted by fixture path) do not depend on it.
    """

    def __init__(self, expected_total: int = 0) -> None:
        self.expected_total = expected_total
        self.passed = 0
        self.failed = 0
        self.interrupted = False
        self.duration_s = 0.0
        self._failures: List[Verdict] = []
        self._reasons: Counter[FailureReason] = Counter()

    @property
    def total(self) -> int:
        return self.passed + self.failed

    @property
    def not_run(self) -> int:
        return max(self.expected_total - self.total, 0)

    @property
    def failures(self) -> List[Verdict]:
        return sorted(self._failures, key=lambda v: str(v.fixture.path))

    @property
    def reasons(self) -> Dict[FailureReason, int]:
        return dict(self._reasons)

    def add(self, verdict: Verdict) -> None:
        if verdict.passed:
            self.passed += 1
            return
        self.failed += 1
        self._failures.append(verdict)
        assert verdict.reason is not None
        self._reasons[verdict.reason] += 1

    def finish(self, *, duration_s: float, interrupted: bool = False) -> None:
        self.duration_s = duration_s
        self.interrupted = interrupted

    def counts(self) -> Tuple[int, int, int]:
        return self.total, self.passed, self.failed

    def failing(self) -> List[Tuple[str, str]]:
        return [(str(v.fixture.path), v.reason.value) for v in self.failures if v.reason]

    def exit_code(self) -> int:
        if self.interrupted:
            return EXIT_INTERRUPTED
        return EXIT_OK if self.failed == 0 else EXIT_FAILURES

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RunSummary):
            return NotImplemented
        return (
            self.counts() == other.counts()
            and self.failing() == other.failing()
            and self.interrupted == other.interrupted
        )

    __hash__ = None  # type: ignore[assignment]
