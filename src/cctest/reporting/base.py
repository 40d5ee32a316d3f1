"""Reporter interface definitions."""
from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence

from cctest.core.models import Verdict
from cctest.core.results import RunSummary

if TYPE_CHECKING:
    from cctest.plan.models import RunPlan


class Reporter:
    """Interface for output renderers."""

    def on_start(self, plan: RunPlan, total: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def on_verdict(self, verdict: Verdict, index: int, total: int) -> None:  # pragma: no cover
        raise NotImplementedError

    def on_complete(self, summary: RunSummary) -> None:  # pragma: no cover
        raise NotImplementedError


class ReportManager:
    """Dispatches lifecycle callbacks to multiple reporters."""

    def __init__(self, reporters: Sequence[Reporter]) -> None:
        self._reporters = list(reporters)

    def start(self, plan: RunPlan, total: int) -> None:
        for reporter in self._reporters:
            reporter.on_start(plan, total)

    def handle_verdict(self, verdict: Verdict, index: int, total: int) -> None:
        for reporter in self._reporters:
            reporter.on_verdict(verdict, index, total)

    def complete(self, summary: RunSummary) -> None:
        for reporter in self._reporters:
            reporter.on_complete(summary)

    def reporters(self) -> List[Reporter]:
        return list(self._reporters)


def excerpt(text: str, max_lines: int) -> List[str]:
    """First ``max_lines`` non-blank-trailing lines of ``text``."""

    lines = text.rstrip().splitlines()
    if max_lines <= 0:
        return []
    if len(lines) <= max_lines:
        return lines
    hidden = len(lines) - max_lines
    return lines[:max_lines] + [f"... ({hidden} more line(s))"]
