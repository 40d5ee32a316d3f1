"""Terminal reporter rendering progress and summaries."""
from __future__ import annotations

import shlex
from typing import TYPE_CHECKING

import click
from colorama import Fore, Style, init as colorama_init

from cctest.core.models import Verdict
from cctest.core.results import DEFAULT_EXCERPT_LINES, RunSummary

from .base import Reporter, excerpt

if TYPE_CHECKING:
    from cctest.plan.models import RunPlan


class TerminalReporter(Reporter):
    """Human-readable reporter that streams to stdout."""

    def __init__(self, *, use_color: bool = True, excerpt_lines: int = DEFAULT_EXCERPT_LINES) -> None:
        self._use_color = use_color
        self._excerpt_lines = excerpt_lines
        if use_color:
            colorama_init()

    def on_start(self, plan: RunPlan, total: int) -> None:
        self._excerpt_lines = plan.excerpt_lines
        mode = "strict" if plan.strict else "exit-status"
        click.echo(
            self._paint(
                f"Running {total} fixture(s) from {plan.fixture_dir} "
                f"(timeout={plan.timeout_s:g}s, diagnostics={mode})",
                Fore.CYAN,
            )
        )

    def on_verdict(self, verdict: Verdict, index: int, total: int) -> None:
        ms = verdict.duration_s * 1000
        if verdict.passed:
            label = self._paint(f"{'PASS':<5}", Fore.GREEN)
        else:
            label = self._paint(f"{'FAIL':<5}", Fore.RED)
        click.echo(f"[{index}/{total}] {label} {verdict.fixture.name} ({ms:.0f} ms)")

    def on_complete(self, summary: RunSummary) -> None:
        failures = summary.failures
        if failures:
            click.echo(self._paint("Failure details:", Fore.RED))
            for verdict in failures:
                self._print_failure(verdict)
        if summary.interrupted:
            click.echo(
                self._paint(
                    f"Run interrupted: {summary.not_run} fixture(s) did not run",
                    Fore.YELLOW,
                )
            )
        color = Fore.GREEN if summary.failed == 0 and not summary.interrupted else Fore.RED
        click.echo(
            self._paint("Summary", color)
            + f": total={summary.total} passed={summary.passed} failed={summary.failed} "
            f"duration={summary.duration_s:.2f}s"
        )
        if summary.reasons:
            breakdown = ", ".join(
                f"{reason.value}={count}"
                for reason, count in sorted(summary.reasons.items(), key=lambda item: item[0].value)
            )
            click.echo(f"  by reason: {breakdown}")

    def _print_failure(self, verdict: Verdict, *, indent: str = "    ") -> None:
        assert verdict.reason is not None
        fixture = verdict.fixture
        click.echo(f"  {fixture.path}")
        click.echo(f"{indent}reason:   {verdict.reason.value}")
        click.echo(f"{indent}expected: {fixture.expectation.describe()}")
        click.echo(f"{indent}actual:   {verdict.actual}")
        if verdict.detail:
            click.echo(f"{indent}detail:   {verdict.detail}")
        if verdict.command:
            click.echo(f"{indent}command:  {_command_line(verdict.command)}")
        lines = excerpt(verdict.diagnostic, self._excerpt_lines)
        if lines:
            click.echo(f"{indent}diagnostic:")
            for line in lines:
                click.echo(f"{indent}  | {line}")

    def _paint(self, text: str, color: str) -> str:
        if not self._use_color:
            return text
        return f"{color}{text}{Style.RESET_ALL}"


def _command_line(argv) -> str:
    return " ".join(shlex.quote(str(part)) for part in argv)
