"""Executor wiring a plan through discovery, compilation and reporting."""
from __future__ import annotations

import dataclasses
import logging
import time
from pathlib import Path
from typing import List, Optional, Sequence

from cctest.backends import CompilerDriver, SubprocessDriver
from cctest.core.discovery import discover_fixtures
from cctest.core.errors import ConfigurationError
from cctest.core.invocation import InvocationBuilder, resolve_dependencies
from cctest.core.models import Fixture
from cctest.core.results import EXIT_FAILURES, RunSummary
from cctest.core.runner import HarnessRunner
from cctest.reporting import JsonReporter, ReportManager, Reporter, TerminalReporter

from .models import PlanOptions, RunPlan

log = logging.getLogger(__name__)


def apply_options(plan: RunPlan, options: Optional[PlanOptions]) -> RunPlan:
    """Return ``plan`` with command-line overrides applied."""

    if options is None:
        return plan
    changes = {}
    if options.fixture_dir:
        fixture_dir = Path(options.fixture_dir).expanduser()
        changes["fixture_dir"] = fixture_dir if fixture_dir.is_absolute() else Path.cwd() / fixture_dir
    if options.jobs is not None:
        if options.jobs < 1:
            raise ConfigurationError(f"jobs must be at least 1, got {options.jobs}")
        changes["jobs"] = options.jobs
    if options.timeout_s is not None:
        if options.timeout_s <= 0:
            raise ConfigurationError(f"timeout must be positive, got {options.timeout_s}")
        changes["timeout_s"] = options.timeout_s
    if options.strict is not None:
        changes["strict"] = options.strict
    if options.filters:
        changes["filters"] = tuple(options.filters)
    if options.compiler:
        changes["compiler"] = (options.compiler,)
    return dataclasses.replace(plan, **changes)


def collect_fixtures(plan: RunPlan) -> List[Fixture]:
    fixtures = list(
        discover_fixtures(
            plan.fixture_dir,
            plan.extensions,
            filters=plan.filters,
            markers=plan.diagnostics,
        )
    )
    log.info("Discovered %d fixture(s) in %s", len(fixtures), plan.fixture_dir)
    return fixtures


def prepare(plan: RunPlan) -> tuple[InvocationBuilder, List[Fixture]]:
    """Validate dependencies and discover fixtures before anything runs.

    Raises :class:`ConfigurationError` on a missing artifact or an
    unreadable fixture directory.
    """

    dependencies = resolve_dependencies(
        plan.search_dir,
        [
            (plan.library.name, plan.library.artifact),
            (plan.derive.name, plan.derive.artifact),
        ],
    )
    builder = InvocationBuilder(
        plan.compiler,
        dependencies,
        extra_args=plan.extra_args,
        timeout_s=plan.timeout_s,
    )
    return builder, collect_fixtures(plan)


def build_reporters(
    report_format: str, report_path: Optional[str], *, use_color: bool
) -> List[Reporter]:
    if report_format == "json":
        return [JsonReporter(path=report_path)]
    reporters: List[Reporter] = [TerminalReporter(use_color=use_color)]
    if report_path:
        reporters.append(JsonReporter(path=report_path))
    return reporters


def run_plan(
    plan: RunPlan,
    options: Optional[PlanOptions] = None,
    *,
    report_format: str = "terminal",
    report_path: Optional[str] = None,
    use_color: bool = True,
    driver: Optional[CompilerDriver] = None,
    reporters: Optional[Sequence[Reporter]] = None,
) -> int:
    """Execute the plan; returns the process exit code.

    Configuration errors propagate as :class:`ConfigurationError` before
    any compiler is started.
    """

    plan = apply_options(plan, options)
    builder, fixtures = prepare(plan)
    manager = ReportManager(
        reporters if reporters is not None else build_reporters(report_format, report_path, use_color=use_color)
    )
    summary = RunSummary(expected_total=len(fixtures))
    runner = HarnessRunner(
        driver or SubprocessDriver(),
        builder,
        jobs=plan.jobs,
        strict=plan.strict,
        crash_exit_codes=plan.crash_exit_codes,
    )

    def on_verdict(verdict, index: int, total: int) -> None:
        summary.add(verdict)
        manager.handle_verdict(verdict, index, total)

    manager.start(plan, len(fixtures))
    start = time.perf_counter()
    runner.run(fixtures, on_verdict=on_verdict)
    summary.finish(duration_s=time.perf_counter() - start, interrupted=runner.interrupted)
    manager.complete(summary)
    if not fixtures and options is not None and options.require_fixtures:
        log.warning("No fixtures matched in %s", plan.fixture_dir)
        return EXIT_FAILURES
    return summary.exit_code()
