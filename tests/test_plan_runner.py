from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from cctest.core import ConfigurationError, FailureReason, RunSummary, Verdict
from cctest.core.results import EXIT_FAILURES, EXIT_OK
from cctest.plan import CrateArtifact, PlanOptions, run_plan
from cctest.plan.runner import apply_options
from cctest.reporting import Reporter


class CollectingReporter(Reporter):
    def __init__(self) -> None:
        self.started_with = None
        self.verdicts: List[Verdict] = []
        self.summary: RunSummary | None = None

    def on_start(self, plan, total: int) -> None:
        self.started_with = total

    def on_verdict(self, verdict: Verdict, index: int, total: int) -> None:
        self.verdicts.append(verdict)

    def on_complete(self, summary: RunSummary) -> None:
        self.summary = summary


def _run(plan, options=None) -> tuple[int, CollectingReporter]:
    reporter = CollectingReporter()
    code = run_plan(plan, options, reporters=[reporter])
    return code, reporter


def test_passing_succ_and_fail_fixtures(workspace) -> None:
    workspace.write("succ_basic.rs", "fn main() {}\n")
    workspace.write("fail_basic.rs", "// ERROR: cannot derive for unions\n")
    workspace.write("helper.rs", "// ERROR: never compiled\n")
    code, reporter = _run(workspace.plan())
    assert code == EXIT_OK
    assert reporter.summary.counts() == (2, 2, 0)
    assert reporter.started_with == 2


def test_broken_succ_fixture_fails_the_run(workspace) -> None:
    workspace.write("succ_broken.rs", "// ERROR: expected one of `;` or `}`\n")
    code, reporter = _run(workspace.plan())
    assert code == EXIT_FAILURES
    (failure,) = reporter.summary.failures
    assert failure.reason is FailureReason.EXPECTED_SUCCESS
    assert "expected one of" in failure.diagnostic


def test_missing_artifact_aborts_before_compiling(workspace) -> None:
    workspace.write("succ_basic.rs")
    plan = workspace.plan(library=CrateArtifact(name="luther", artifact=str(workspace.deps / "libmissing.rlib")))
    reporter = CollectingReporter()
    with pytest.raises(ConfigurationError, match="libmissing.rlib"):
        run_plan(plan, reporters=[reporter])
    assert reporter.started_with is None


def test_missing_fixture_directory_is_configuration_error(workspace) -> None:
    plan = workspace.plan(fixture_dir=workspace.root / "nowhere")
    with pytest.raises(ConfigurationError, match="does not exist"):
        run_plan(plan, reporters=[CollectingReporter()])


def test_hanging_fixture_times_out_without_blocking_others(workspace) -> None:
    workspace.write("succ_hang.rs", "// HANG\n")
    workspace.write("succ_fast.rs")
    workspace.write("fail_fast.rs", "// ERROR: nope\n")
    code, reporter = _run(workspace.plan(timeout_s=1.0, jobs=2))
    assert code == EXIT_FAILURES
    verdicts = {v.fixture.name: v for v in reporter.verdicts}
    assert set(verdicts) == {"succ_hang.rs", "succ_fast.rs", "fail_fast.rs"}
    assert verdicts["succ_hang.rs"].reason is FailureReason.TIMEOUT
    assert verdicts["succ_fast.rs"].passed
    assert verdicts["fail_fast.rs"].passed


def test_fail_fixture_that_compiles_is_reported(workspace) -> None:
    workspace.write("fail_accepted.rs", "fn main() {}\n")
    code, reporter = _run(workspace.plan())
    assert code == EXIT_FAILURES
    assert reporter.summary.failing() == [
        (str((workspace.fixtures / "fail_accepted.rs").resolve()), "expected failure, compiled successfully")
    ]


def test_strict_mode_checks_sidecar_markers(workspace) -> None:
    workspace.write("fail_good.rs", "// ERROR: the trait `Token` is not implemented\n")
    (workspace.fixtures / "fail_good.stderr").write_text("the trait `Token`\n", encoding="utf-8")
    workspace.write("fail_wrong.rs", "// ERROR: unrelated parse error\n")
    (workspace.fixtures / "fail_wrong.stderr").write_text("the trait `Token`\n", encoding="utf-8")
    code, reporter = _run(workspace.plan(), PlanOptions(strict=True))
    assert code == EXIT_FAILURES
    verdicts = {v.fixture.name: v for v in reporter.verdicts}
    assert verdicts["fail_good.rs"].passed
    assert verdicts["fail_wrong.rs"].reason is FailureReason.WRONG_DIAGNOSTIC


def test_missing_compiler_is_infrastructure_failure(workspace) -> None:
    workspace.write("succ_basic.rs")
    plan = workspace.plan(compiler=(str(workspace.root / "no-rustc"),))
    code, reporter = _run(plan)
    assert code == EXIT_FAILURES
    (failure,) = reporter.summary.failures
    assert failure.reason is FailureReason.LAUNCH_ERROR
    assert failure.reason.is_infrastructure


def test_repeated_runs_are_identical(workspace) -> None:
    workspace.write("succ_a.rs")
    workspace.write("succ_b.rs", "// ERROR: broken\n")
    workspace.write("fail_a.rs", "// ERROR: rejected\n")
    workspace.write("fail_b.rs")
    _, first = _run(workspace.plan(jobs=4))
    _, second = _run(workspace.plan(jobs=1))
    assert first.summary == second.summary
    assert first.summary.counts() == (4, 2, 2)


def test_empty_directory_with_required_fixtures(workspace) -> None:
    code, _ = _run(workspace.plan())
    assert code == EXIT_OK
    code, _ = _run(workspace.plan(), PlanOptions(require_fixtures=True))
    assert code == EXIT_FAILURES


def test_apply_options_overrides_and_validates(workspace) -> None:
    plan = workspace.plan()
    updated = apply_options(
        plan,
        PlanOptions(fixture_dir=str(workspace.root), jobs=8, timeout_s=2.5, strict=True, filters=("succ_*",)),
    )
    assert updated.fixture_dir == workspace.root
    assert (updated.jobs, updated.timeout_s, updated.strict) == (8, 2.5, True)
    assert updated.filters == ("succ_*",)
    assert plan.jobs == 2
    with pytest.raises(ConfigurationError):
        apply_options(plan, PlanOptions(jobs=0))
    with pytest.raises(ConfigurationError):
        apply_options(plan, PlanOptions(timeout_s=-1))


def test_relative_fixture_override_uses_cwd(workspace, monkeypatch) -> None:
    monkeypatch.chdir(workspace.root)
    updated = apply_options(workspace.plan(), PlanOptions(fixture_dir="fixtures"))
    assert updated.fixture_dir == Path.cwd() / "fixtures"
