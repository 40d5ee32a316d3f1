from __future__ import annotations

import itertools
from pathlib import Path

from cctest.core import Expectation, FailureReason, Fixture, RunSummary, Verdict
from cctest.core.results import EXIT_FAILURES, EXIT_INTERRUPTED, EXIT_OK


def _verdict(name: str, reason: FailureReason | None = None) -> Verdict:
    expectation = Expectation.MUST_SUCCEED if name.startswith("succ") else Expectation.MUST_FAIL
    return Verdict(fixture=Fixture(path=Path("/f") / name, expectation=expectation), reason=reason)


VERDICTS = [
    _verdict("succ_a.rs"),
    _verdict("succ_b.rs", FailureReason.EXPECTED_SUCCESS),
    _verdict("fail_a.rs"),
    _verdict("fail_b.rs", FailureReason.EXPECTED_FAILURE),
    _verdict("fail_c.rs", FailureReason.TIMEOUT),
]


def _summarize(verdicts) -> RunSummary:
    summary = RunSummary(expected_total=len(VERDICTS))
    for verdict in verdicts:
        summary.add(verdict)
    return summary


def test_summary_counts() -> None:
    summary = _summarize(VERDICTS)
    assert summary.counts() == (5, 2, 3)
    assert summary.not_run == 0
    assert summary.reasons == {
        FailureReason.EXPECTED_SUCCESS: 1,
        FailureReason.EXPECTED_FAILURE: 1,
        FailureReason.TIMEOUT: 1,
    }
    assert summary.exit_code() == EXIT_FAILURES


def test_summary_is_order_independent() -> None:
    reference = _summarize(VERDICTS)
    for permutation in itertools.permutations(VERDICTS):
        summary = _summarize(permutation)
        assert summary == reference
        assert summary.failing() == [
            ("/f/fail_b.rs", "expected failure, compiled successfully"),
            ("/f/fail_c.rs", "timeout"),
            ("/f/succ_b.rs", "expected success, got failure"),
        ]


def test_all_passing_exits_zero() -> None:
    summary = _summarize([_verdict("succ_a.rs"), _verdict("fail_a.rs")])
    summary.finish(duration_s=0.5)
    assert summary.exit_code() == EXIT_OK


def test_interrupted_summary_keeps_partial_results() -> None:
    summary = _summarize(VERDICTS[:2])
    summary.finish(duration_s=1.0, interrupted=True)
    assert summary.total == 2
    assert summary.not_run == 3
    assert summary.exit_code() == EXIT_INTERRUPTED
