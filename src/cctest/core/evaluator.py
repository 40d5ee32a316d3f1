"""Compare an invocation's outcome with a fixture's expectation."""
from __future__ import annotations

from typing import Sequence

from .models import Expectation, FailureReason, Fixture, InvocationResult, Verdict


def is_crash(result: InvocationResult, crash_exit_codes: Sequence[int] = (101,)) -> bool:
    """True when the compiler died instead of rejecting the input.

    Signal deaths show up as negative return codes; rustc reports an
    internal compiler error with exit status 101.
    """

    code = result.returncode
    if code is None:
        return False
    return code < 0 or code in crash_exit_codes


def missing_markers(markers: Sequence[str], diagnostic: str) -> list[str]:
    return [marker for marker in markers if marker not in diagnostic]


def evaluate(
    fixture: Fixture,
    result: InvocationResult,
    *,
    strict: bool = False,
    crash_exit_codes: Sequence[int] = (101,),
    command: Sequence[str] = (),
) -> Verdict:
    """Produce the verdict for one fixture. Performs no I/O."""

    def verdict(reason: FailureReason | None, detail: str = "") -> Verdict:
        return Verdict(
            fixture=fixture,
            reason=reason,
            actual=result.describe(),
            detail=detail,
            diagnostic=result.stderr,
            duration_s=result.duration_s,
            command=tuple(command),
        )

    if result.launch_error is not None:
        return verdict(FailureReason.LAUNCH_ERROR, result.launch_error)
    if result.timed_out:
        return verdict(FailureReason.TIMEOUT)

    compiled = result.returncode == 0
    if fixture.expectation is Expectation.MUST_SUCCEED:
        if compiled:
            return verdict(None)
        return verdict(FailureReason.EXPECTED_SUCCESS)

    if compiled:
        return verdict(FailureReason.EXPECTED_FAILURE)
    if is_crash(result, crash_exit_codes):
        return verdict(FailureReason.NON_DIAGNOSTIC)
    if not strict:
        return verdict(None)
    if not fixture.markers:
        return verdict(FailureReason.WRONG_DIAGNOSTIC, "no expected diagnostic configured")
    missing = missing_markers(fixture.markers, result.stderr)
    if missing:
        return verdict(
            FailureReason.WRONG_DIAGNOSTIC,
            "missing expected diagnostic: " + "; ".join(repr(marker) for marker in missing),
        )
    return verdict(None)
