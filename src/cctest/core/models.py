"""Core dataclasses shared across cctest subsystems."""
from __future__ import annotations

import enum
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Tuple


class Expectation(enum.Enum):
    """Required outcome of compiling a fixture."""

    MUST_SUCCEED = "succeed"
    MUST_FAIL = "fail"

    def describe(self) -> str:
        if self is Expectation.MUST_SUCCEED:
            return "compiles successfully"
        return "fails to compile"


# Filename prefix -> expectation. Any other prefix is not a fixture.
PREFIX_EXPECTATIONS: Tuple[Tuple[str, Expectation], ...] = (
    ("succ", Expectation.MUST_SUCCEED),
    ("fail", Expectation.MUST_FAIL),
)


def classify_name(name: str) -> Optional[Expectation]:
    """Map a fixture filename to its expectation, or ``None`` if excluded."""

    for prefix, expectation in PREFIX_EXPECTATIONS:
        if name.startswith(prefix):
            return expectation
    return None


@dataclass(frozen=True)
class Fixture:
    """A single source file under test."""

    path: Path
    expectation: Expectation
    markers: Tuple[str, ...] = tuple()

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class InvocationSpec:
    """Fully resolved command for compiling one fixture.

    When ``cwd`` is ``None`` the driver runs the command inside a fresh
    scratch directory that is removed afterwards.
    """

    argv: Tuple[str, ...]
    timeout_s: float
    cwd: Optional[Path] = None

    def command_line(self) -> str:
        return " ".join(shlex.quote(part) for part in self.argv)


@dataclass(frozen=True)
class InvocationResult:
    """Outcome of running one :class:`InvocationSpec`.

    Exactly one of ``returncode``, ``timed_out`` and ``launch_error``
    describes how the child ended.
    """

    returncode: Optional[int]
    stderr: str = ""
    duration_s: float = 0.0
    timed_out: bool = False
    launch_error: Optional[str] = None
    cancelled: bool = False

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0 and not self.timed_out and self.launch_error is None

    def describe(self) -> str:
        if self.cancelled:
            return "cancelled"
        if self.launch_error is not None:
            return f"failed to launch ({self.launch_error})"
        if self.timed_out:
            return f"timed out after {self.duration_s:.1f}s"
        if self.returncode == 0:
            return "compiled successfully"
        if self.returncode is not None and self.returncode < 0:
            return f"killed by signal {-self.returncode}"
        return f"compilation failed (exit code {self.returncode})"


class FailureReason(enum.Enum):
    """Why a verdict is a failure."""

    EXPECTED_SUCCESS = "expected success, got failure"
    EXPECTED_FAILURE = "expected failure, compiled successfully"
    NON_DIAGNOSTIC = "non-diagnostic failure"
    WRONG_DIAGNOSTIC = "wrong diagnostic"
    TIMEOUT = "timeout"
    LAUNCH_ERROR = "failed to launch"
    INTERNAL_ERROR = "internal harness error"

    @property
    def is_infrastructure(self) -> bool:
        return self in (FailureReason.LAUNCH_ERROR, FailureReason.INTERNAL_ERROR)


@dataclass(frozen=True)
class Verdict:
    """Pass/fail judgment for one fixture."""

    fixture: Fixture
    reason: Optional[FailureReason] = None
    actual: str = ""
    detail: str = ""
    diagnostic: str = ""
    duration_s: float = 0.0
    command: Sequence[str] = field(default_factory=tuple)

    @property
    def passed(self) -> bool:
        return self.reason is None

    @property
    def status(self) -> str:
        return "passed" if self.passed else "failed"
