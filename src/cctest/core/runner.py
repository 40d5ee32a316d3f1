"""Concurrent execution of fixtures through a compiler driver."""
from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence

from .evaluator import evaluate
from .invocation import InvocationBuilder
from .models import FailureReason, Fixture, Verdict

if TYPE_CHECKING:
    from cctest.backends.base import CompilerDriver

log = logging.getLogger(__name__)

VerdictCallback = Callable[[Verdict, int, int], None]

_POLL_INTERVAL_S = 0.2


def default_jobs() -> int:
    return os.cpu_count() or 1


class HarnessRunner:
    """Compiles fixtures on a bounded thread pool.

    Each worker blocks on one child process, so threads are enough; the
    compilers do the actual work. Verdicts are delivered to ``on_verdict``
    from the calling thread as invocations complete. A ``KeyboardInterrupt``
    or a call to :meth:`cancel` kills in-flight compilers and returns the
    verdicts gathered so far.
    """

    def __init__(
        self,
        driver: CompilerDriver,
        builder: InvocationBuilder,
        *,
        jobs: Optional[int] = None,
        strict: bool = False,
        crash_exit_codes: Sequence[int] = (101,),
    ) -> None:
        self._driver = driver
        self._builder = builder
        self._jobs = jobs or default_jobs()
        if self._jobs < 1:
            raise ValueError(f"jobs must be at least 1, got {self._jobs}")
        self._strict = strict
        self._crash_exit_codes = tuple(crash_exit_codes)
        self._cancel_requested = threading.Event()
        self.interrupted = False

    @property
    def jobs(self) -> int:
        return self._jobs

    def cancel(self) -> None:
        self._cancel_requested.set()
        self._driver.cancel()

    def run(self, fixtures: Sequence[Fixture], *, on_verdict: Optional[VerdictCallback] = None) -> List[Verdict]:
        verdicts: List[Verdict] = []
        total = len(fixtures)
        if not fixtures:
            return verdicts
        log.debug("Running %d fixture(s) with %d worker(s)", total, self._jobs)

        def deliver(future: Future) -> None:
            verdict = future.result()
            if verdict is None:
                return
            verdicts.append(verdict)
            if on_verdict:
                on_verdict(verdict, len(verdicts), total)

        executor = ThreadPoolExecutor(max_workers=self._jobs, thread_name_prefix="cctest")
        pending: Dict[Future, Fixture] = {}
        try:
            pending = {executor.submit(self._execute, fixture): fixture for fixture in fixtures}
            while pending:
                if self._cancel_requested.is_set():
                    raise KeyboardInterrupt
                done, _ = wait(pending, timeout=_POLL_INTERVAL_S, return_when=FIRST_COMPLETED)
                for future in done:
                    pending.pop(future)
                    deliver(future)
        except KeyboardInterrupt:
            log.warning("Run interrupted; stopping %d outstanding fixture(s)", len(pending))
            self.interrupted = True
            self._driver.cancel()
            for future in pending:
                future.cancel()
            executor.shutdown(wait=True)
            for future in pending:
                if future.done() and not future.cancelled():
                    deliver(future)
        finally:
            executor.shutdown(wait=True)
        return verdicts

    def _execute(self, fixture: Fixture) -> Optional[Verdict]:
        start = time.perf_counter()
        command: tuple = ()
        try:
            spec = self._builder.build(fixture)
            command = spec.argv
            log.debug("Compiling %s: %s", fixture.name, spec.command_line())
            result = self._driver.compile(spec)
            if result.cancelled:
                return None
            return evaluate(
                fixture,
                result,
                strict=self._strict,
                crash_exit_codes=self._crash_exit_codes,
                command=command,
            )
        except Exception as exc:  # one broken fixture must not abort the run
            log.exception("Internal error while running %s", fixture.name)
            return Verdict(
                fixture=fixture,
                reason=FailureReason.INTERNAL_ERROR,
                actual="harness error",
                detail=f"{type(exc).__name__}: {exc}",
                duration_s=time.perf_counter() - start,
                command=command,
            )
