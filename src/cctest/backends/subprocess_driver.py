"""Driver that runs the compiler as a child process."""
from __future__ import annotations

import contextlib
import logging
import os
import signal
import subprocess
import tempfile
import threading
import time
from pathlib import Path
from typing import Iterator, Optional, Set

from cctest.core.models import InvocationResult, InvocationSpec

from .base import CompilerDriver

log = logging.getLogger(__name__)

_POSIX = os.name == "posix"


class SubprocessDriver(CompilerDriver):
    """Runs each invocation in its own process group and scratch directory."""

    name = "subprocess"

    def __init__(self, *, env: Optional[dict] = None) -> None:
        self._env = env
        self._lock = threading.Lock()
        self._live: Set[subprocess.Popen] = set()
        self._cancelled_pids: Set[int] = set()
        self._cancel_event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def compile(self, spec: InvocationSpec) -> InvocationResult:
        if self._cancel_event.is_set():
            return InvocationResult(returncode=None, cancelled=True)
        with _working_dir(spec.cwd) as workdir:
            return self._run(spec, workdir)

    def cancel(self) -> None:
        self._cancel_event.set()
        with self._lock:
            live = list(self._live)
            self._cancelled_pids.update(proc.pid for proc in live)
        if live:
            log.warning("Terminating %d in-flight compiler process(es)", len(live))
        for proc in live:
            _kill(proc)

    def _run(self, spec: InvocationSpec, workdir: Path) -> InvocationResult:
        env = os.environ.copy()
        if self._env:
            env.update(self._env)
        start = time.perf_counter()
        try:
            proc = subprocess.Popen(
                list(spec.argv),
                cwd=str(workdir),
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                start_new_session=_POSIX,
            )
        except OSError as exc:
            duration = time.perf_counter() - start
            log.warning("Failed to launch %s: %s", spec.argv[0], exc)
            return InvocationResult(returncode=None, duration_s=duration, launch_error=str(exc))
        with self._lock:
            self._live.add(proc)
        if self._cancel_event.is_set():
            # cancel() may have run between Popen and registration
            with self._lock:
                self._cancelled_pids.add(proc.pid)
            _kill(proc)
        timed_out = False
        try:
            _, stderr = proc.communicate(timeout=spec.timeout_s)
        except subprocess.TimeoutExpired:
            timed_out = True
            log.warning("Timed out after %.1fs: %s", spec.timeout_s, spec.command_line())
            _kill(proc)
            _, stderr = proc.communicate()
        finally:
            with self._lock:
                self._live.discard(proc)
                cancelled = proc.pid in self._cancelled_pids
        duration = time.perf_counter() - start
        return InvocationResult(
            returncode=None if timed_out else proc.returncode,
            stderr=stderr or "",
            duration_s=duration,
            timed_out=timed_out,
            cancelled=cancelled,
        )


@contextlib.contextmanager
def _working_dir(cwd: Optional[Path]) -> Iterator[Path]:
    if cwd is not None:
        yield Path(cwd)
        return
    with tempfile.TemporaryDirectory(prefix="cctest-") as scratch:
        yield Path(scratch)


def _kill(proc: subprocess.Popen) -> None:
    """Kill the child and anything it spawned."""

    try:
        if _POSIX:
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except (ProcessLookupError, PermissionError):
        pass
