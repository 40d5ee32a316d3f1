"""Compiler driver abstraction."""
from __future__ import annotations

from cctest.core.models import InvocationResult, InvocationSpec


class CompilerDriver:
    """Narrow interface between the harness and a toolchain.

    ``compile`` must return an :class:`InvocationResult` for every spec;
    launch failures and timeouts are values, not exceptions.
    """

    name: str = ""

    def compile(self, spec: InvocationSpec) -> InvocationResult:
        raise NotImplementedError

    def cancel(self) -> None:
        """Stop in-flight invocations and refuse new ones."""
