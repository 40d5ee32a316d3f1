"""Compiler driver exports."""
from .base import CompilerDriver
from .subprocess_driver import SubprocessDriver

__all__ = [
    "CompilerDriver",
    "SubprocessDriver",
]
