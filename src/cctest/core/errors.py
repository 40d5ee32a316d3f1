"""Exception hierarchy for harness-level failures.

Fixture-level problems (a compile that fails when it should succeed, a
timeout, a compiler that cannot be launched) are never raised; they are
recorded as verdicts. Only problems that make the whole run meaningless
surface as exceptions.
"""
from __future__ import annotations


class CctestError(Exception):
    """Base class for errors raised by cctest."""


class ConfigurationError(CctestError):
    """The harness itself is misconfigured; no fixture should be compiled."""


class PlanError(ConfigurationError, ValueError):
    """A plan file could not be parsed or failed schema validation."""


class DiscoveryError(ConfigurationError):
    """The fixture directory could not be read."""
