"""Core models and pipeline stages exposed at the package level."""
from .discovery import discover_fixtures
from .errors import CctestError, ConfigurationError, DiscoveryError, PlanError
from .evaluator import evaluate
from .invocation import DependencySet, ExternCrate, InvocationBuilder, resolve_dependencies
from .models import (
    Expectation,
    FailureReason,
    Fixture,
    InvocationResult,
    InvocationSpec,
    Verdict,
    classify_name,
)
from .results import RunSummary
from .runner import HarnessRunner

__all__ = [
    "CctestError",
    "ConfigurationError",
    "DependencySet",
    "DiscoveryError",
    "Expectation",
    "ExternCrate",
    "FailureReason",
    "Fixture",
    "HarnessRunner",
    "InvocationBuilder",
    "InvocationResult",
    "InvocationSpec",
    "PlanError",
    "RunSummary",
    "Verdict",
    "classify_name",
    "discover_fixtures",
    "evaluate",
    "resolve_dependencies",
]
