"""Plan loading and execution."""

from .loader import default_plan, load_plan
from .models import CrateArtifact, PlanOptions, RunPlan
from .runner import apply_options, collect_fixtures, run_plan

__all__ = [
    "CrateArtifact",
    "PlanOptions",
    "RunPlan",
    "apply_options",
    "collect_fixtures",
    "default_plan",
    "load_plan",
    "run_plan",
]
