"""Data models describing a harness run."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Sequence, Tuple

from cctest.core.results import DEFAULT_EXCERPT_LINES

DEFAULT_TIMEOUT_S = 60.0


@dataclass(frozen=True)
class CrateArtifact:
    """An extern crate linked into every fixture.

    ``artifact`` may be a glob pattern; cargo names its outputs with a
    content hash (``libfoo-1a2b3c4d.rlib``).
    """

    name: str
    artifact: str


@dataclass(frozen=True)
class RunPlan:
    fixture_dir: Path
    search_dir: Path
    library: CrateArtifact
    derive: CrateArtifact
    base_dir: Path
    extensions: Sequence[str] = (".rs",)
    compiler: Sequence[str] = ("rustc",)
    extra_args: Sequence[str] = field(default_factory=tuple)
    timeout_s: float = DEFAULT_TIMEOUT_S
    jobs: Optional[int] = None
    strict: bool = False
    diagnostics: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    crash_exit_codes: Sequence[int] = (101,)
    filters: Sequence[str] = field(default_factory=tuple)
    excerpt_lines: int = DEFAULT_EXCERPT_LINES
    source: Optional[Path] = None


@dataclass(frozen=True)
class PlanOptions:
    """Command-line overrides applied on top of a loaded plan."""

    fixture_dir: Optional[str] = None
    jobs: Optional[int] = None
    timeout_s: Optional[float] = None
    strict: Optional[bool] = None
    filters: Sequence[str] = field(default_factory=tuple)
    compiler: Optional[str] = None
    require_fixtures: bool = False
