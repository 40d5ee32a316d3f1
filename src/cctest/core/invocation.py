"""Build compiler command lines for fixtures."""
from __future__ import annotations

import glob
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence, Tuple

from .errors import ConfigurationError
from .models import Fixture, InvocationSpec

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExternCrate:
    name: str
    path: Path


@dataclass(frozen=True)
class DependencySet:
    """Resolved, validated dependency locations shared by every invocation."""

    search_dir: Path
    externs: Tuple[ExternCrate, ...]


def resolve_artifact(pattern: str) -> Path:
    """Resolve an artifact path or glob to one existing file.

    When a glob matches several files (stale builds leave older hashes
    behind) the most recently modified one wins.
    """

    if not glob.has_magic(pattern):
        path = Path(pattern)
        if not path.is_file():
            raise ConfigurationError(f"Dependency artifact not found: {path}")
        return path
    matches = [Path(match) for match in glob.glob(pattern) if Path(match).is_file()]
    if not matches:
        raise ConfigurationError(f"No dependency artifact matches {pattern}")
    chosen = max(matches, key=lambda p: (p.stat().st_mtime, p.name))
    if len(matches) > 1:
        log.debug("Artifact pattern %s matched %d files; using %s", pattern, len(matches), chosen)
    return chosen


def resolve_dependencies(search_dir: Path, crates: Sequence[Tuple[str, str]]) -> DependencySet:
    """Validate dependency locations eagerly; raises :class:`ConfigurationError`."""

    search_dir = Path(search_dir)
    if not search_dir.is_dir():
        raise ConfigurationError(f"Dependency search directory not found: {search_dir}")
    externs = tuple(ExternCrate(name=name, path=resolve_artifact(pattern)) for name, pattern in crates)
    for extern in externs:
        log.info("Linking %s from %s", extern.name, extern.path)
    return DependencySet(search_dir=search_dir, externs=externs)


class InvocationBuilder:
    """Turns fixtures into :class:`InvocationSpec` values.

    Only the fixture path is used; the fixture's contents are never read.
    """

    def __init__(
        self,
        compiler: Sequence[str],
        dependencies: DependencySet,
        *,
        extra_args: Sequence[str] = (),
        timeout_s: float,
    ) -> None:
        if not compiler:
            raise ConfigurationError("compiler command cannot be empty")
        if timeout_s <= 0:
            raise ConfigurationError(f"timeout must be positive, got {timeout_s}")
        self._compiler = tuple(compiler)
        self._dependencies = dependencies
        self._extra_args = tuple(extra_args)
        self._timeout_s = timeout_s

    def dependency_args(self) -> Tuple[str, ...]:
        args = ["-L", f"dependency={self._dependencies.search_dir}"]
        for extern in self._dependencies.externs:
            args.extend(["--extern", f"{extern.name}={extern.path}"])
        return tuple(args)

    def build(self, fixture: Fixture) -> InvocationSpec:
        argv = self._compiler + self.dependency_args() + self._extra_args + (str(fixture.path),)
        return InvocationSpec(argv=argv, timeout_s=self._timeout_s)
