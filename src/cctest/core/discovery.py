"""Fixture discovery and classification."""
from __future__ import annotations

import fnmatch
import logging
from pathlib import Path
from typing import Iterator, List, Mapping, Optional, Sequence, Tuple

from .errors import DiscoveryError
from .models import Expectation, Fixture, classify_name

log = logging.getLogger(__name__)

MARKER_SUFFIX = ".stderr"


def discover_fixtures(
    root: Path,
    extensions: Sequence[str] = (".rs",),
    *,
    filters: Sequence[str] = (),
    markers: Optional[Mapping[str, Sequence[str]]] = None,
) -> Iterator[Fixture]:
    """Yield fixtures under ``root`` in lexicographic filename order.

    The directory is listed before this function returns, so an unreadable
    root raises :class:`DiscoveryError` immediately rather than on first
    iteration. Files whose names start with neither ``succ`` nor ``fail``
    are skipped.
    """

    root = Path(root)
    if not root.exists():
        raise DiscoveryError(f"Fixture directory does not exist: {root}")
    if not root.is_dir():
        raise DiscoveryError(f"Fixture path is not a directory: {root}")
    try:
        entries = sorted((entry for entry in root.iterdir() if entry.is_file()), key=lambda p: p.name)
    except OSError as exc:
        raise DiscoveryError(f"Cannot read fixture directory {root}: {exc}") from exc
    candidates = [entry for entry in entries if entry.suffix in extensions]
    log.debug("Found %d candidate file(s) in %s", len(candidates), root)
    return _iter_fixtures(candidates, filters, markers or {})


def _iter_fixtures(
    candidates: List[Path],
    filters: Sequence[str],
    markers: Mapping[str, Sequence[str]],
) -> Iterator[Fixture]:
    for path in candidates:
        expectation = classify_name(path.name)
        if expectation is None:
            log.debug("Skipping %s: no succ/fail prefix", path.name)
            continue
        if filters and not any(fnmatch.fnmatchcase(path.name, pattern) for pattern in filters):
            continue
        yield Fixture(
            path=path.resolve(),
            expectation=expectation,
            markers=_markers_for(path, expectation, markers),
        )


def _markers_for(
    path: Path, expectation: Expectation, configured: Mapping[str, Sequence[str]]
) -> Tuple[str, ...]:
    if expectation is not Expectation.MUST_FAIL:
        return tuple()
    if path.name in configured:
        return tuple(configured[path.name])
    sidecar = path.with_suffix(MARKER_SUFFIX)
    if not sidecar.is_file():
        return tuple()
    try:
        text = sidecar.read_text(encoding="utf-8")
    except OSError as exc:
        raise DiscoveryError(f"Cannot read diagnostic markers {sidecar}: {exc}") from exc
    return tuple(line.strip() for line in text.splitlines() if line.strip())
