"""YAML loader and validation for harness plan files."""
from __future__ import annotations

import logging
import shlex
import sys
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import yaml
from jsonschema import Draft7Validator

from cctest.core.errors import PlanError

from .models import DEFAULT_EXCERPT_LINES, DEFAULT_TIMEOUT_S, CrateArtifact, RunPlan

log = logging.getLogger(__name__)

PLAN_FILENAME = "cctest.yaml"

DEFAULT_FIXTURE_DIR = "tests/compile"
DEFAULT_SEARCH_DIR = "target/debug/deps"
DEFAULT_LIBRARY = "luther"
DEFAULT_DERIVE = "luther_derive"


def _dylib_suffix() -> str:
    if sys.platform == "darwin":
        return ".dylib"
    if sys.platform.startswith("win"):
        return ".dll"
    return ".so"


def _dylib_prefix() -> str:
    return "" if sys.platform.startswith("win") else "lib"


def default_plan(base_dir: Path) -> RunPlan:
    """Plan used when no plan file exists: a cargo debug build of the library."""

    base = Path(base_dir).resolve()
    deps = base / DEFAULT_SEARCH_DIR
    return RunPlan(
        fixture_dir=base / DEFAULT_FIXTURE_DIR,
        search_dir=deps,
        library=CrateArtifact(
            name=DEFAULT_LIBRARY,
            artifact=str(deps / f"lib{DEFAULT_LIBRARY}-*.rlib"),
        ),
        derive=CrateArtifact(
            name=DEFAULT_DERIVE,
            artifact=str(deps / f"{_dylib_prefix()}{DEFAULT_DERIVE}-*{_dylib_suffix()}"),
        ),
        base_dir=base,
    )


def find_plan_file(base_dir: Path) -> Optional[Path]:
    candidate = Path(base_dir) / PLAN_FILENAME
    if candidate.is_file():
        return candidate
    return None


def load_plan(path: Optional[str] = None, *, base_dir: Optional[Path] = None) -> RunPlan:
    """Load a plan file, falling back to ``cctest.yaml`` or the defaults."""

    base = Path(base_dir or Path.cwd()).resolve()
    plan_path = Path(path).expanduser().resolve() if path else find_plan_file(base)
    if plan_path is None:
        log.debug("No %s found in %s; using default plan", PLAN_FILENAME, base)
        return default_plan(base)
    log.debug("Loading plan from %s", plan_path)
    try:
        raw = yaml.safe_load(plan_path.read_text(encoding="utf-8")) or {}
    except OSError as exc:
        raise PlanError(f"Cannot read plan file {plan_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise PlanError(f"Plan file {plan_path} is not valid YAML: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise PlanError("Plan file must contain a mapping at the top level")
    return parse_plan(raw, plan_path.parent, source=plan_path)


def parse_plan(raw: Mapping[str, Any], base: Path, *, source: Optional[Path] = None) -> RunPlan:
    errors = sorted(_validator.iter_errors(raw), key=lambda e: list(map(str, e.path)))
    if errors:
        messages = "; ".join(f"{'/'.join(map(str, err.path)) or 'root'}: {err.message}" for err in errors)
        raise PlanError(f"Plan schema validation failed: {messages}")
    defaults = default_plan(base)
    search_dir = _resolve_path(raw.get("search_dir"), base) or defaults.search_dir
    library = _parse_crate(raw.get("library"), base, defaults.library)
    derive = _parse_crate(raw.get("derive"), base, defaults.derive)
    if library.name == derive.name:
        raise PlanError(f"library and derive crates must have distinct names (both '{library.name}')")
    jobs = raw.get("jobs")
    return RunPlan(
        fixture_dir=_resolve_path(raw.get("fixtures"), base) or defaults.fixture_dir,
        search_dir=search_dir,
        library=library,
        derive=derive,
        base_dir=base,
        extensions=_parse_extensions(raw.get("extensions")),
        compiler=_normalize_command(raw.get("compiler", "rustc")),
        extra_args=tuple(str(arg) for arg in raw.get("args", []) or []),
        timeout_s=float(raw.get("timeout", DEFAULT_TIMEOUT_S)),
        jobs=int(jobs) if jobs is not None else None,
        strict=bool(raw.get("strict", False)),
        diagnostics=_parse_diagnostics(raw.get("diagnostics")),
        crash_exit_codes=tuple(int(code) for code in raw.get("crash_exit_codes", [101])),
        filters=tuple(str(pattern) for pattern in raw.get("filters", []) or []),
        excerpt_lines=int(raw.get("excerpt_lines", DEFAULT_EXCERPT_LINES)),
        source=source,
    )


def _resolve_path(raw: Any, base: Path) -> Optional[Path]:
    if raw is None:
        return None
    path = Path(str(raw)).expanduser()
    if not path.is_absolute():
        path = base / path
    return path


def _parse_crate(raw: Any, base: Path, default: CrateArtifact) -> CrateArtifact:
    if raw is None:
        return default
    if isinstance(raw, str):
        return CrateArtifact(name=default.name, artifact=str(_resolve_path(raw, base)))
    name = str(raw.get("name", default.name)).strip()
    artifact = raw.get("artifact")
    return CrateArtifact(
        name=name,
        artifact=str(_resolve_path(artifact, base)) if artifact else default.artifact,
    )


def _parse_extensions(raw: Any) -> Tuple[str, ...]:
    if raw is None:
        return (".rs",)
    values = [raw] if isinstance(raw, str) else list(raw)
    extensions = []
    for value in values:
        text = str(value).strip()
        if not text:
            raise PlanError("extensions entries cannot be empty")
        extensions.append(text if text.startswith(".") else f".{text}")
    return tuple(extensions)


def _normalize_command(raw: Any) -> Tuple[str, ...]:
    if isinstance(raw, str):
        argv = tuple(shlex.split(raw))
    else:
        argv = tuple(str(part) for part in raw)
    if not argv:
        raise PlanError("compiler command cannot be empty")
    return argv


def _parse_diagnostics(raw: Any) -> Dict[str, Tuple[str, ...]]:
    markers: Dict[str, Tuple[str, ...]] = {}
    for name, value in (raw or {}).items():
        entries: Sequence[Any] = [value] if isinstance(value, str) else value
        cleaned = tuple(str(entry) for entry in entries if str(entry).strip())
        if not cleaned:
            raise PlanError(f"diagnostics for '{name}' cannot be empty")
        markers[str(name)] = cleaned
    return markers


_COMMAND = {
    "oneOf": [
        {"type": "string", "minLength": 1},
        {"type": "array", "minItems": 1, "items": {"type": "string"}},
    ]
}

_CRATE = {
    "oneOf": [
        {"type": "string", "minLength": 1},
        {
            "type": "object",
            "properties": {
                "name": {"type": "string", "minLength": 1},
                "artifact": {"type": "string", "minLength": 1},
            },
            "additionalProperties": False,
        },
    ]
}

PLAN_SCHEMA = {
    "type": "object",
    "properties": {
        "fixtures": {"type": "string", "minLength": 1},
        "extensions": {
            "oneOf": [
                {"type": "string"},
                {"type": "array", "minItems": 1, "items": {"type": "string"}},
            ]
        },
        "compiler": _COMMAND,
        "search_dir": {"type": "string", "minLength": 1},
        "library": _CRATE,
        "derive": _CRATE,
        "args": {"type": "array", "items": {"type": "string"}},
        "timeout": {"type": "number", "exclusiveMinimum": 0},
        "jobs": {"type": "integer", "minimum": 1},
        "strict": {"type": "boolean"},
        "crash_exit_codes": {"type": "array", "items": {"type": "integer"}},
        "diagnostics": {
            "type": "object",
            "additionalProperties": {
                "oneOf": [
                    {"type": "string"},
                    {"type": "array", "items": {"type": "string"}},
                ]
            },
        },
        "filters": {"type": "array", "items": {"type": "string"}},
        "excerpt_lines": {"type": "integer", "minimum": 0},
    },
    "additionalProperties": False,
}
_validator = Draft7Validator(PLAN_SCHEMA)
