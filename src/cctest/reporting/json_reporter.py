"""JSON reporter emitting structured run results."""
from __future__ import annotations

import datetime as dt
import json
import pathlib
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import click
from jsonschema import validate

from cctest.core.models import Verdict
from cctest.core.results import DEFAULT_EXCERPT_LINES, RunSummary

from .base import Reporter, excerpt
from .schema import JSON_SCHEMA_V1, SCHEMA_VERSION

if TYPE_CHECKING:
    from cctest.plan.models import RunPlan


class JsonReporter(Reporter):
    """Writes results as JSON validated against the schema.

    With no ``path`` the document goes to stdout.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self._path = pathlib.Path(path) if path else None
        self._records: List[Dict[str, Any]] = []
        self._plan: RunPlan | None = None

    def on_start(self, plan: RunPlan, total: int) -> None:
        self._plan = plan
        self._records.clear()

    def on_verdict(self, verdict: Verdict, index: int, total: int) -> None:
        excerpt_lines = self._plan.excerpt_lines if self._plan else DEFAULT_EXCERPT_LINES
        self._records.append(_verdict_to_dict(verdict, excerpt_lines))

    def on_complete(self, summary: RunSummary) -> None:
        payload = build_payload(summary, self._records, self._plan)
        validate(instance=payload, schema=JSON_SCHEMA_V1)
        text = json.dumps(payload, indent=2)
        if self._path is None:
            click.echo(text)
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(text, encoding="utf-8")
        except OSError as exc:  # pragma: no cover - filesystem protection
            raise RuntimeError(f"Failed to write JSON report to {self._path}: {exc}") from exc
        click.echo(f"JSON report written to {self._path}", err=True)


def build_payload(
    summary: RunSummary, records: List[Dict[str, Any]], plan: RunPlan | None
) -> Dict[str, Any]:
    summary_block: Dict[str, Any] = {
        "total": summary.total,
        "passed": summary.passed,
        "failed": summary.failed,
        "not_run": summary.not_run,
        "interrupted": summary.interrupted,
        "duration_s": summary.duration_s,
        "reasons": {reason.value: count for reason, count in sorted(summary.reasons.items(), key=lambda i: i[0].value)},
    }
    if plan is not None:
        summary_block["fixture_dir"] = str(plan.fixture_dir)
        summary_block["strict"] = plan.strict
    return {
        "schema_version": SCHEMA_VERSION,
        "generated_at": dt.datetime.now(dt.timezone.utc).replace(tzinfo=None).isoformat(timespec="seconds") + "Z",
        "summary": summary_block,
        "fixtures": sorted(records, key=lambda record: record["path"]),
    }


def _verdict_to_dict(verdict: Verdict, excerpt_lines: int) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "path": str(verdict.fixture.path),
        "expectation": verdict.fixture.expectation.value,
        "status": verdict.status,
        "reason": verdict.reason.value if verdict.reason else None,
        "actual": verdict.actual,
        "duration_ms": verdict.duration_s * 1000,
        "command": [str(part) for part in verdict.command],
    }
    if verdict.detail:
        record["detail"] = verdict.detail
    if not verdict.passed and verdict.diagnostic:
        record["diagnostic"] = "\n".join(excerpt(verdict.diagnostic, excerpt_lines))
    return record
