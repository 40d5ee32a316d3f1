"""JSON schema definition for reporter output."""
from __future__ import annotations

SCHEMA_VERSION = "1.0.0"

JSON_SCHEMA_V1 = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "cctest report",
    "type": "object",
    "required": ["schema_version", "generated_at", "summary", "fixtures"],
    "properties": {
        "schema_version": {"type": "string"},
        "generated_at": {"type": "string", "format": "date-time"},
        "summary": {
            "type": "object",
            "required": ["total", "passed", "failed", "not_run", "interrupted", "duration_s"],
            "properties": {
                "total": {"type": "integer", "minimum": 0},
                "passed": {"type": "integer", "minimum": 0},
                "failed": {"type": "integer", "minimum": 0},
                "not_run": {"type": "integer", "minimum": 0},
                "interrupted": {"type": "boolean"},
                "duration_s": {"type": "number"},
                "fixture_dir": {"type": "string"},
                "strict": {"type": "boolean"},
                "reasons": {
                    "type": "object",
                    "additionalProperties": {"type": "integer"},
                },
            },
        },
        "fixtures": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["path", "expectation", "status", "actual", "duration_ms"],
                "properties": {
                    "path": {"type": "string"},
                    "expectation": {"type": "string", "enum": ["succeed", "fail"]},
                    "status": {"type": "string", "enum": ["passed", "failed"]},
                    "reason": {"type": ["string", "null"]},
                    "actual": {"type": "string"},
                    "detail": {"type": "string"},
                    "duration_ms": {"type": "number"},
                    "command": {"type": "array", "items": {"type": "string"}},
                    "diagnostic": {"type": "string"},
                },
            },
        },
    },
}
