"""JSON schemas for persisted state and event log records."""

from __future__ import annotations

from typing import Any

from jsonschema import Draft202012Validator


class SchemaValidationError(ValueError):
    """Raised when artifact validation fails."""


PATTERN_STATE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["headSha", "fileHashes"],
    "properties": {
        "headSha": {"type": "string"},
        "fileHashes": {
            "type": "object",
            "additionalProperties": {"type": "string"},
        },
    },
}

EVENT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["id", "ts", "type", "pattern", "payload"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "ts": {"type": "string", "minLength": 1},
        "type": {"type": "string", "pattern": r"^watch\.[a-z_]+$"},
        "pattern": {"type": ["string", "null"]},
        "payload": {"type": "object"},
    },
}

SCHEMAS: dict[str, dict[str, Any]] = {
    "pattern_state": PATTERN_STATE_SCHEMA,
    "event": EVENT_SCHEMA,
}

_VALIDATORS: dict[str, Draft202012Validator] = {
    name: Draft202012Validator(schema) for name, schema in SCHEMAS.items()
}


def schema_errors(schema_name: str, data: Any) -> list[str]:
    validator = _VALIDATORS.get(schema_name)
    if validator is None:
        raise SchemaValidationError(f"Unknown schema: {schema_name}")
    errors = sorted(validator.iter_errors(data), key=lambda error: list(error.absolute_path))
    rows: list[str] = []
    for error in errors:
        location = "/".join(str(part) for part in error.absolute_path) or "<root>"
        rows.append(f"{location}: {error.message}")
    return rows


def is_valid(schema_name: str, data: Any) -> bool:
    return not schema_errors(schema_name, data)


def validate_schema(schema_name: str, data: Any) -> None:
    errors = schema_errors(schema_name, data)
    if errors:
        raise SchemaValidationError(f"Schema '{schema_name}' validation failed: " + "; ".join(errors))
