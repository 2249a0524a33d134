"""JSONL-backed watch event log."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from uuid import uuid4

from gitdiff_watcher.domain.schemas import validate_schema
from gitdiff_watcher.io.jsonl import append_jsonl
from gitdiff_watcher.runtime.time import utc_now_iso


def append_event(
    path: Path | None,
    *,
    event_type: str,
    pattern: str | None,
    payload: dict[str, Any] | None = None,
) -> dict[str, Any] | None:
    """Append one event; a ``None`` path means logging is disabled."""
    if path is None:
        return None
    event = {
        "id": str(uuid4()),
        "ts": utc_now_iso(),
        "type": event_type,
        "pattern": pattern,
        "pid": os.getpid(),
        "payload": payload or {},
    }
    validate_schema("event", event)
    append_jsonl(path, event)
    return event
