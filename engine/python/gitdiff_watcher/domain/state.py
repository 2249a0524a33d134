"""State file loading and saving.

The state file maps glob patterns to their last snapshot. It is shared by every
process watching the same repository, so saves take the lockfile from
``io.locks`` around a full read-modify-write and replace the file atomically.
Loads never raise: a missing or damaged file reads as "no prior state".
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from gitdiff_watcher.domain.models import PatternSnapshot
from gitdiff_watcher.domain.schemas import is_valid, validate_schema
from gitdiff_watcher.io.files import read_json, write_json
from gitdiff_watcher.io.locks import DEFAULT_BACKOFF, DEFAULT_MAX_ATTEMPTS, file_lock


def read_state_file(state_path: Path) -> dict[str, Any]:
    """Return the raw state mapping, or an empty one if it cannot be used."""
    try:
        return read_json(state_path)
    except (OSError, TypeError, UnicodeDecodeError, json.JSONDecodeError):
        return {}


def _read_for_merge(state_path: Path) -> dict[str, Any]:
    # Damaged content must not block future saves; other read errors are fatal.
    try:
        return read_json(state_path)
    except (FileNotFoundError, TypeError, UnicodeDecodeError, json.JSONDecodeError):
        return {}


def load_snapshot(state_path: Path, pattern: str) -> PatternSnapshot | None:
    entry = read_state_file(state_path).get(pattern)
    if entry is None or not is_valid("pattern_state", entry):
        return None
    return PatternSnapshot.from_dict(entry)


def save_snapshot(
    state_path: Path,
    pattern: str,
    snapshot: PatternSnapshot,
    *,
    lock_attempts: int = DEFAULT_MAX_ATTEMPTS,
    lock_backoff: tuple[float, float] = DEFAULT_BACKOFF,
) -> None:
    """Merge ``snapshot`` under ``pattern``; other patterns are kept as stored."""
    entry = snapshot.to_dict()
    validate_schema("pattern_state", entry)
    with file_lock(state_path, max_attempts=lock_attempts, backoff=lock_backoff):
        state = _read_for_merge(state_path)
        state[pattern] = entry
        write_json(state_path, state)

