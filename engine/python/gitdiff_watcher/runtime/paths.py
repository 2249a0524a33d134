"""Filesystem path helpers for the watcher's private files."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


STATE_DIRNAME = ".claude"
STATE_FILENAME = "gitdiff-watcher.state.json"
STATE_FILE_ENV = "GITDIFF_WATCHER_STATE_FILE"
EVENT_LOG_ENV = "GITDIFF_WATCHER_EVENT_LOG"


@dataclass(frozen=True)
class Layout:
    """Resolved locations for one repository."""

    repo_root: Path
    state_file: Path
    event_log: Path | None = None


def default_state_path(repo_root: Path) -> Path:
    return repo_root / STATE_DIRNAME / STATE_FILENAME


def _resolve_against(repo_root: Path, raw: str | Path) -> Path:
    candidate = Path(raw).expanduser()
    if not candidate.is_absolute():
        candidate = repo_root / candidate
    return candidate.resolve()


def resolve_layout(
    repo_root: Path,
    state_file: str | Path | None = None,
    event_log: str | Path | None = None,
) -> Layout:
    """Resolve layout from explicit arguments, then environment, then defaults.

    Relative paths are taken relative to the repository root so that hooks
    fired from any subdirectory agree on the same files.
    """
    root = repo_root.resolve()

    state_arg = state_file if state_file is not None else os.environ.get(STATE_FILE_ENV) or None
    resolved_state = default_state_path(root) if state_arg is None else _resolve_against(root, state_arg)

    log_arg = event_log if event_log is not None else os.environ.get(EVENT_LOG_ENV) or None
    resolved_log = None if log_arg is None else _resolve_against(root, log_arg)

    return Layout(repo_root=root, state_file=resolved_state, event_log=resolved_log)
