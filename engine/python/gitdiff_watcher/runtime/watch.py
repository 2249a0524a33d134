"""Watch pipeline: snapshot, diff, persist, then run commands on change."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

from gitdiff_watcher.domain.models import RepoContext, WatchConfig, WatchOutcome
from gitdiff_watcher.domain.schemas import SchemaValidationError
from gitdiff_watcher.domain.state import load_snapshot, save_snapshot
from gitdiff_watcher.eventlog.store import append_event
from gitdiff_watcher.io.locks import DEFAULT_BACKOFF, DEFAULT_MAX_ATTEMPTS
from gitdiff_watcher.io.runner import CommandResult, run_all
from gitdiff_watcher.runtime.matching import filter_paths
from gitdiff_watcher.runtime.paths import resolve_layout
from gitdiff_watcher.runtime.snapshot import changed_files, take_snapshot


DIFF_FILES_VAR = "ON_CHANGES_RUN_DIFF_FILES"
CHANGED_FILES_VAR = "ON_CHANGES_RUN_CHANGED_FILES"


def command_variables(config: WatchConfig, tracked: list[str], changed: list[str]) -> dict[str, str]:
    return {
        DIFF_FILES_VAR: config.separator.join(tracked),
        CHANGED_FILES_VAR: config.separator.join(changed),
    }


def _result_summary(result: CommandResult) -> dict[str, Any]:
    return {
        "command": result.command,
        "exit_code": result.exit_code,
        "timed_out": result.timed_out,
        "duration_ms": result.duration_ms,
    }


def _record(
    path: Path | None,
    notify: Callable[[str], None] | None,
    *,
    event_type: str,
    pattern: str,
    payload: dict[str, Any],
) -> None:
    # Event log failures never abort a watch cycle.
    try:
        append_event(path, event_type=event_type, pattern=pattern, payload=payload)
    except (OSError, SchemaValidationError) as exc:
        if notify is not None:
            notify(f"gitdiff-watcher: could not record {event_type} in {path}: {exc}")


def run_watch(
    config: WatchConfig,
    context: RepoContext,
    *,
    notify: Callable[[str], None] | None = None,
    lock_attempts: int = DEFAULT_MAX_ATTEMPTS,
    lock_backoff: tuple[float, float] = DEFAULT_BACKOFF,
) -> WatchOutcome:
    """Run one watch cycle for ``config.pattern``.

    The first observation of a pattern only stores a baseline. Later runs
    always advance the stored snapshot before any command starts, so the state
    lock is never held while user commands execute.
    """
    layout = resolve_layout(context.root, config.state_file, config.event_log)
    tracked = filter_paths(config.pattern, context.candidate_files)
    _record(
        layout.event_log,
        notify,
        event_type="watch.started",
        pattern=config.pattern,
        payload={"candidates": len(context.candidate_files), "tracked": len(tracked)},
    )
    current = take_snapshot(layout.repo_root, context.head_sha, tracked)
    previous = load_snapshot(layout.state_file, config.pattern)

    if previous is None:
        save_snapshot(
            layout.state_file,
            config.pattern,
            current,
            lock_attempts=lock_attempts,
            lock_backoff=lock_backoff,
        )
        _record(
            layout.event_log,
            notify,
            event_type="watch.baseline",
            pattern=config.pattern,
            payload={"head_sha": context.head_sha, "tracked_files": tracked},
        )
        return WatchOutcome(status="baseline", pattern=config.pattern, tracked_files=tracked, changed_files=[])

    changed = changed_files(previous.file_hashes, current.file_hashes)
    save_snapshot(
        layout.state_file,
        config.pattern,
        current,
        lock_attempts=lock_attempts,
        lock_backoff=lock_backoff,
    )

    if not changed:
        _record(
            layout.event_log,
            notify,
            event_type="watch.unchanged",
            pattern=config.pattern,
            payload={"head_sha": context.head_sha, "tracked_files": tracked},
        )
        return WatchOutcome(status="unchanged", pattern=config.pattern, tracked_files=tracked, changed_files=[])

    if notify is not None:
        notify(
            f"gitdiff-watcher: {len(changed)} file(s) changed matching \"{config.pattern}\", "
            f"running {len(config.commands)} command(s)"
        )
    results = run_all(
        list(config.commands),
        timeout=config.timeout,
        variables=command_variables(config, tracked, changed),
        cwd=layout.repo_root,
    )
    status = "failed" if any(not result.ok for result in results) else "passed"
    _record(
        layout.event_log,
        notify,
        event_type="watch.completed",
        pattern=config.pattern,
        payload={
            "status": status,
            "head_sha": context.head_sha,
            "changed_files": changed,
            "results": [_result_summary(result) for result in results],
        },
    )
    return WatchOutcome(
        status=status,
        pattern=config.pattern,
        tracked_files=tracked,
        changed_files=changed,
        results=results,
    )
