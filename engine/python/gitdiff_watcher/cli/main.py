"""gitdiff-watcher CLI entrypoint."""

from __future__ import annotations

import argparse
import json
import sys
import threading
from pathlib import Path
from typing import Any, Callable

from gitdiff_watcher.cli.parser import build_parser
from gitdiff_watcher.domain.models import WatchOutcome
from gitdiff_watcher.eventlog.store import append_event
from gitdiff_watcher.runtime.git import GitError, repo_root
from gitdiff_watcher.runtime.paths import resolve_layout
from gitdiff_watcher.runtime.reporting import fatal_line, format_failures, summary_line


STDIN_GRACE_SECONDS = 1.0


def _print(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True))


def _consume(stream: Any) -> None:
    try:
        source = getattr(stream, "buffer", stream)
        while source.read(65536):
            pass
    except (OSError, ValueError):
        pass


def _drain_stdin(timeout: float = STDIN_GRACE_SECONDS) -> None:
    """Discard hook context piped on stdin without blocking past ``timeout``."""
    stream = sys.stdin
    if stream is None:
        return
    try:
        if stream.closed or stream.isatty():
            return
    except (OSError, ValueError):
        return
    reader = threading.Thread(target=_consume, args=(stream,), name="stdin-drain", daemon=True)
    reader.start()
    reader.join(timeout)


def _event_log_path(args: argparse.Namespace) -> Path | None:
    start = Path(args.root)
    try:
        root = repo_root(start)
    except GitError:
        root = start
    return resolve_layout(root, event_log=args.event_log).event_log


def _log_error(args: argparse.Namespace, exc: BaseException) -> None:
    try:
        append_event(
            _event_log_path(args),
            event_type="watch.error",
            pattern=args.on,
            payload={"error": str(exc), "kind": type(exc).__name__},
        )
    except Exception:  # noqa: BLE001
        pass


def _render(outcome: WatchOutcome, as_json: bool) -> None:
    if as_json:
        _print(outcome.to_dict())
        return
    if outcome.status in {"baseline", "failed"}:
        sys.stderr.write(summary_line(outcome) + "\n")
    if outcome.status == "failed":
        sys.stderr.write(format_failures(outcome.results))
    sys.stderr.flush()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _drain_stdin()

    handler: Callable[[argparse.Namespace], WatchOutcome] = args.handler
    try:
        outcome = handler(args)
    except Exception as exc:  # noqa: BLE001
        _log_error(args, exc)
        if args.json:
            _print({"status": "error", "pattern": args.on, "error": str(exc)})
        else:
            sys.stderr.write(fatal_line(str(exc)) + "\n")
        return 1

    _render(outcome, args.json)
    return 0 if outcome.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
