"""CLI parser wiring."""

from __future__ import annotations

import argparse
import math

from gitdiff_watcher.cli import handlers
from gitdiff_watcher.domain.models import DEFAULT_SEPARATOR, DEFAULT_TIMEOUT_SECONDS
from gitdiff_watcher.runtime.paths import EVENT_LOG_ENV, STATE_FILE_ENV


_ESCAPES = {"\\n": "\n", "\\t": "\t", "\\0": "\0"}


def _seconds(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number of seconds: {raw!r}") from None
    if not math.isfinite(value) or value <= 0:
        raise argparse.ArgumentTypeError(f"timeout must be > 0 seconds, got {raw!r}")
    return value


def _separator(raw: str) -> str:
    # Shell users usually cannot type a literal newline, so accept the escape.
    return _ESCAPES.get(raw, raw)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitdiff-watcher",
        description="Run commands when files matching a glob pattern change between executions",
    )
    parser.add_argument("--on", required=True, metavar="GLOB", help="Glob pattern to match changed files against")
    parser.add_argument(
        "--exec",
        action="append",
        required=True,
        metavar="COMMAND",
        help="Command to execute (repeatable, run in parallel)",
    )
    parser.add_argument(
        "--exec-timeout",
        type=_seconds,
        default=DEFAULT_TIMEOUT_SECONDS,
        metavar="SECONDS",
        help="Timeout per command in seconds (default: %(default)g)",
    )
    parser.add_argument(
        "--files-separator",
        type=_separator,
        default=DEFAULT_SEPARATOR,
        metavar="SEP",
        help="Separator used in ON_CHANGES_RUN_* variables (default: newline)",
    )
    parser.add_argument(
        "--state-file",
        help=f"State file path (default: .claude/gitdiff-watcher.state.json or {STATE_FILE_ENV} env var)",
    )
    parser.add_argument(
        "--event-log",
        help=f"Append JSONL watch events to this path (default: {EVENT_LOG_ENV} env var, disabled if unset)",
    )
    parser.add_argument("--root", default=".", help="Directory inside the git repository")
    parser.add_argument("--json", action="store_true", help="Print the outcome as JSON on stdout")
    parser.set_defaults(handler=handlers.cmd_watch)
    return parser
