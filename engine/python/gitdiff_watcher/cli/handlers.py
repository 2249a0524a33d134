"""CLI command handlers."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from gitdiff_watcher.domain.models import WatchConfig, WatchOutcome
from gitdiff_watcher.runtime.git import resolve_context
from gitdiff_watcher.runtime.watch import run_watch


def _stderr(message: str) -> None:
    sys.stderr.write(message + "\n")
    sys.stderr.flush()


def config_from_args(args: argparse.Namespace) -> WatchConfig:
    return WatchConfig.create(
        args.on,
        args.exec,
        timeout=args.exec_timeout,
        separator=args.files_separator,
        state_file=args.state_file,
        event_log=args.event_log,
    )


def cmd_watch(args: argparse.Namespace) -> WatchOutcome:
    config = config_from_args(args)
    context = resolve_context(Path(args.root))
    return run_watch(config, context, notify=None if args.json else _stderr)
