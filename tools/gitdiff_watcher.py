#!/usr/bin/env python3
"""Thin launcher for the gitdiff-watcher CLI.

Lets hooks call the watcher from a checkout where the package is not
installed, e.g. ``python tools/gitdiff_watcher.py --on '*.py' --exec 'ruff check'``.
"""

from __future__ import annotations

import sys
from pathlib import Path


def _bootstrap_path() -> None:
    engine_python = str(Path(__file__).resolve().parent.parent / "engine" / "python")
    if engine_python not in sys.path:
        sys.path.insert(0, engine_python)


_bootstrap_path()

from gitdiff_watcher.cli.main import main  # noqa: E402


if __name__ == "__main__":
    raise SystemExit(main())
