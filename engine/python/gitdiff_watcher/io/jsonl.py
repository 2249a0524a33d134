"""Append-only JSONL helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from gitdiff_watcher.io.files import ensure_dir


def append_jsonl(path: Path, item: dict[str, Any]) -> None:
    ensure_dir(path.parent)
    line = json.dumps(item, ensure_ascii=False, sort_keys=True) + "\n"
    # One write call per record keeps concurrent appenders from interleaving lines.
    with path.open("a", encoding="utf-8") as handle:
        handle.write(line)
