"""Snapshot capture and comparison."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from gitdiff_watcher.domain.models import PatternSnapshot
from gitdiff_watcher.io.hashing import hash_files


def take_snapshot(root: Path, head_sha: str, relative_paths: Iterable[str]) -> PatternSnapshot:
    return PatternSnapshot(head_sha=head_sha, file_hashes=hash_files(root, relative_paths))


def changed_files(before: dict[str, str], after: dict[str, str]) -> list[str]:
    """Paths added, modified or removed between two hash maps, sorted."""
    changed: set[str] = set()
    for path, old_hash in before.items():
        if after.get(path) != old_hash:
            changed.add(path)
    for path in after:
        if path not in before:
            changed.add(path)
    return sorted(changed)
