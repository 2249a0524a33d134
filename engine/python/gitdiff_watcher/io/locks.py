"""File lock primitives."""

from __future__ import annotations

import contextlib
import os
import random
import time
from pathlib import Path
from typing import Iterator

from gitdiff_watcher.io.files import ensure_dir
from gitdiff_watcher.runtime.time import utc_now_iso


DEFAULT_MAX_ATTEMPTS = 100
DEFAULT_BACKOFF = (0.01, 0.1)


class LockTimeoutError(RuntimeError):
    """Raised when a lock marker could not be created within the retry budget."""


def lock_path_for(path: Path) -> Path:
    return path.with_suffix(path.suffix + ".lock")


@contextlib.contextmanager
def file_lock(
    path: Path,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    backoff: tuple[float, float] = DEFAULT_BACKOFF,
) -> Iterator[Path]:
    """Coarse cross-process lock based on exclusive lockfile creation.

    Contention is retried with a random sleep drawn from ``backoff`` between
    attempts. After ``max_attempts`` failed attempts ``LockTimeoutError`` is
    raised. The marker is removed on every exit path once acquired.
    """
    if max_attempts <= 0:
        raise ValueError("max_attempts must be > 0")
    ensure_dir(path.parent)
    lock_path = lock_path_for(path)
    low, high = backoff

    attempt = 0
    while True:
        attempt += 1
        try:
            fd = lock_path.open("x", encoding="utf-8")
            break
        except FileExistsError:
            if attempt >= max_attempts:
                raise LockTimeoutError(
                    f"Timed out acquiring lock {lock_path} after {attempt} attempts; "
                    "remove the file if no other gitdiff-watcher process is running"
                ) from None
            time.sleep(random.uniform(low, high))

    try:
        fd.write(f"pid={os.getpid()} acquired_at={utc_now_iso()}\n")
        fd.flush()
        yield lock_path
    finally:
        fd.close()
        lock_path.unlink(missing_ok=True)
