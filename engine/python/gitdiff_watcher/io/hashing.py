"""Content hashing for snapshot fingerprints."""

from __future__ import annotations

import hashlib
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable


def sha256_file(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        while True:
            chunk = handle.read(8192)
            if not chunk:
                break
            digest.update(chunk)
    return digest.hexdigest()


def _try_hash(path: Path) -> str | None:
    try:
        return sha256_file(path)
    except OSError:
        # Deleted or replaced by a directory after the candidate list was built.
        return None


def hash_files(
    root: Path,
    relative_paths: Iterable[str],
    max_workers: int | None = None,
) -> dict[str, str]:
    """Hash every readable path under ``root`` concurrently.

    Paths that cannot be read are left out of the result. Each distinct path is
    hashed once even if it appears several times in ``relative_paths``.
    """
    unique = list(dict.fromkeys(relative_paths))
    if not unique:
        return {}

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="hash") as executor:
        digests = list(executor.map(_try_hash, [root / rel for rel in unique]))

    return {rel: digest for rel, digest in zip(unique, digests) if digest is not None}
