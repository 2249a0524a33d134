"""Glob filtering of repository-relative paths."""

from __future__ import annotations

from typing import Iterable

from wcmatch import glob


# `*` stays within one directory, `**` spans directories, and a leading `!`
# selects every path the rest of the pattern does not match.
GLOB_FLAGS = glob.GLOBSTAR | glob.BRACE | glob.EXTGLOB | glob.NEGATE | glob.NEGATEALL | glob.FORCEUNIX


def matches(pattern: str, path: str) -> bool:
    return glob.globmatch(path, pattern, flags=GLOB_FLAGS)


def filter_paths(pattern: str, paths: Iterable[str]) -> list[str]:
    """Keep paths matching ``pattern``, preserving input order."""
    return [path for path in paths if matches(pattern, path)]
