"""Domain models for watch configuration, snapshots and outcomes."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from gitdiff_watcher.io.runner import CommandResult


DEFAULT_TIMEOUT_SECONDS = 300.0
DEFAULT_SEPARATOR = "\n"

OUTCOME_STATUSES = {"baseline", "unchanged", "passed", "failed"}


class ConfigError(ValueError):
    """Raised when watch options are invalid."""


@dataclass(frozen=True)
class WatchConfig:
    """Immutable run options passed through the whole pipeline."""

    pattern: str
    commands: tuple[str, ...]
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    separator: str = DEFAULT_SEPARATOR
    state_file: Path | None = None
    event_log: Path | None = None

    @classmethod
    def create(
        cls,
        pattern: str,
        commands: Iterable[str],
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        separator: str = DEFAULT_SEPARATOR,
        state_file: str | Path | None = None,
        event_log: str | Path | None = None,
    ) -> WatchConfig:
        if not pattern or not pattern.strip():
            raise ConfigError("Glob pattern must not be empty")
        command_list = tuple(str(item) for item in commands)
        if not command_list:
            raise ConfigError("At least one command is required")
        if any(not item.strip() for item in command_list):
            raise ConfigError("Commands must not be empty")
        if not math.isfinite(timeout) or timeout <= 0:
            raise ConfigError(f"Timeout must be a positive number of seconds, got {timeout}")
        return cls(
            pattern=pattern,
            commands=command_list,
            timeout=float(timeout),
            separator=separator,
            state_file=Path(state_file) if state_file is not None else None,
            event_log=Path(event_log) if event_log is not None else None,
        )


@dataclass(frozen=True)
class PatternSnapshot:
    """Stored state for one glob pattern."""

    head_sha: str
    file_hashes: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "headSha": self.head_sha,
            "fileHashes": dict(sorted(self.file_hashes.items())),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PatternSnapshot:
        return cls(head_sha=str(data["headSha"]), file_hashes=dict(data["fileHashes"]))


@dataclass(frozen=True)
class RepoContext:
    """Repository facts supplied by the version-control collaborator."""

    root: Path
    head_sha: str
    candidate_files: tuple[str, ...]


@dataclass(frozen=True)
class WatchOutcome:
    """Terminal result of one watch invocation."""

    status: str
    pattern: str
    tracked_files: list[str]
    changed_files: list[str]
    results: list[CommandResult] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.status not in OUTCOME_STATUSES:
            raise ValueError(f"Unknown watch outcome status: {self.status}")

    @property
    def ok(self) -> bool:
        return self.status != "failed"

    @property
    def failures(self) -> list[CommandResult]:
        return [result for result in self.results if not result.ok]

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "pattern": self.pattern,
            "tracked_files": list(self.tracked_files),
            "changed_files": list(self.changed_files),
            "results": [result.to_dict() for result in self.results],
        }
