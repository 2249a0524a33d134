"""Append-only watch event log."""

from gitdiff_watcher.eventlog.store import append_event

__all__ = ["append_event"]
