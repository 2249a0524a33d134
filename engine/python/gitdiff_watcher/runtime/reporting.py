"""Human-readable rendering of watch outcomes."""

from __future__ import annotations

from gitdiff_watcher.domain.models import WatchOutcome
from gitdiff_watcher.io.runner import CommandResult


PREFIX = "gitdiff-watcher"


def format_failure(result: CommandResult) -> str:
    reason = f"exit code {result.exit_code}"
    if result.timed_out:
        reason += ", timed out"
    lines = [f"--- FAILED: {result.command} ({reason}) ---"]
    if result.stdout:
        lines.append("[stdout]")
        lines.append(result.stdout.rstrip("\n"))
    if result.stderr:
        lines.append("[stderr]")
        lines.append(result.stderr.rstrip("\n"))
    return "\n".join(lines) + "\n"


def format_failures(results: list[CommandResult]) -> str:
    return "".join("\n" + format_failure(result) for result in results if not result.ok)


def summary_line(outcome: WatchOutcome) -> str:
    pattern = outcome.pattern
    if outcome.status == "baseline":
        return (
            f"{PREFIX}: first run for pattern \"{pattern}\", storing baseline "
            f"({len(outcome.tracked_files)} files tracked)"
        )
    if outcome.status == "unchanged":
        return f"{PREFIX}: no changes matching \"{pattern}\""
    failed = len(outcome.failures)
    total = len(outcome.results)
    if failed:
        return f"{PREFIX}: {failed} of {total} command(s) failed for \"{pattern}\""
    return f"{PREFIX}: {total} command(s) passed for \"{pattern}\""


def fatal_line(message: str) -> str:
    return f"{PREFIX}: fatal error: {message}"
