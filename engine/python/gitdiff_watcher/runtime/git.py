"""Git queries that supply the repository context."""

from __future__ import annotations

from pathlib import Path

from gitdiff_watcher.domain.models import RepoContext
from gitdiff_watcher.io.runner import RunResult, run_argv


class GitError(RuntimeError):
    """Raised when the repository context cannot be resolved."""


def _git(cwd: Path, *git_args: str) -> RunResult:
    try:
        return run_argv(["git", "-C", str(cwd), *git_args], check=False)
    except OSError as exc:
        raise GitError(f"Unable to run git: {exc}") from exc


def repo_root(start: Path) -> Path:
    result = _git(start, "rev-parse", "--show-toplevel")
    value = result.stdout.strip()
    if result.returncode != 0 or not value:
        detail = result.stderr.strip() or f"exit code {result.returncode}"
        raise GitError(f"Not inside a git repository ({start}): {detail}")
    return Path(value).resolve()


def head_sha(root: Path) -> str:
    """Current HEAD commit, or an empty string before the first commit."""
    result = _git(root, "rev-parse", "--verify", "--quiet", "HEAD")
    if result.returncode != 0:
        return ""
    return result.stdout.strip()


def _name_only(root: Path, *diff_args: str) -> list[str]:
    result = _git(root, "diff", "--name-only", "-z", *diff_args)
    if result.returncode != 0:
        return []
    return [name for name in result.stdout.split("\0") if name]


def diff_files(root: Path) -> list[str]:
    """Files with unstaged or staged changes, relative to the repository root."""
    unstaged = _name_only(root, "HEAD")
    staged = _name_only(root, "--cached")
    return list(dict.fromkeys([*unstaged, *staged]))


def resolve_context(start: Path) -> RepoContext:
    root = repo_root(start)
    return RepoContext(root=root, head_sha=head_sha(root), candidate_files=tuple(diff_files(root)))
