"""Subprocess runners: argv helper for git and the concurrent shell executor."""

from __future__ import annotations

import os
import signal
import subprocess
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from subprocess import CompletedProcess, run
from time import perf_counter
from typing import IO, Any, Callable, Mapping

from gitdiff_watcher.runtime.templates import interpolate
from gitdiff_watcher.runtime.time import elapsed_ms


DEFAULT_MAX_OUTPUT = 10 * 1024 * 1024
TIMEOUT_EXIT_CODE = 124
_READER_GRACE = 2.0


class RunnerError(RuntimeError):
    """Raised when command execution fails."""


@dataclass(frozen=True)
class RunResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one user command; ``command`` is the text as authored."""

    command: str
    exit_code: int
    stdout: str
    stderr: str
    timed_out: bool = False
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "command": self.command,
            "exit_code": self.exit_code,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "timed_out": self.timed_out,
            "duration_ms": self.duration_ms,
        }


def run_argv(argv: list[str], cwd: Path | None = None, check: bool = False) -> RunResult:
    if not argv:
        raise RunnerError("Empty argv")
    process: CompletedProcess[str] = run(
        argv,
        cwd=str(cwd) if cwd is not None else None,
        capture_output=True,
        text=True,
        check=False,
    )
    result = RunResult(
        argv=argv,
        returncode=process.returncode,
        stdout=process.stdout,
        stderr=process.stderr,
    )
    if check and process.returncode != 0:
        raise RunnerError(f"Command failed ({process.returncode}): {' '.join(argv)}\n{process.stderr}")
    return result


class _StreamCapture(threading.Thread):
    """Drain one pipe into a bounded buffer."""

    def __init__(self, stream: IO[bytes], limit: int, on_overflow: Callable[[], None]) -> None:
        super().__init__(daemon=True)
        self._stream = stream
        self._limit = limit
        self._on_overflow = on_overflow
        self.buffer = bytearray()
        self.overflowed = False

    def run(self) -> None:
        with self._stream:
            while True:
                chunk = self._stream.read1(65536)  # type: ignore[attr-defined]
                if not chunk:
                    break
                if self.overflowed:
                    continue
                room = self._limit - len(self.buffer)
                if len(chunk) > room:
                    self.buffer.extend(chunk[:room])
                    self.overflowed = True
                    self._on_overflow()
                else:
                    self.buffer.extend(chunk)

    def text(self) -> str:
        return bytes(self.buffer).decode("utf-8", errors="replace")


def _kill_group(process: subprocess.Popen[bytes]) -> None:
    try:
        if os.name == "posix":
            os.killpg(process.pid, signal.SIGKILL)
        else:
            process.kill()
    except ProcessLookupError:
        pass


def _normalize_returncode(returncode: int) -> int:
    # Signal deaths are reported the way a POSIX shell reports them.
    if returncode < 0:
        return 128 - returncode
    return returncode


def _append_note(stderr: str, note: str) -> str:
    line = f"[gitdiff-watcher] {note}\n"
    if not stderr:
        return line
    return stderr.rstrip("\n") + "\n" + line


def run_shell(
    command: str,
    *,
    timeout: float,
    variables: Mapping[str, str] | None = None,
    cwd: Path | None = None,
    max_output: int = DEFAULT_MAX_OUTPUT,
) -> CommandResult:
    """Run one shell command with placeholder interpolation and a hard timeout.

    ``variables`` are substituted into ``{{NAME}}`` placeholders and also
    exported into the child environment. The child runs in its own process
    session so the timeout can kill everything it spawned.
    """
    values = {key: str(value) for key, value in (variables or {}).items()}
    expanded = interpolate(command, values)
    env = dict(os.environ)
    env.update(values)

    started = perf_counter()
    try:
        process = subprocess.Popen(
            expanded,
            shell=True,
            cwd=str(cwd) if cwd is not None else None,
            env=env,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            start_new_session=True,
        )
    except OSError as exc:
        return CommandResult(
            command=command,
            exit_code=1,
            stdout="",
            stderr=str(exc),
            duration_ms=elapsed_ms(started),
        )

    assert process.stdout is not None and process.stderr is not None
    readers = [
        _StreamCapture(process.stdout, max_output, lambda: _kill_group(process)),
        _StreamCapture(process.stderr, max_output, lambda: _kill_group(process)),
    ]
    for reader in readers:
        reader.start()

    timed_out = False
    try:
        returncode = process.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        timed_out = True
        _kill_group(process)
        returncode = process.wait()

    for reader in readers:
        reader.join(timeout=_READER_GRACE)
    if any(reader.is_alive() for reader in readers):
        # Background children still hold the pipes open.
        _kill_group(process)
        for reader in readers:
            reader.join(timeout=_READER_GRACE)

    stdout_reader, stderr_reader = readers
    stdout = stdout_reader.text()
    stderr = stderr_reader.text()
    overflowed = stdout_reader.overflowed or stderr_reader.overflowed

    if timed_out:
        exit_code = TIMEOUT_EXIT_CODE
        stderr = _append_note(stderr, f"command timed out after {timeout:g}s")
    elif overflowed:
        exit_code = 1
        stderr = _append_note(stderr, f"command output exceeded {max_output} bytes")
    else:
        exit_code = _normalize_returncode(returncode)

    return CommandResult(
        command=command,
        exit_code=exit_code,
        stdout=stdout,
        stderr=stderr,
        timed_out=timed_out,
        duration_ms=elapsed_ms(started),
    )


def run_all(
    commands: list[str],
    *,
    timeout: float,
    variables: Mapping[str, str] | None = None,
    cwd: Path | None = None,
    max_output: int = DEFAULT_MAX_OUTPUT,
) -> list[CommandResult]:
    """Run every command concurrently; ``result[i]`` belongs to ``commands[i]``."""
    if not commands:
        return []
    with ThreadPoolExecutor(max_workers=len(commands), thread_name_prefix="exec") as executor:
        futures = [
            executor.submit(
                run_shell,
                command,
                timeout=timeout,
                variables=variables,
                cwd=cwd,
                max_output=max_output,
            )
            for command in commands
        ]
        return [future.result() for future in futures]
