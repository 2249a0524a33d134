"""End-to-end tests driving the gitdiff-watcher CLI in a scratch git repository."""

from __future__ import annotations

import json
import os
import shlex
import subprocess
import sys
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory


REPO_ROOT = Path(__file__).resolve().parents[3]
PYTHONPATH = str(REPO_ROOT / "engine" / "python")


def run_cli(
    root: Path,
    *args: str,
    expect_code: int | None = 0,
    stdin: str = "",
    env_overrides: dict[str, str] | None = None,
) -> subprocess.CompletedProcess[str]:
    env = dict(os.environ)
    env["PYTHONPATH"] = PYTHONPATH
    env.pop("GITDIFF_WATCHER_STATE_FILE", None)
    env.pop("GITDIFF_WATCHER_EVENT_LOG", None)
    if env_overrides:
        env.update(env_overrides)
    proc = subprocess.run(
        [sys.executable, "-m", "gitdiff_watcher.cli.main", "--root", str(root), *args],
        input=stdin,
        text=True,
        capture_output=True,
        env=env,
        check=False,
        timeout=120,
    )
    if expect_code is not None and proc.returncode != expect_code:
        raise AssertionError(f"exit={proc.returncode}\n{proc.stdout}{proc.stderr}")
    return proc


def git(root: Path, *args: str) -> None:
    subprocess.run(["git", *args], cwd=root, check=True, capture_output=True, text=True)


def init_git_repo(root: Path) -> None:
    git(root, "init")
    (root / "src").mkdir()
    (root / "src" / "app.ts").write_text("export const a = 1;\n", encoding="utf-8")
    (root / "README.md").write_text("# repo\n", encoding="utf-8")
    git(root, "add", "src/app.ts", "README.md")
    git(root, "-c", "user.name=Tester", "-c", "user.email=tester@example.com", "commit", "-m", "init")


def touch_cmd(marker: Path) -> str:
    return f"echo run >> {shlex.quote(str(marker))}"


class AcceptanceTests(unittest.TestCase):
    def test_baseline_then_idempotent_then_change(self) -> None:
        with TemporaryDirectory() as temp_dir, TemporaryDirectory() as out_dir:
            root = Path(temp_dir)
            init_git_repo(root)
            marker = Path(out_dir) / "marker"
            changed = Path(out_dir) / "changed"
            args = [
                "--on",
                "src/**/*.ts",
                "--exec",
                touch_cmd(marker),
                "--exec",
                f'printf "%s" "$ON_CHANGES_RUN_CHANGED_FILES" > {shlex.quote(str(changed))}',
            ]

            (root / "src" / "app.ts").write_text("export const a = 2;\n", encoding="utf-8")
            first = run_cli(root, *args)
            self.assertIn('first run for pattern "src/**/*.ts"', first.stderr)
            self.assertIn("(1 files tracked)", first.stderr)
            self.assertFalse(marker.exists())
            state = json.loads((root / ".claude" / "gitdiff-watcher.state.json").read_text(encoding="utf-8"))
            self.assertEqual(list(state["src/**/*.ts"]["fileHashes"]), ["src/app.ts"])
            self.assertEqual(len(state["src/**/*.ts"]["headSha"]), 40)

            run_cli(root, *args)
            self.assertFalse(marker.exists())

            (root / "src" / "app.ts").write_text("export const a = 3;\n", encoding="utf-8")
            third = run_cli(root, *args)
            self.assertIn("1 file(s) changed", third.stderr)
            self.assertEqual(marker.read_text(encoding="utf-8"), "run\n")
            self.assertEqual(changed.read_text(encoding="utf-8"), "src/app.ts")

            run_cli(root, *args)
            self.assertEqual(marker.read_text(encoding="utf-8"), "run\n")

    def test_failing_command_reports_only_failures(self) -> None:
        with TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            init_git_repo(root)
            failing = "echo lint-broke; exit 3"
            args = ["--on", "**/*.ts", "--exec", "echo all-good", "--exec", failing]

            run_cli(root, *args)
            (root / "src" / "app.ts").write_text("broken\n", encoding="utf-8")
            proc = run_cli(root, *args, expect_code=1)

            self.assertIn(f"--- FAILED: {failing} (exit code 3) ---", proc.stderr)
            self.assertIn("[stdout]\nlint-broke", proc.stderr)
            self.assertNotIn("all-good", proc.stderr)

    def test_timeout_fails_run(self) -> None:
        with TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            init_git_repo(root)
            args = ["--on", "src/*.ts", "--exec", "sleep 30", "--exec-timeout", "0.5"]

            run_cli(root, *args)
            (root / "src" / "app.ts").write_text("slow\n", encoding="utf-8")
            proc = run_cli(root, *args, expect_code=1)
            self.assertIn("--- FAILED: sleep 30 (exit code 124, timed out) ---", proc.stderr)

    def test_json_output_and_placeholders(self) -> None:
        with TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            init_git_repo(root)
            args = [
                "--on",
                "src/**",
                "--exec",
                "echo {{ON_CHANGES_RUN_CHANGED_FILES}} {{NOT_A_VAR}}",
                "--files-separator",
                " ",
                "--json",
            ]

            baseline = json.loads(run_cli(root, *args).stdout)
            self.assertEqual(baseline["status"], "baseline")

            (root / "src" / "app.ts").write_text("x\n", encoding="utf-8")
            (root / "src" / "new.ts").write_text("y\n", encoding="utf-8")
            git(root, "add", "src/new.ts")
            payload = json.loads(run_cli(root, *args).stdout)

            self.assertEqual(payload["status"], "passed")
            self.assertEqual(payload["changed_files"], ["src/app.ts", "src/new.ts"])
            result = payload["results"][0]
            self.assertEqual(result["command"], "echo {{ON_CHANGES_RUN_CHANGED_FILES}} {{NOT_A_VAR}}")
            self.assertEqual(result["stdout"], "src/app.ts src/new.ts {{NOT_A_VAR}}\n")

    def test_state_file_override_and_event_log(self) -> None:
        with TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            init_git_repo(root)
            args = ["--on", "*.md", "--exec", "true", "--state-file", "custom/state.json", "--event-log", "custom/events.jsonl"]

            run_cli(root, *args, stdin='{"hook_event_name": "Stop"}')
            self.assertTrue((root / "custom" / "state.json").exists())
            self.assertFalse((root / ".claude" / "gitdiff-watcher.state.json").exists())
            events = [
                json.loads(line)["type"]
                for line in (root / "custom" / "events.jsonl").read_text(encoding="utf-8").splitlines()
            ]
            self.assertEqual(events, ["watch.started", "watch.baseline"])

    def test_error_event_goes_to_repository_relative_log(self) -> None:
        with TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            init_git_repo(root)
            proc = run_cli(
                root,
                "--on",
                "*.ts",
                "--exec",
                " ",
                "--event-log",
                "logs/events.jsonl",
                "--root",
                str(root / "src"),
                expect_code=1,
            )

            self.assertIn("fatal error: Commands must not be empty", proc.stderr)
            self.assertFalse((root / "src" / "logs").exists())
            events = [
                json.loads(line)
                for line in (root / "logs" / "events.jsonl").read_text(encoding="utf-8").splitlines()
            ]
            self.assertEqual([event["type"] for event in events], ["watch.error"])
            self.assertEqual(events[0]["payload"]["kind"], "ConfigError")

    def test_failure_report_survives_broken_event_log(self) -> None:
        with TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            init_git_repo(root)
            failing = "rm -f events.jsonl && mkdir events.jsonl && exit 3"
            args = ["--on", "src/*.ts", "--exec", failing, "--event-log", "events.jsonl"]

            run_cli(root, *args)
            (root / "src" / "app.ts").write_text("changed\n", encoding="utf-8")
            proc = run_cli(root, *args, expect_code=1)

            self.assertIn(f"--- FAILED: {failing} (exit code 3) ---", proc.stderr)
            self.assertIn("could not record watch.completed", proc.stderr)
            self.assertNotIn("fatal error", proc.stderr)

    def test_outside_git_repository_is_fatal(self) -> None:
        with TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            proc = run_cli(
                root,
                "--on",
                "*.ts",
                "--exec",
                "true",
                expect_code=1,
                env_overrides={"GIT_CEILING_DIRECTORIES": str(root.parent)},
            )
            self.assertTrue(proc.stderr.startswith("gitdiff-watcher: fatal error: Not inside a git repository"))
            self.assertEqual(proc.stdout, "")

    def test_missing_exec_is_usage_error(self) -> None:
        with TemporaryDirectory() as temp_dir:
            proc = run_cli(Path(temp_dir), "--on", "*.ts", expect_code=2)
            self.assertIn("--exec", proc.stderr)


if __name__ == "__main__":
    unittest.main()
