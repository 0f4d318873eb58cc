"""Tests for post-create commands and the terminal launcher."""

from __future__ import annotations

import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from branchlet.hooks import open_terminal, run_post_create_commands, run_shell_command
from branchlet.models import TemplateVariables


class PostCreateCommandTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.worktree = Path(self._tmp.name)
        self.variables = TemplateVariables(
            base_path="myrepo",
            worktree_path=str(self.worktree),
            branch_name="feature/x",
            source_branch="main",
        )

    def test_commands_run_in_worktree_with_variables(self) -> None:
        results = run_post_create_commands(["echo $BRANCH_NAME > out.txt", "pwd"], self.variables)

        self.assertTrue(all(result.success for result in results))
        self.assertEqual((self.worktree / "out.txt").read_text(encoding="utf-8").strip(), "feature/x")
        self.assertEqual(Path(results[1].output.strip()).resolve(), self.worktree.resolve())
        self.assertEqual(results[0].command, "echo $BRANCH_NAME > out.txt")

    def test_first_failure_skips_remaining_commands(self) -> None:
        results = run_post_create_commands(
            ["echo first", "echo broken >&2; exit 3", "touch never-created"],
            self.variables,
        )

        self.assertEqual([r.success for r in results], [True, False, False])
        self.assertEqual([r.skipped for r in results], [False, False, True])
        self.assertEqual(results[0].output.strip(), "first")
        self.assertEqual(results[1].error, "broken")
        self.assertFalse((self.worktree / "never-created").exists())

    def test_failure_without_stderr_reports_exit_status(self) -> None:
        result = run_shell_command("exit 7", self.worktree)

        self.assertFalse(result.success)
        self.assertEqual(result.error, "exit status 7")

    def test_blank_commands_succeed(self) -> None:
        results = run_post_create_commands(["", "   "], self.variables)

        self.assertEqual([r.success for r in results], [True, True])

    def test_progress_reports_index_and_total(self) -> None:
        seen: list[tuple[str, int, int]] = []

        run_post_create_commands(["true", "true"], self.variables, on_progress=lambda *args: seen.append(args))

        self.assertEqual(seen, [("true", 1, 2), ("true", 2, 2)])


class OpenTerminalTests(unittest.TestCase):
    def test_spawns_detached_with_resolved_command(self) -> None:
        with mock.patch("branchlet.hooks.subprocess.Popen") as popen:
            result = open_terminal("code $WORKTREE_PATH", Path("/tmp/wt"))

        self.assertTrue(result.success)
        self.assertEqual(result.command, "code /tmp/wt")
        args, kwargs = popen.call_args
        self.assertEqual(args[0], "code /tmp/wt")
        self.assertTrue(kwargs["shell"])
        self.assertTrue(kwargs["start_new_session"])
        self.assertEqual(kwargs["stdout"], subprocess.DEVNULL)

    def test_spawn_failure_is_reported(self) -> None:
        with mock.patch("branchlet.hooks.subprocess.Popen", side_effect=OSError("no shell")):
            result = open_terminal("code .", Path("/tmp/wt"))

        self.assertFalse(result.success)
        self.assertEqual(result.error, "no shell")

    def test_blank_command_is_a_no_op(self) -> None:
        with mock.patch("branchlet.hooks.subprocess.Popen") as popen:
            result = open_terminal("  ", Path("/tmp/wt"))

        self.assertTrue(result.success)
        popen.assert_not_called()


if __name__ == "__main__":
    unittest.main()
