"""Tests for the flag-driven CLI commands."""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from typer.testing import CliRunner

from branchlet import __version__
from branchlet.cli import app
from branchlet.config import BranchletConfig, LoadedConfig
from branchlet.exceptions import UserAbort
from branchlet.worktrees import WorktreeService
from tests.fakes import porcelain, repository


class CliTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.runner = CliRunner()
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        base = Path(self._tmp.name)
        self.root = base / "myrepo"
        self.root.mkdir()
        self.linked = base / "myrepo.worktree" / "feat"
        self.linked.mkdir(parents=True)
        self.git = repository(self.root)
        self.git.on(
            "worktree",
            "list",
            "--porcelain",
            stdout=porcelain((str(self.root), "main"), (str(self.linked), "feature/x")),
        )
        self.service = WorktreeService(self.root, LoadedConfig(BranchletConfig(worktree_copy_patterns=[])), runner=self.git)
        patcher = mock.patch("branchlet.cli._open_service", return_value=self.service)
        patcher.start()
        self.addCleanup(patcher.stop)

    def invoke(self, *args: str):
        return self.runner.invoke(app, list(args))


class GlobalOptionTests(CliTestCase):
    def test_version(self) -> None:
        result = self.invoke("--version")

        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.stdout.strip(), f"branchlet {__version__}")

    def test_short_help(self) -> None:
        result = self.invoke("-h")

        self.assertEqual(result.exit_code, 0)
        self.assertIn("create", result.stdout)

    def test_cancelled_menu_exits_cleanly(self) -> None:
        with (
            mock.patch("branchlet.cli._check_updates", return_value=None),
            mock.patch("branchlet.cli.run_main_menu", side_effect=UserAbort("cancelled")),
        ):
            result = self.invoke()

        self.assertEqual(result.exit_code, 0)


class CreateCommandTests(CliTestCase):
    def test_missing_source_fails(self) -> None:
        result = self.invoke("create", "-n", "feat")

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error:", result.stderr)
        self.assertIn("--source", result.stderr)

    def test_unknown_source_fails(self) -> None:
        result = self.invoke("create", "-n", "feat", "-s", "nope")

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Source branch 'nope' does not exist", result.stderr)

    def test_prints_new_worktree_path(self) -> None:
        self.git.on("for-each-ref", stdout="main|abc1234|2024-01-01T00:00:00+00:00\n")
        self.git.on("worktree", "add")

        result = self.invoke("create", "-n", "next", "-s", "main", "-b", "feature/y")

        self.assertEqual(result.exit_code, 0, result.stderr)
        expected = self.root.parent / "myrepo.worktree" / "next"
        self.assertEqual(result.stdout.strip(), str(expected))
        self.assertEqual(self.git.called("worktree", "add")[0], ["worktree", "add", "-b", "feature/y", str(expected), "main"])

    def test_git_error_is_translated(self) -> None:
        self.git.on("for-each-ref", stdout="main|abc1234|2024-01-01T00:00:00+00:00\n")
        self.git.on("worktree", "add", returncode=128, stderr="fatal: 'main' is already checked out at '/x'")

        result = self.invoke("create", "-n", "next", "-s", "main")

        self.assertEqual(result.exit_code, 1)
        self.assertIn("already checked out in another worktree", result.stderr)


    def test_git_stderr_with_brackets_is_printed_verbatim(self) -> None:
        self.git.on("for-each-ref", stdout="main|abc1234|2024-01-01T00:00:00+00:00\n")
        self.git.on("worktree", "add", returncode=128, stderr="fatal: cannot lock [/refs/heads/x]")

        result = self.invoke("create", "-n", "next", "-s", "main")

        self.assertEqual(result.exit_code, 1)
        self.assertIn("[/refs/heads/x]", result.stderr)


class ListCommandTests(CliTestCase):
    def test_json_output(self) -> None:
        result = self.invoke("list", "--json")

        self.assertEqual(result.exit_code, 0)
        data = json.loads(result.stdout)
        self.assertEqual([entry["path"] for entry in data], [str(self.root), str(self.linked)])
        self.assertTrue(data[0]["isMain"])
        self.assertEqual(data[1]["branch"], "feature/x")

    def test_table_without_tty(self) -> None:
        result = self.invoke("list")

        self.assertEqual(result.exit_code, 0)
        self.assertIn("feature/x", result.stdout)


class DeleteCommandTests(CliTestCase):
    def test_delete_by_name(self) -> None:
        self.git.on("worktree", "remove")

        result = self.invoke("delete", "-n", "feat")

        self.assertEqual(result.exit_code, 0, result.stderr)
        self.assertIn(f"Worktree deleted: {self.linked}", result.stdout)

    def test_unknown_name(self) -> None:
        result = self.invoke("delete", "-n", "missing")

        self.assertEqual(result.exit_code, 1)
        self.assertIn("No worktree found with directory name 'missing'", result.stderr)

    def test_dirty_worktree_requires_force(self) -> None:
        self.git.on("status", "--porcelain", stdout=" M a.txt\n")
        self.git.on("worktree", "remove")

        refused = self.invoke("delete", "-p", str(self.linked))
        forced = self.invoke("delete", "-p", str(self.linked), "-f")

        self.assertEqual(refused.exit_code, 1)
        self.assertIn("uncommitted changes", refused.stderr)
        self.assertEqual(forced.exit_code, 0, forced.stderr)

    def test_main_worktree_cannot_be_deleted(self) -> None:
        result = self.invoke("delete", "-p", str(self.root), "-f")

        self.assertEqual(result.exit_code, 1)
        self.assertIn("main worktree", result.stderr)


class CompletionCommandTests(CliTestCase):
    def test_scripts(self) -> None:
        for shell, marker in (("bash", "complete -F"), ("zsh", "#compdef branchlet"), ("fish", "complete -c branchlet")):
            with self.subTest(shell=shell):
                result = self.invoke("completion", shell)
                self.assertEqual(result.exit_code, 0)
                self.assertIn(marker, result.stdout)

    def test_unknown_shell(self) -> None:
        result = self.invoke("completion", "tcsh")

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Unsupported shell", result.stderr)

    def test_help_without_shell(self) -> None:
        result = self.invoke("completion")

        self.assertEqual(result.exit_code, 0)
        self.assertIn("branchlet completion bash", result.stdout)


if __name__ == "__main__":
    unittest.main()
