"""Tests for rich output of text coming from git, paths and commands."""

from __future__ import annotations

import io
import unittest
from pathlib import Path

from rich.console import Console

from branchlet import render
from branchlet.models import CommandResult, CreateResult, Worktree


class RenderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.output = io.StringIO()
        self.console = Console(file=self.output, width=200, color_system=None)

    def test_messages_with_brackets_are_printed_verbatim(self) -> None:
        render.warning(self.console, "fatal: [/refs/heads] is not valid")
        render.error(self.console, "cannot open [bold]x")

        text = self.output.getvalue()
        self.assertIn("fatal: [/refs/heads] is not valid", text)
        self.assertIn("cannot open [bold]x", text)

    def test_table_keeps_bracketed_branch_and_path(self) -> None:
        worktree = Worktree(path=Path("/tmp/[wip]/feat"), branch="feature/[wip]")

        render.render_worktrees_table([worktree], self.console)

        text = self.output.getvalue()
        self.assertIn("feature/[wip]", text)
        self.assertIn("/tmp/[wip]/feat", text)

    def test_failed_command_output(self) -> None:
        result = CreateResult(
            path=Path("/tmp/repo.worktree/feat"),
            branch="feat",
            source_branch="main",
            commands=[CommandResult(command="make [/all]", success=False, error="exit status 2")],
        )

        render.render_create_result(result, self.console)

        self.assertIn("make [/all]: exit status 2", self.output.getvalue())


if __name__ == "__main__":
    unittest.main()
