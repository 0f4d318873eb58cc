"""Run user-configured shell commands after a worktree is created."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Callable, Sequence

from .fs import resolve_template
from .models import CommandResult, TemplateVariables, TerminalResult

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]


def run_shell_command(command: str, cwd: Path) -> CommandResult:
    """Run ``command`` through the shell and capture its output."""

    logger.debug("Running post-create command: %s (cwd=%s)", command, cwd)
    try:
        proc = subprocess.run(
            command,
            shell=True,
            cwd=str(cwd),
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        return CommandResult(command=command, success=False, error=str(exc))
    success = proc.returncode == 0
    error = None
    if not success:
        error = proc.stderr.strip() or f"exit status {proc.returncode}"
    return CommandResult(command=command, success=success, output=proc.stdout, error=error)


def run_post_create_commands(
    commands: Sequence[str],
    variables: TemplateVariables,
    on_progress: ProgressCallback | None = None,
) -> list[CommandResult]:
    """Run commands in order inside the new worktree.

    The first failing command stops the sequence; the remaining commands are
    reported as skipped. Blank commands count as successful.
    """

    results: list[CommandResult] = []
    cwd = Path(variables.worktree_path)
    total = len(commands)
    failed = False
    for index, command in enumerate(commands, start=1):
        if failed:
            results.append(CommandResult(command=command, success=False, skipped=True))
            continue
        if not command.strip():
            results.append(CommandResult(command=command, success=True))
            continue
        if on_progress is not None:
            on_progress(command, index, total)
        resolved = resolve_template(command, variables)
        result = run_shell_command(resolved, cwd)
        result.command = command
        results.append(result)
        if not result.success:
            logger.warning("Post-create command failed: %s (%s)", command, result.error)
            failed = True
    return results


def open_terminal(terminal_command: str, worktree_path: Path) -> TerminalResult:
    """Spawn ``terminal_command`` detached in ``worktree_path``."""

    if not terminal_command.strip():
        return TerminalResult(success=True, command="")
    resolved = resolve_template(terminal_command, TemplateVariables(worktree_path=str(worktree_path)))
    logger.debug("Opening terminal: %s", resolved)
    try:
        subprocess.Popen(
            resolved,
            shell=True,
            cwd=str(worktree_path),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as exc:
        return TerminalResult(success=False, command=resolved, error=str(exc))
    return TerminalResult(success=True, command=resolved)


__all__ = ["run_shell_command", "run_post_create_commands", "open_terminal"]
