"""Rich output helpers shared by the menu and the CLI."""

from __future__ import annotations

from typing import Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import messages
from .config import LoadedConfig
from .fs import shorten_home
from .models import CreateResult, DeleteResult, Worktree
from .updates import UpdateCheckResult


def info(console: Console, message: str) -> None:
    console.print(f"[blue]ℹ[/blue] {escape(message)}")


def success(console: Console, message: str) -> None:
    console.print(f"[green]✓[/green] {escape(message)}")


def warning(console: Console, message: str) -> None:
    console.print(f"[yellow]⚠[/yellow] {escape(message)}")


def error(console: Console, message: str) -> None:
    console.print(f"[red]✗[/red] {escape(message)}", style="red")


def worktree_status(worktree: Worktree) -> str:
    parts = []
    if worktree.is_main:
        parts.append(messages.LIST_MAIN_INDICATOR)
    parts.append("clean" if worktree.is_clean else messages.LIST_DIRTY_INDICATOR)
    return " ".join(parts)


def ahead_behind(worktree: Worktree) -> str:
    status = worktree.branch_status
    if status is None:
        return ""
    return f"↑{status.ahead} ↓{status.behind} vs {status.upstream_branch}"


def worktree_label(worktree: Worktree) -> str:
    marker = f" {messages.LIST_MAIN_INDICATOR}" if worktree.is_main else ""
    dirty = "" if worktree.is_clean else f" {messages.LIST_DIRTY_INDICATOR}"
    return f"{worktree.name} [{worktree.branch}]{marker}{dirty} · {shorten_home(worktree.path)}"


def render_worktrees_table(worktrees: Sequence[Worktree], console: Console) -> None:
    table = Table(title=messages.LIST_TITLE, show_header=True, header_style="bold")
    table.add_column("Name", no_wrap=True)
    table.add_column("Branch", no_wrap=True)
    table.add_column("Commit", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Ahead/Behind", no_wrap=True)
    table.add_column("Path")
    for worktree in worktrees:
        table.add_row(
            escape(worktree.name),
            escape(worktree.branch),
            worktree.commit[:8],
            worktree_status(worktree),
            escape(ahead_behind(worktree)),
            escape(shorten_home(worktree.path)),
        )
    console.print(table)


def render_create_result(result: CreateResult, console: Console) -> None:
    success(console, messages.CREATE_SUCCESS)
    console.print(f"  Path:   {escape(shorten_home(result.path))}")
    console.print(f"  Branch: {escape(result.branch)} (from {escape(result.source_branch)})")
    if result.copy is not None:
        if result.copy.copied:
            info(console, f"Copied {len(result.copy.copied)} file(s)")
        for failure in result.copy.errors:
            warning(console, f"Copy failed: {failure}")
    for command in result.commands:
        if command.skipped:
            console.print(f"  [dim]- {escape(command.command)} (skipped)[/dim]")
        elif command.success:
            console.print(f"  [green]✓[/green] {escape(command.command)}")
        else:
            console.print(f"  [red]✗[/red] {escape(command.command)}: {escape(command.error or '')}")
        if command.output.strip():
            console.print(command.output.rstrip(), markup=False, highlight=False)
    if result.terminal is not None and not result.terminal.success:
        warning(console, f"Could not open terminal: {result.terminal.error}")


def render_delete_result(result: DeleteResult, console: Console) -> None:
    success(console, f"{messages.DELETE_SUCCESS} {shorten_home(result.path)}")
    if result.used_manual_cleanup:
        info(console, "The worktree metadata was damaged; the directory was removed manually.")
    if result.branch_deleted and result.branch_name:
        success(console, f"Branch deleted: {result.branch_name}")
    elif result.branch_error:
        warning(console, f"Branch {result.branch_name} was kept: {result.branch_error}")


def render_settings(loaded: LoadedConfig, console: Console) -> None:
    config = loaded.config
    source = shorten_home(loaded.path) if loaded.path else "defaults"
    table = Table(title=f"{messages.SETTINGS_TITLE} ({escape(source)})", show_header=True, header_style="bold")
    table.add_column("Setting", no_wrap=True)
    table.add_column("Value")
    rows = [
        ("worktreeCopyPatterns", ", ".join(config.worktree_copy_patterns) or "-"),
        ("worktreeCopyIgnores", ", ".join(config.worktree_copy_ignores) or "-"),
        ("worktreePathTemplate", config.worktree_path_template),
        ("postCreateCmd", "\n".join(config.post_create_cmd) or "-"),
        ("terminalCommand", config.terminal_command or "-"),
        ("deleteBranchWithWorktree", str(config.delete_branch_with_worktree).lower()),
        ("showRemoteBranches", str(config.show_remote_branches).lower()),
    ]
    for key, value in rows:
        table.add_row(key, escape(value))
    console.print(table)


def render_update_banner(result: UpdateCheckResult | None, console: Console) -> None:
    if result is None or not result.has_update or not result.latest_version:
        return
    warning(console, messages.UPDATE_AVAILABLE.format(current=result.current_version, latest=result.latest_version))
