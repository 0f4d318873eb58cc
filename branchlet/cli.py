"""Typer-based CLI for branchlet."""

from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.markup import escape

from . import __version__, render
from .completion import SETUP_HELP, completion_script
from .config import load_global_config, update_global_config
from .exceptions import BranchletError, ConfigError, GitCommandError, UserAbort, ValidationError, friendly_message
from .menu import create_screen, delete_screen, list_screen, run_main_menu, settings_screen, setup_screen
from .models import CreateOptions, CreateResult
from .updates import UpdateCheckResult, check_for_updates
from .worktrees import WorktreeService

app = typer.Typer(
    help="Manage git worktrees from an interactive menu or with flags.",
    add_completion=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AppState:
    verbose: bool = False
    cd_file: Path | None = None


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"branchlet {__version__}")
        raise typer.Exit()


def _fail(message: str, code: int = 1) -> None:
    err_console.print(f"[red]Error:[/red] {escape(message)}", highlight=False, soft_wrap=True)
    raise typer.Exit(code)


def _error_text(exc: BaseException) -> str:
    if isinstance(exc, GitCommandError):
        return friendly_message(exc)
    return str(exc)


@contextmanager
def _handle_errors() -> Iterator[None]:
    try:
        yield
    except (UserAbort, KeyboardInterrupt):
        raise typer.Exit(0)
    except (BranchletError, OSError) as exc:
        logger.debug("Command failed", exc_info=True)
        _fail(_error_text(exc))


def _state(ctx: typer.Context) -> AppState:
    state = ctx.find_root().obj
    if not isinstance(state, AppState):
        return AppState()
    return state


def _open_service() -> WorktreeService:
    return WorktreeService.open(Path.cwd())


def _check_updates() -> UpdateCheckResult | None:
    try:
        loaded = load_global_config()
    except ConfigError as exc:
        logger.debug("Skipping update check: %s", exc)
        return None
    return check_for_updates(__version__, loaded.config, save=update_global_config)


@app.callback(invoke_without_command=True)
def root(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
    cd_file: Optional[Path] = typer.Option(
        None,
        "--cd-file",
        hidden=True,
        help="Write the directory chosen with 'Navigate to directory' to this file.",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="Show the branchlet version and exit.",
    ),
) -> None:
    _ = version  # handled via callback
    configure_logging(verbose)
    ctx.obj = AppState(verbose=verbose, cd_file=cd_file)
    if ctx.invoked_subcommand is not None:
        return
    with _handle_errors():
        service = _open_service()
        update = _check_updates()
        if service.loaded.is_global:
            service.reload_config()
        run_main_menu(service, console, cd_file=cd_file, update=update)


@app.command(help="Create a new worktree. Without flags, opens the interactive create screen.")
def create(
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Directory name for the worktree."),
    source: Optional[str] = typer.Option(None, "--source", "-s", help="Branch or ref to start from."),
    branch: Optional[str] = typer.Option(
        None,
        "--branch",
        "-b",
        help="Name of the branch to create (defaults to the source branch).",
    ),
) -> None:
    with _handle_errors():
        service = _open_service()
        if name is None and source is None and branch is None:
            create_screen(service, console)
            return
        if not name:
            raise ValidationError("Missing required argument: --name (-n)")
        if not source:
            raise ValidationError("Missing required argument: --source (-s)")
        branches = service.reader.list_branches(include_remote=service.config.show_remote_branches)
        if not any(candidate.name == source for candidate in branches):
            raise ValidationError(f"Source branch '{source}' does not exist")
        result = service.create_worktree(CreateOptions(name=name, source_branch=source, new_branch=branch or source))
        _report_side_effects(result)
        typer.echo(str(result.path))


def _report_side_effects(result: CreateResult) -> None:
    if result.copy is not None:
        for failure in result.copy.errors:
            render.warning(err_console, f"Copy failed: {failure}")
    failed = result.failed_command
    if failed is not None:
        skipped = sum(1 for command in result.commands if command.skipped)
        render.warning(err_console, f"Post-create command failed: {failed.command}: {failed.error}")
        if skipped:
            render.warning(err_console, f"Skipped {skipped} remaining command(s)")
    if result.terminal is not None and not result.terminal.success:
        render.warning(err_console, f"Could not open terminal: {result.terminal.error}")


@app.command("list", help="List worktrees. Use --json for machine-readable output.")
def list_worktrees(
    ctx: typer.Context,
    json_: bool = typer.Option(False, "--json", help="Output JSON instead of a table."),
) -> None:
    with _handle_errors():
        service = _open_service()
        if json_:
            worktrees = service.reader.list_worktrees()
            typer.echo(json.dumps([worktree.to_dict() for worktree in worktrees], indent=2))
            return
        if sys.stdin.isatty():
            list_screen(service, console, _state(ctx).cd_file)
        else:
            render.render_worktrees_table(service.reader.list_worktrees(), console)


@app.command(help="Delete a worktree. Without flags, opens the interactive delete screen.")
def delete(
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Directory name of the worktree."),
    path: Optional[Path] = typer.Option(None, "--path", "-p", help="Path to the worktree."),
    force: bool = typer.Option(False, "--force", "-f", help="Delete even with uncommitted changes."),
) -> None:
    with _handle_errors():
        service = _open_service()
        if name is None and path is None:
            if force:
                raise ValidationError("Missing required argument: --path (-p) or --name (-n)")
            delete_screen(service, console)
            return
        if path is not None:
            target = path.expanduser().resolve()
        else:
            match = service.find_worktree_by_name(name or "")
            if match is None:
                raise ValidationError(f"No worktree found with directory name '{name}'")
            target = match.path
        if str(target).rstrip("/") == str(service.root).rstrip("/"):
            raise ValidationError("Cannot delete the main worktree")
        result = service.delete_worktree(target, force=force)
        lines = [f"Worktree deleted: {result.path}"]
        if result.branch_deleted and result.branch_name:
            lines.append(f"Branch deleted: {result.branch_name}")
        typer.echo("\n".join(lines))
        if result.branch_error:
            render.warning(err_console, f"Branch {result.branch_name} was kept: {result.branch_error}")


@app.command(help="Show settings; on a terminal, edit them interactively.")
def settings() -> None:
    with _handle_errors():
        service = _open_service()
        if sys.stdin.isatty():
            settings_screen(service, console)
        else:
            render.render_settings(service.loaded, console)


@app.command(help="Install or remove the shell function that lets the menu change directory.")
def setup() -> None:
    with _handle_errors():
        setup_screen(console)


@app.command(help="Print a shell completion script (bash, zsh or fish).")
def completion(shell: Optional[str] = typer.Argument(None, help="Shell to generate completions for.")) -> None:
    if shell is None:
        typer.echo(SETUP_HELP)
        return
    try:
        script = completion_script(shell)
    except ValueError as exc:
        _fail(str(exc))
    typer.echo(script, nl=False)


if __name__ == "__main__":
    app()
