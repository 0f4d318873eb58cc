"""Interactive screens: the main menu and the create/list/delete/settings flows."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from rich.console import Console
from rich.markup import escape

from . import messages, render
from .config import reset_global_config
from .create_flow import CreateFlow, CreateStep
from .exceptions import (
    ConfigError,
    GitCommandError,
    UncommittedChangesError,
    ValidationError,
    friendly_message,
)
from .fs import branch_name_error, directory_name_error, shorten_home
from .hooks import open_terminal
from .interactive import Choice, Separator, confirm, fuzzy_select, select, text_input
from .models import Branch, CreateOptions, CreateResult, DeleteResult, Worktree
from .shell import (
    SUPPORTED_SHELLS,
    detect_shell_integration,
    install_shell_integration,
    remove_shell_integration,
)
from .updates import UpdateCheckResult
from .worktrees import WorktreeService

logger = logging.getLogger(__name__)

CUSTOM_REF = "__custom__"
BACK = "__back__"


def _build_worktree_choice_data(worktrees: Sequence[Worktree]) -> tuple[list[Choice], dict[str, Worktree]]:
    """Return the choice list used for prompts plus a lookup keyed by path."""

    lookup: dict[str, Worktree] = {}
    choices: list[Choice] = []
    for worktree in worktrees:
        key = str(worktree.path)
        if key in lookup:
            raise ValidationError(f"Duplicate worktree path detected: {key}")
        lookup[key] = worktree
        choices.append(Choice(value=key, name=render.worktree_label(worktree)))
    return choices, lookup


def _branch_label(branch: Branch) -> str:
    tags = []
    if branch.is_current:
        tags.append("current")
    if branch.is_default:
        tags.append("default")
    if branch.is_remote:
        tags.append("remote")
    suffix = f" ({', '.join(tags)})" if tags else ""
    return f"{branch.name}{suffix}"


def _build_branch_choice_data(branches: Sequence[Branch]) -> tuple[list[Choice], dict[str, Branch]]:
    """Return source-branch choices, keeping the given order, plus a lookup by name."""

    lookup: dict[str, Branch] = {}
    choices: list[Choice] = []
    for branch in branches:
        if branch.name in lookup:
            continue
        lookup[branch.name] = branch
        choices.append(Choice(value=branch.name, name=_branch_label(branch)))
    choices.append(Choice(value=CUSTOM_REF, name=messages.CREATE_CUSTOM_REF))
    return choices, lookup


def _optional_branch_error(value: str) -> str | None:
    if not value.strip():
        return None
    return branch_name_error(value)


def _prompt_source_branch(service: WorktreeService) -> tuple[str, bool]:
    branches = service.reader.list_branches(include_remote=service.config.show_remote_branches)
    choices, lookup = _build_branch_choice_data(branches)
    default = next((branch.name for branch in branches if branch.is_default), None)
    selection = select(messages.CREATE_SOURCE_BRANCH_PROMPT, choices, default=default)
    if selection == CUSTOM_REF:
        return text_input(messages.CREATE_CUSTOM_REF_PROMPT), False
    branch = lookup[str(selection)]
    return branch.name, branch.is_remote


def _collect_create_input(flow: CreateFlow, service: WorktreeService, console: Console) -> bool:
    flow.submit_directory(
        text_input(messages.CREATE_DIRECTORY_PROMPT, default=flow.directory_name, validate=directory_name_error)
    )
    source, is_remote = _prompt_source_branch(service)
    flow.select_source(source)
    flow.submit_new_branch(
        text_input(messages.CREATE_NEW_BRANCH_PROMPT, validate=_optional_branch_error),
        source_is_remote=is_remote,
    )

    target = service.target_path(
        CreateOptions(name=flow.directory_name, source_branch=flow.source_branch, new_branch=flow.new_branch)
    )
    console.print()
    console.print(f"  Directory: [bold]{escape(flow.directory_name)}[/bold]")
    console.print(f"  Path:      {escape(shorten_home(target))}")
    console.print(f"  Source:    {escape(flow.source_branch)}")
    console.print(f"  Branch:    {escape(flow.new_branch)}")
    console.print()
    return confirm(messages.CREATE_CONFIRM, default=True)


def _step_message(flow: CreateFlow) -> str:
    if flow.step is CreateStep.COPYING_FILES:
        return messages.CREATE_COPYING
    if flow.step is CreateStep.RUNNING_COMMANDS:
        return f"Running command {flow.command_index}/{flow.command_total}: {escape(flow.command or '')}"
    if flow.step is CreateStep.OPENING_TERMINAL:
        return messages.CREATE_OPENING_TERMINAL
    if flow.step is CreateStep.SUCCESS:
        return messages.CREATE_SUCCESS
    return messages.CREATE_CREATING


def create_screen(service: WorktreeService, console: Console) -> CreateResult | None:
    flow = CreateFlow()
    while True:
        try:
            if not _collect_create_input(flow, service, console):
                return None
            options = flow.confirm()
            with console.status(_step_message(flow)) as status:

                def on_step(step: CreateStep, *args) -> None:
                    flow.advance(step, *args)
                    status.update(_step_message(flow))

                result = service.create_worktree(options, on_step=on_step)
        except (ValidationError, GitCommandError) as exc:
            flow.fail(friendly_message(exc))
            render.error(console, flow.error or "")
            if not confirm("Try again?", default=True):
                return None
            flow.acknowledge_error()
            continue
        render.render_create_result(result, console)
        return result


def _navigate(worktree: Worktree, console: Console, cd_file: Path | None) -> None:
    if cd_file is not None:
        cd_file.write_text(str(worktree.path), encoding="utf-8")
        return
    console.print(f"cd {escape(str(worktree.path))}")
    render.info(console, "Run 'branchlet setup' to change directory automatically.")


def list_screen(service: WorktreeService, console: Console, cd_file: Path | None = None) -> bool:
    """Show the worktrees and act on one; returns True when the menu should exit."""

    worktrees = service.reader.list_worktrees()
    render.render_worktrees_table(worktrees, console)
    if not any(not worktree.is_main for worktree in worktrees):
        render.info(console, messages.LIST_NO_WORKTREES)

    choices, lookup = _build_worktree_choice_data(worktrees)
    choices.append(Choice(value=BACK, name=messages.LIST_BACK))
    selection = select("Select worktree", choices)
    if selection == BACK:
        return False
    worktree = lookup[str(selection)]

    actions: list[Choice] = [Choice(value="navigate", name=messages.LIST_NAVIGATE)]
    if service.config.terminal_command:
        actions.append(Choice(value="terminal", name=messages.LIST_OPEN_TERMINAL))
    actions.append(Choice(value=BACK, name=messages.LIST_BACK))
    action = select(messages.LIST_ACTION_PROMPT, actions)
    if action == "navigate":
        _navigate(worktree, console, cd_file)
        return True
    if action == "terminal":
        outcome = open_terminal(service.config.terminal_command, worktree.path)
        if outcome.success:
            render.success(console, f"Opened {outcome.command}")
        else:
            render.error(console, f"Could not open terminal: {outcome.error}")
    return False


def delete_screen(service: WorktreeService, console: Console) -> DeleteResult | None:
    worktrees = [worktree for worktree in service.reader.list_worktrees() if not worktree.is_main]
    if not worktrees:
        render.info(console, messages.DELETE_NOTHING)
        return None
    choices, lookup = _build_worktree_choice_data(worktrees)
    worktree = lookup[str(fuzzy_select(messages.DELETE_SELECT_PROMPT, choices))]
    if not confirm(messages.DELETE_CONFIRM, default=False):
        return None

    try:
        with console.status("Deleting worktree..."):
            result = service.delete_worktree(worktree.path)
    except UncommittedChangesError:
        if not confirm(messages.DELETE_FORCE_CONFIRM, default=False):
            return None
        with console.status("Deleting worktree..."):
            result = service.delete_worktree(worktree.path, force=True)
    render.render_delete_result(result, console)
    return result


def settings_screen(service: WorktreeService, console: Console) -> None:
    while True:
        render.render_settings(service.loaded, console)
        config = service.config
        action = select(
            "Settings",
            [
                Choice(
                    value="delete_branch",
                    name=f"{messages.SETTINGS_TOGGLE_DELETE_BRANCH} ({config.delete_branch_with_worktree})",
                ),
                Choice(value="remote", name=f"{messages.SETTINGS_TOGGLE_REMOTE} ({config.show_remote_branches})"),
                Choice(value="reset", name=messages.SETTINGS_RESET),
                Separator(),
                Choice(value=BACK, name=messages.LIST_BACK),
            ],
        )
        if action == "delete_branch":
            service.update_config(delete_branch_with_worktree=not config.delete_branch_with_worktree)
        elif action == "remote":
            service.update_config(show_remote_branches=not config.show_remote_branches)
        elif action == "reset":
            if confirm(messages.SETTINGS_RESET_CONFIRM, default=False):
                reset_global_config()
                service.reload_config()
                render.success(console, "Global settings reset.")
        else:
            return


def setup_screen(console: Console) -> None:
    status = detect_shell_integration()
    if status.shell not in SUPPORTED_SHELLS or status.config_path is None:
        render.warning(console, messages.SETUP_UNSUPPORTED)
        return
    path = shorten_home(status.config_path)
    if status.installed:
        render.success(console, messages.SETUP_INSTALLED.format(path=path))
        if confirm(messages.SETUP_REMOVE_CONFIRM.format(path=path), default=False):
            remove_shell_integration(status.shell)
            render.success(console, messages.SETUP_DONE.format(path=path))
        return
    render.info(console, messages.SETUP_NOT_INSTALLED.format(reason=status.reason))
    if confirm(messages.SETUP_INSTALL_CONFIRM.format(path=path), default=True):
        install_shell_integration(status.shell)
        render.success(console, messages.SETUP_DONE.format(path=path))


def run_main_menu(
    service: WorktreeService,
    console: Console,
    *,
    cd_file: Path | None = None,
    update: UpdateCheckResult | None = None,
) -> None:
    """Loop over the main menu until the user exits or navigates away.

    Errors inside a screen are shown and the menu is offered again.
    """

    console.print(f"[bold cyan]{messages.WELCOME}[/bold cyan]")
    render.render_update_banner(update, console)
    menu = [
        Choice(value="create", name=messages.MENU_CREATE),
        Choice(value="list", name=messages.MENU_LIST),
        Choice(value="delete", name=messages.MENU_DELETE),
        Choice(value="settings", name=messages.MENU_SETTINGS),
        Choice(value="setup", name=messages.MENU_SETUP),
        Separator(),
        Choice(value="exit", name=messages.MENU_EXIT),
    ]
    while True:
        action = select(messages.MENU_TITLE, menu)
        if action == "exit":
            return
        try:
            if action == "create":
                create_screen(service, console)
            elif action == "list":
                if list_screen(service, console, cd_file):
                    return
            elif action == "delete":
                delete_screen(service, console)
            elif action == "settings":
                settings_screen(service, console)
            elif action == "setup":
                setup_screen(console)
        except (ValidationError, GitCommandError, ConfigError, OSError) as exc:
            logger.debug("Menu action %s failed", action, exc_info=True)
            render.error(console, friendly_message(exc))


__all__ = [
    "create_screen",
    "list_screen",
    "delete_screen",
    "settings_screen",
    "setup_screen",
    "run_main_menu",
]
