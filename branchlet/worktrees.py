"""High-level orchestration for worktree operations."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from . import git
from .config import BranchletConfig, LoadedConfig, global_config_file, load_config, save_config
from .create_flow import CreateStep
from .exceptions import (
    GitCommandError,
    GitErrorKind,
    UncommittedChangesError,
    ValidationError,
)
from .fs import (
    copy_files,
    remove_tree,
    repository_base_name,
    validate_branch_name,
    validate_directory_name,
    worktree_path,
)
from .git import GitRunner, run_git
from .hooks import open_terminal, run_post_create_commands
from .models import CreateOptions, CreateResult, DeleteResult, TemplateVariables, Worktree
from .repository import RepositoryReader

logger = logging.getLogger(__name__)

StepCallback = Callable[..., None]


class WorktreeService:
    """Creates and deletes worktrees for one repository."""

    def __init__(self, root: Path, loaded: LoadedConfig, runner: GitRunner = run_git):
        self.root = root
        self.loaded = loaded
        self._run = runner
        self.reader = RepositoryReader(root, runner=runner)

    @classmethod
    def open(cls, path: Path | None = None, runner: GitRunner = run_git) -> "WorktreeService":
        """Resolve the repository containing ``path`` and load its configuration."""

        cwd = (path or Path.cwd()).expanduser()
        if not cwd.exists():
            raise ValidationError(f"Repository path does not exist: {cwd}")
        if not git.is_repository(cwd, runner=runner):
            raise ValidationError("Current directory is not a git repository")
        root = git.find_repository_root(cwd, runner=runner) or cwd.resolve()
        return cls(root, load_config(root), runner=runner)

    @property
    def config(self) -> BranchletConfig:
        return self.loaded.config

    def update_config(self, **changes) -> BranchletConfig:
        """Persist changed settings and switch to the new configuration value."""

        updated = self.config.with_updates(**changes)
        self.loaded = save_config(updated, self.loaded.path or global_config_file())
        return updated

    def reload_config(self) -> BranchletConfig:
        self.loaded = load_config(self.root)
        return self.config

    def target_path(self, options: CreateOptions) -> Path:
        return worktree_path(
            self.root,
            options.name,
            self.config.worktree_path_template,
            options.new_branch,
            options.source_branch,
        )

    def create_worktree(self, options: CreateOptions, on_step: StepCallback | None = None) -> CreateResult:
        """Create a worktree and run the configured follow-up actions.

        Only the git steps raise. Once ``git worktree add`` succeeded, copy
        errors, failed post-create commands and terminal failures are
        recorded on the result.
        """

        def notify(step: CreateStep, *args) -> None:
            if on_step is not None:
                on_step(step, *args)

        name = validate_directory_name(options.name)
        source = options.source_branch.strip()
        if not source:
            raise ValidationError("Source branch cannot be empty", field="source")
        new_branch = options.new_branch.strip() or source
        if new_branch != source:
            validate_branch_name(new_branch)
        options = CreateOptions(name=name, source_branch=source, new_branch=new_branch)

        if new_branch != source and self.reader.branch_exists(new_branch):
            raise ValidationError(f"Branch '{new_branch}' already exists", field="branch")

        target = self.target_path(options)
        if self.reader.worktree_exists(target):
            raise ValidationError(f"Worktree already exists at '{target}'", field="name")

        notify(CreateStep.CREATING)
        git.worktree_add(self.root, target, source, new_branch, runner=self._run)
        logger.info("Created worktree %s on branch %s", target, new_branch)
        result = CreateResult(path=target, branch=new_branch, source_branch=source)

        config = self.config
        if config.worktree_copy_patterns:
            notify(CreateStep.COPYING_FILES)
            result.copy = copy_files(self.root, target, config.worktree_copy_patterns, config.worktree_copy_ignores)
            for error in result.copy.errors:
                logger.warning("Copy failed: %s", error)

        if config.post_create_cmd:
            variables = TemplateVariables(
                base_path=repository_base_name(self.root),
                worktree_path=str(target),
                branch_name=new_branch,
                source_branch=source,
            )
            result.commands = run_post_create_commands(
                config.post_create_cmd,
                variables,
                on_progress=lambda command, index, total: notify(CreateStep.RUNNING_COMMANDS, command, index, total),
            )

        if config.terminal_command:
            notify(CreateStep.OPENING_TERMINAL)
            result.terminal = open_terminal(config.terminal_command, target)

        notify(CreateStep.SUCCESS)
        return result

    def find_worktree(self, path: Path) -> Worktree | None:
        target = str(path).rstrip("/")
        for worktree in self.reader.list_worktrees():
            if str(worktree.path).rstrip("/") == target:
                return worktree
        return None

    def find_worktree_by_name(self, name: str) -> Worktree | None:
        for worktree in self.reader.list_worktrees():
            if worktree.name == name and not worktree.is_main:
                return worktree
        return None

    def delete_worktree(self, path: Path, force: bool = False) -> DeleteResult:
        """Remove a worktree and, if configured, the branch it had checked out.

        A worktree whose ``.git`` file is gone cannot report its status, so
        without ``force`` it is refused as having uncommitted changes. With
        ``force`` git reports it as corrupted and the directory is removed by
        hand before pruning the stale metadata.
        """

        path = Path(path)
        if not force and path.exists() and not self.reader.is_worktree_clean(path):
            raise UncommittedChangesError(str(path))

        result = DeleteResult(path=path)
        if self.config.delete_branch_with_worktree:
            worktree = self.find_worktree(path)
            if worktree is not None and not worktree.is_detached:
                result.branch_name = worktree.branch

        try:
            git.worktree_remove(self.root, path, force=force, runner=self._run)
        except GitCommandError as exc:
            if exc.kind is not GitErrorKind.CORRUPTED_WORKTREE:
                raise
            logger.warning("git could not remove %s (%s); removing it manually", path, exc.stderr)
            if path.exists():
                remove_tree(path)
            git.worktree_prune(self.root, runner=self._run)
            result.used_manual_cleanup = True
        logger.info("Removed worktree %s", path)

        if result.branch_name:
            try:
                self.delete_branch(result.branch_name, force=force)
                result.branch_deleted = True
            except (GitCommandError, ValidationError) as exc:
                logger.warning("Could not delete branch %s: %s", result.branch_name, exc)
                result.branch_error = str(exc)
        return result

    def delete_branch(self, name: str, force: bool = False) -> None:
        """Delete a local branch; the current and default branches are refused."""

        if name == self.reader.current_branch():
            raise ValidationError(f"Cannot delete current branch '{name}'", field="branch")
        if name == self.reader.default_branch():
            raise ValidationError(f"Cannot delete default branch '{name}'", field="branch")
        git.branch_delete(self.root, name, force=force, runner=self._run)


__all__ = ["WorktreeService"]
