"""State machine behind the interactive "create worktree" screen."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .exceptions import ValidationError
from .fs import validate_branch_name, validate_directory_name
from .models import CreateOptions


class CreateStep(str, Enum):
    DIRECTORY = "directory"
    SOURCE_BRANCH = "source-branch"
    NEW_BRANCH = "new-branch"
    CONFIRM = "confirm"
    CREATING = "creating"
    COPYING_FILES = "copying-files"
    RUNNING_COMMANDS = "running-commands"
    OPENING_TERMINAL = "opening-terminal"
    SUCCESS = "success"
    ERROR = "error"


# Creation only moves forward through these.
_PROGRESS_ORDER = (
    CreateStep.CREATING,
    CreateStep.COPYING_FILES,
    CreateStep.RUNNING_COMMANDS,
    CreateStep.OPENING_TERMINAL,
    CreateStep.SUCCESS,
)


@dataclass
class CreateFlow:
    """Collects input for a new worktree and tracks creation progress."""

    step: CreateStep = CreateStep.DIRECTORY
    directory_name: str = ""
    source_branch: str = ""
    new_branch: str = ""
    command: str | None = None
    command_index: int = 0
    command_total: int = 0
    error: str | None = None

    def _expect(self, *steps: CreateStep) -> None:
        if self.step not in steps:
            expected = ", ".join(step.value for step in steps)
            raise RuntimeError(f"Cannot do that in step '{self.step.value}' (expected {expected})")

    def submit_directory(self, name: str) -> None:
        self._expect(CreateStep.DIRECTORY)
        self.directory_name = validate_directory_name(name)
        self.step = CreateStep.SOURCE_BRANCH

    def select_source(self, branch: str) -> None:
        self._expect(CreateStep.SOURCE_BRANCH)
        branch = branch.strip()
        if not branch:
            raise ValidationError("Source branch cannot be empty", field="source")
        self.source_branch = branch
        self.new_branch = ""
        self.step = CreateStep.NEW_BRANCH

    def submit_new_branch(self, name: str, *, source_is_remote: bool = False) -> None:
        """Record the branch to create; an empty answer reuses the source.

        For a remote source the local name drops the ``<remote>/`` prefix.
        """

        self._expect(CreateStep.NEW_BRANCH)
        name = name.strip()
        if name:
            self.new_branch = validate_branch_name(name)
        elif source_is_remote and "/" in self.source_branch:
            self.new_branch = self.source_branch.split("/", 1)[1]
        else:
            self.new_branch = self.source_branch
        self.step = CreateStep.CONFIRM

    def confirm(self) -> CreateOptions:
        self._expect(CreateStep.CONFIRM)
        self.step = CreateStep.CREATING
        return CreateOptions(
            name=self.directory_name,
            source_branch=self.source_branch,
            new_branch=self.new_branch,
        )

    def advance(self, step: CreateStep, command: str | None = None, index: int = 0, total: int = 0) -> None:
        """Move forward through the creation steps; used as a progress callback."""

        if self.step not in _PROGRESS_ORDER or step not in _PROGRESS_ORDER:
            raise RuntimeError(f"Cannot move from '{self.step.value}' to '{step.value}'")
        if _PROGRESS_ORDER.index(step) < _PROGRESS_ORDER.index(self.step):
            raise RuntimeError(f"Cannot move back from '{self.step.value}' to '{step.value}'")
        self.step = step
        if step is CreateStep.RUNNING_COMMANDS:
            self.command = command
            self.command_index = index
            self.command_total = total

    def fail(self, message: str) -> None:
        self.error = message
        self.step = CreateStep.ERROR

    def acknowledge_error(self) -> None:
        self._expect(CreateStep.ERROR)
        self.error = None
        self.step = CreateStep.DIRECTORY

    @property
    def is_finished(self) -> bool:
        return self.step is CreateStep.SUCCESS


__all__ = ["CreateStep", "CreateFlow"]
