"""Custom exception hierarchy for branchlet."""

from __future__ import annotations

from enum import Enum


class GitErrorKind(str, Enum):
    """Coarse classification of a failed git invocation."""

    ALREADY_EXISTS = "already-exists"
    INVALID_REF = "invalid-ref"
    BRANCH_CHECKED_OUT = "branch-checked-out"
    PATH_NOT_FOUND = "path-not-found"
    NOT_A_REPOSITORY = "not-a-repository"
    UNCOMMITTED_CHANGES = "uncommitted-changes"
    CORRUPTED_WORKTREE = "corrupted-worktree"
    UNCLASSIFIED = "unclassified"


# Checked in order; the first matching phrase wins.
_ERROR_PHRASES: tuple[tuple[GitErrorKind, tuple[str, ...]], ...] = (
    (GitErrorKind.UNCOMMITTED_CHANGES, ("modified or untracked files", "is dirty")),
    (GitErrorKind.CORRUPTED_WORKTREE, ("validation failed, cannot remove working tree",)),
    (GitErrorKind.BRANCH_CHECKED_OUT, ("is already checked out", "is already used by worktree")),
    (GitErrorKind.ALREADY_EXISTS, ("already exists",)),
    (GitErrorKind.INVALID_REF, ("not a valid object name", "invalid reference")),
    (GitErrorKind.PATH_NOT_FOUND, ("No such file or directory",)),
    (GitErrorKind.NOT_A_REPOSITORY, ("not a git repository",)),
)

_KIND_MESSAGES: dict[GitErrorKind, str] = {
    GitErrorKind.ALREADY_EXISTS: "A worktree or branch with this name already exists.",
    GitErrorKind.INVALID_REF: "Invalid branch name or commit reference.",
    GitErrorKind.BRANCH_CHECKED_OUT: "This branch is already checked out in another worktree.",
    GitErrorKind.PATH_NOT_FOUND: "The specified path does not exist.",
    GitErrorKind.NOT_A_REPOSITORY: "Current directory is not a git repository.",
    GitErrorKind.UNCOMMITTED_CHANGES: "Worktree has uncommitted changes. Use force to delete anyway.",
    GitErrorKind.CORRUPTED_WORKTREE: "The worktree metadata is corrupted and could not be removed by git.",
}


def classify_git_error(stderr: str) -> GitErrorKind:
    """Map git's standard error text onto a :class:`GitErrorKind`."""

    for kind, phrases in _ERROR_PHRASES:
        if any(phrase in stderr for phrase in phrases):
            return kind
    return GitErrorKind.UNCLASSIFIED


class BranchletError(Exception):
    """Base error for all custom exceptions."""


class ValidationError(BranchletError):
    """Raised when user input is invalid."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class UncommittedChangesError(ValidationError):
    """Raised when a dirty worktree is removed without force."""

    kind = GitErrorKind.UNCOMMITTED_CHANGES

    def __init__(self, path: str):
        super().__init__(_KIND_MESSAGES[GitErrorKind.UNCOMMITTED_CHANGES], field="force")
        self.path = path


class GitCommandError(BranchletError):
    """Raised when a git invocation fails."""

    def __init__(
        self,
        operation: str,
        stderr: str | None = None,
        *,
        command: list[str] | None = None,
        returncode: int | None = None,
    ):
        self.operation = operation
        self.stderr = (stderr or "").strip()
        self.command = command or []
        self.returncode = returncode
        self.kind = classify_git_error(self.stderr)
        if self.kind is GitErrorKind.UNCLASSIFIED:
            message = f"Git {operation} operation failed: {self.stderr}"
        else:
            message = _KIND_MESSAGES[self.kind]
        super().__init__(message)


class ConfigError(BranchletError):
    """Raised when a configuration file cannot be read or validated."""

    def __init__(self, message: str, config_path: str | None = None):
        super().__init__(message)
        self.config_path = config_path


class UserAbort(BranchletError):
    """Raised when the user cancels an interactive flow."""


def friendly_message(error: BaseException) -> str:
    """Return one sentence suitable for showing to the user."""

    if isinstance(error, GitCommandError):
        if error.kind is GitErrorKind.UNCLASSIFIED:
            return f"Git {error.operation} operation failed: {error.stderr}"
        return _KIND_MESSAGES[error.kind]
    if isinstance(error, ValidationError):
        return f"Validation error: {error}"
    if isinstance(error, ConfigError):
        return f"Configuration error: {error}"
    return f"Unexpected error: {error}"


__all__ = [
    "GitErrorKind",
    "classify_git_error",
    "friendly_message",
    "BranchletError",
    "ValidationError",
    "UncommittedChangesError",
    "GitCommandError",
    "ConfigError",
    "UserAbort",
]
