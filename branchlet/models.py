"""Dataclasses shared across modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

DETACHED = "detached"


@dataclass(slots=True)
class BranchStatus:
    """Commits ahead of and behind the branch the worktree was compared to."""

    ahead: int
    behind: int
    upstream_branch: str | None


@dataclass(slots=True)
class Worktree:
    """A single worktree as reported by ``git worktree list --porcelain``."""

    path: Path
    branch: str = DETACHED
    commit: str = ""
    is_main: bool = False
    is_clean: bool = True
    branch_status: BranchStatus | None = None

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def is_detached(self) -> bool:
        return self.branch == DETACHED

    def to_dict(self) -> dict:
        data = {
            "path": str(self.path),
            "branch": self.branch,
            "commit": self.commit,
            "isMain": self.is_main,
            "isClean": self.is_clean,
        }
        if self.branch_status is not None:
            data["branchStatus"] = {
                "ahead": self.branch_status.ahead,
                "behind": self.branch_status.behind,
                "upstreamBranch": self.branch_status.upstream_branch,
            }
        return data


@dataclass(slots=True)
class Branch:
    """A local or remote branch with the date of its last commit."""

    name: str
    commit: str
    last_used: datetime | None = None
    is_current: bool = False
    is_default: bool = False
    is_remote: bool = False

    @property
    def local_name(self) -> str:
        """Branch name with the leading ``<remote>/`` removed for remote branches."""

        if self.is_remote and "/" in self.name:
            return self.name.split("/", 1)[1]
        return self.name


@dataclass(slots=True)
class RepositoryInfo:
    """Snapshot of the repository used to populate the menus."""

    path: Path
    current_branch: str | None
    default_branch: str
    worktrees: list[Worktree]
    branches: list[Branch]


@dataclass(frozen=True)
class TemplateVariables:
    """Values substituted into path templates and post-create commands."""

    base_path: str = ""
    worktree_path: str = ""
    branch_name: str = ""
    source_branch: str = ""

    def as_mapping(self) -> dict[str, str]:
        return {
            "BASE_PATH": self.base_path,
            "WORKTREE_PATH": self.worktree_path,
            "BRANCH_NAME": self.branch_name,
            "SOURCE_BRANCH": self.source_branch,
        }


@dataclass(frozen=True)
class CreateOptions:
    """Input to :meth:`WorktreeService.create_worktree`."""

    name: str
    source_branch: str
    new_branch: str


@dataclass(slots=True)
class CopyResult:
    copied: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass(slots=True)
class CommandResult:
    """Outcome of a single post-create command."""

    command: str
    success: bool
    output: str = ""
    error: str | None = None
    skipped: bool = False


@dataclass(slots=True)
class TerminalResult:
    success: bool
    command: str
    error: str | None = None


@dataclass(slots=True)
class CreateResult:
    """Everything that happened while creating a worktree.

    The worktree exists whenever a result is returned; copy errors, command
    failures and terminal failures are auxiliary information.
    """

    path: Path
    branch: str
    source_branch: str
    copy: CopyResult | None = None
    commands: list[CommandResult] = field(default_factory=list)
    terminal: TerminalResult | None = None

    @property
    def failed_command(self) -> CommandResult | None:
        return next((result for result in self.commands if not result.success and not result.skipped), None)


@dataclass(slots=True)
class DeleteResult:
    """Outcome of removing a worktree and, optionally, its branch."""

    path: Path
    branch_name: str | None = None
    branch_deleted: bool = False
    branch_error: str | None = None
    used_manual_cleanup: bool = False


__all__ = [
    "DETACHED",
    "BranchStatus",
    "Worktree",
    "Branch",
    "RepositoryInfo",
    "TemplateVariables",
    "CreateOptions",
    "CopyResult",
    "CommandResult",
    "TerminalResult",
    "CreateResult",
    "DeleteResult",
]
