"""Read worktrees and branches from git and order them for display."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Iterable, Sequence

from . import git
from .git import GitRunner, run_git
from .models import DETACHED, Branch, BranchStatus, RepositoryInfo, Worktree

logger = logging.getLogger(__name__)

BRANCH_FORMAT = "%(refname:short)|%(objectname:short)|%(committerdate:iso8601-strict)"
RECENT_CHECKOUT_LIMIT = 20
UNRANKED = 999

_CHECKOUT_RE = re.compile(r"checkout: moving from .+ to (.+)$")
_COMMIT_ID_RE = re.compile(r"^[a-f0-9]{40}$")


def _normalize_path(value: str) -> str:
    return value.rstrip("/") or "/"


def parse_worktree_porcelain(text: str, repo_root: Path | str | None = None) -> list[Worktree]:
    """Parse ``git worktree list --porcelain`` output.

    Records are flushed on a blank line or on the next ``worktree`` line.
    Worktrees without a ``branch`` line are labeled ``detached``.
    """

    worktrees: list[Worktree] = []
    current: dict[str, str | bool] = {}

    def flush() -> None:
        if current.get("path"):
            worktrees.append(
                Worktree(
                    path=Path(str(current["path"])),
                    branch=str(current.get("branch") or DETACHED),
                    commit=str(current.get("commit", "")),
                    is_main=bool(current.get("bare")),
                )
            )
        current.clear()

    for line in text.splitlines():
        if line.startswith("worktree "):
            flush()
            current["path"] = line[len("worktree ") :]
        elif line.startswith("HEAD "):
            current["commit"] = line[len("HEAD ") :]
        elif line.startswith("branch "):
            ref = line[len("branch ") :]
            if ref.startswith("refs/heads/"):
                ref = ref[len("refs/heads/") :]
            current["branch"] = ref
        elif line == "bare":
            current["bare"] = True
        elif not line.strip():
            flush()
    flush()

    if repo_root is not None:
        root = _normalize_path(str(repo_root))
        for worktree in worktrees:
            if not worktree.is_main and _normalize_path(str(worktree.path)) == root:
                worktree.is_main = True
    return worktrees


def _parse_date(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError:
        return None


def parse_branch_refs(
    text: str,
    *,
    current_branch: str | None = None,
    default_branch: str | None = None,
    remote: bool = False,
) -> list[Branch]:
    """Parse ``name|commit|date`` lines produced by ``git for-each-ref``."""

    branches: list[Branch] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        parts = line.rsplit("|", 2)
        if len(parts) != 3 or not all(parts):
            continue
        name, commit, date_str = parts
        if remote and (name.endswith("/HEAD") or "/" not in name):
            # refname:short collapses origin/HEAD to plain "origin"
            continue
        branches.append(
            Branch(
                name=name,
                commit=commit,
                last_used=_parse_date(date_str),
                is_current=not remote and name == current_branch,
                is_default=not remote and name == default_branch,
                is_remote=remote,
            )
        )
    return branches


def parse_recent_checkouts(text: str) -> list[str]:
    """Return checkout destinations from reflog subjects, most recent first."""

    names: list[str] = []
    seen: set[str] = set()
    for line in text.splitlines():
        match = _CHECKOUT_RE.search(line.strip())
        if not match:
            continue
        name = match.group(1)
        if name in seen or _COMMIT_ID_RE.match(name):
            continue
        seen.add(name)
        names.append(name)
    return names


def order_by_recency(branches: Sequence[Branch], recent_names: Sequence[str]) -> list[Branch]:
    """Float recently checked out branches to the top.

    ``sorted`` is stable, so unranked branches keep their incoming
    (commit date) order.
    """

    rank: dict[str, int] = {}
    for index, name in enumerate(recent_names):
        rank.setdefault(name, index)
    return sorted(branches, key=lambda branch: rank.get(branch.name, UNRANKED))


def merge_remote_branches(local: Sequence[Branch], remote: Iterable[Branch]) -> list[Branch]:
    """Append remote branches that have no local counterpart."""

    merged = list(local)
    local_names = {branch.name for branch in local}
    for branch in remote:
        if branch.local_name in local_names:
            continue
        merged.append(branch)
    return merged


def parse_ahead_behind(text: str) -> tuple[int, int]:
    """Parse ``rev-list --left-right --count`` output into ``(ahead, behind)``."""

    parts = text.split()
    behind = int(parts[0]) if parts else 0
    ahead = int(parts[1]) if len(parts) > 1 else 0
    return ahead, behind


class RepositoryReader:
    """Queries one repository through the git binary.

    Nothing is cached: each call reflects the repository as it is now.
    """

    def __init__(self, root: Path, runner: GitRunner = run_git):
        self.root = root
        self._run = runner

    def current_branch(self) -> str | None:
        return git.current_branch(self.root, runner=self._run)

    def default_branch(self) -> str:
        return git.default_branch(self.root, runner=self._run)

    def branch_exists(self, name: str) -> bool:
        return git.branch_exists(self.root, name, runner=self._run)

    def is_worktree_clean(self, path: Path) -> bool:
        return git.is_worktree_clean(path, runner=self._run)

    def list_worktrees(self) -> list[Worktree]:
        proc = self._run(["worktree", "list", "--porcelain"], cwd=self.root)
        git.raise_for_status(proc, "list worktrees")
        worktrees = parse_worktree_porcelain(proc.stdout, self.root)

        default = self.default_branch()
        current = self.current_branch()
        for worktree in worktrees:
            worktree.is_clean = self.is_worktree_clean(worktree.path)
            if not worktree.is_detached:
                worktree.branch_status = self.branch_status(worktree.branch, default=default, current=current)
        return worktrees

    def worktree_exists(self, path: Path) -> bool:
        target = _normalize_path(str(path))
        return any(_normalize_path(str(wt.path)) == target for wt in self.list_worktrees())

    def list_branches(self, include_remote: bool = False) -> list[Branch]:
        current = self.current_branch()
        default = self.default_branch()
        proc = self._run(
            ["for-each-ref", "--sort=-committerdate", f"--format={BRANCH_FORMAT}", "refs/heads/"],
            cwd=self.root,
        )
        git.raise_for_status(proc, "list branches")
        branches = parse_branch_refs(proc.stdout, current_branch=current, default_branch=default)
        branches = order_by_recency(branches, self.recent_branches())
        if include_remote:
            branches = merge_remote_branches(branches, self.list_remote_branches())
        return branches

    def list_remote_branches(self) -> list[Branch]:
        proc = self._run(
            ["for-each-ref", "--sort=-committerdate", f"--format={BRANCH_FORMAT}", "refs/remotes/"],
            cwd=self.root,
        )
        if proc.returncode != 0:
            logger.debug("Could not list remote branches: %s", proc.stderr.strip())
            return []
        return parse_branch_refs(proc.stdout, remote=True)

    def recent_branches(self) -> list[str]:
        proc = self._run(
            [
                "reflog",
                "--pretty=format:%gs",
                "--grep-reflog=checkout: moving from",
                "-n",
                str(RECENT_CHECKOUT_LIMIT),
            ],
            cwd=self.root,
        )
        if proc.returncode != 0:
            logger.debug("Could not read reflog: %s", proc.stderr.strip())
            return []
        return parse_recent_checkouts(proc.stdout)

    def branch_status(
        self,
        branch: str,
        *,
        default: str | None = None,
        current: str | None = None,
    ) -> BranchStatus | None:
        """Count commits of ``branch`` relative to the default branch.

        Falls back to the current branch; a candidate equal to ``branch``
        itself is never used, so comparing a branch with itself gives ``None``.
        """

        if default is None:
            default = self.default_branch()
        if current is None:
            current = self.current_branch()
        for candidate in (default, current):
            if not candidate or candidate == branch:
                continue
            proc = self._run(
                ["rev-list", "--left-right", "--count", f"{candidate}...{branch}"],
                cwd=self.root,
            )
            if proc.returncode != 0:
                continue
            try:
                ahead, behind = parse_ahead_behind(proc.stdout)
            except ValueError:
                logger.debug("Unexpected rev-list output: %r", proc.stdout)
                continue
            return BranchStatus(ahead=ahead, behind=behind, upstream_branch=candidate)
        return None

    def repository_info(self, include_remote: bool = False) -> RepositoryInfo:
        return RepositoryInfo(
            path=self.root,
            current_branch=self.current_branch(),
            default_branch=self.default_branch(),
            worktrees=self.list_worktrees(),
            branches=self.list_branches(include_remote=include_remote),
        )


__all__ = [
    "parse_worktree_porcelain",
    "parse_branch_refs",
    "parse_recent_checkouts",
    "order_by_recency",
    "merge_remote_branches",
    "parse_ahead_behind",
    "RepositoryReader",
]
