"""Thin wrappers around git CLI commands."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Callable, Iterable

from .exceptions import GitCommandError

logger = logging.getLogger(__name__)

GitRunner = Callable[..., "subprocess.CompletedProcess[str]"]

COMMON_DEFAULT_BRANCHES = ("main", "master", "develop")


def run_git(
    args: Iterable[str],
    *,
    cwd: Path,
) -> subprocess.CompletedProcess[str]:
    """Execute a git command and capture its output.

    A missing git binary or an unusable ``cwd`` is reported as a failed
    process rather than an exception so callers only ever inspect
    ``returncode``.
    """

    cmd = ["git", *args]
    logger.debug("Running git: %s (cwd=%s)", " ".join(cmd[1:]), cwd)
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        proc = subprocess.CompletedProcess(cmd, 1, stdout="", stderr=str(exc))
    return proc


def raise_for_status(proc: subprocess.CompletedProcess[str], operation: str) -> None:
    if proc.returncode != 0:
        raise GitCommandError(
            operation,
            proc.stderr,
            command=list(proc.args) if isinstance(proc.args, (list, tuple)) else None,
            returncode=proc.returncode,
        )


def is_repository(path: Path, runner: GitRunner = run_git) -> bool:
    return runner(["rev-parse", "--git-dir"], cwd=path).returncode == 0


def find_repository_root(path: Path, runner: GitRunner = run_git) -> Path | None:
    """Return the main checkout, even when ``path`` is inside a linked worktree."""

    proc = runner(["rev-parse", "--path-format=absolute", "--git-common-dir"], cwd=path)
    if proc.returncode != 0:
        return None
    git_dir = proc.stdout.strip()
    if git_dir.endswith("/.git"):
        return Path(git_dir[: -len("/.git")])
    parent = Path(git_dir).parent
    return parent if str(parent) not in ("", ".") else None


def current_branch(path: Path, runner: GitRunner = run_git) -> str | None:
    proc = runner(["symbolic-ref", "--short", "HEAD"], cwd=path)
    if proc.returncode == 0:
        return proc.stdout.strip()
    proc = runner(["rev-parse", "--abbrev-ref", "HEAD"], cwd=path)
    if proc.returncode == 0:
        return proc.stdout.strip()
    return None


def default_branch(path: Path, runner: GitRunner = run_git) -> str:
    proc = runner(["symbolic-ref", "refs/remotes/origin/HEAD"], cwd=path)
    if proc.returncode == 0:
        return proc.stdout.strip().replace("refs/remotes/origin/", "", 1)
    # fallback heuristics
    for candidate in COMMON_DEFAULT_BRANCHES:
        if branch_exists(path, candidate, runner=runner):
            return candidate
    return "main"


def branch_exists(path: Path, branch: str, runner: GitRunner = run_git) -> bool:
    proc = runner(["show-ref", "--verify", f"refs/heads/{branch}"], cwd=path)
    return proc.returncode == 0


def is_worktree_clean(path: Path, runner: GitRunner = run_git) -> bool:
    proc = runner(["status", "--porcelain"], cwd=path)
    return proc.returncode == 0 and proc.stdout.strip() == ""


def worktree_add(
    path: Path,
    target: Path,
    source: str,
    new_branch: str | None = None,
    runner: GitRunner = run_git,
) -> None:
    args = ["worktree", "add"]
    if new_branch and new_branch != source:
        args.extend(["-b", new_branch])
    args.extend([str(target), source])
    raise_for_status(runner(args, cwd=path), "create worktree")


def worktree_remove(path: Path, target: Path, force: bool = False, runner: GitRunner = run_git) -> None:
    args = ["worktree", "remove"]
    if force:
        args.append("--force")
    args.append(str(target))
    raise_for_status(runner(args, cwd=path), "delete worktree")


def worktree_prune(path: Path, runner: GitRunner = run_git) -> None:
    raise_for_status(runner(["worktree", "prune"], cwd=path), "prune worktrees")


def branch_delete(path: Path, branch: str, force: bool = False, runner: GitRunner = run_git) -> None:
    args = ["branch", "-D" if force else "-d", branch]
    raise_for_status(runner(args, cwd=path), "delete branch")


__all__ = [
    "GitRunner",
    "run_git",
    "raise_for_status",
    "is_repository",
    "find_repository_root",
    "current_branch",
    "default_branch",
    "branch_exists",
    "is_worktree_clean",
    "worktree_add",
    "worktree_remove",
    "worktree_prune",
    "branch_delete",
]
