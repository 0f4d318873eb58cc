"""Filesystem helpers for branchlet."""

from __future__ import annotations

import logging
import os
import re
import shutil
from pathlib import Path
from typing import Iterable, Mapping

from wcmatch import glob

from .exceptions import ValidationError
from .models import CopyResult, TemplateVariables

logger = logging.getLogger(__name__)

_INVALID_DIR_CHARS = re.compile(r'[<>:"|?*\x00-\x1f]')
_INVALID_BRANCH_CHARS = re.compile(r"[\s~^:?*\[\]\\@]")


def resolve_template(template: str, variables: TemplateVariables | Mapping[str, str]) -> str:
    """Replace every ``$NAME`` placeholder with its value."""

    mapping = variables.as_mapping() if isinstance(variables, TemplateVariables) else variables
    result = template
    # longest first so $BASE_PATH is never clobbered by a shorter prefix
    for key in sorted(mapping, key=len, reverse=True):
        result = result.replace(f"${key}", mapping[key])
    return result


def repository_base_name(repo_root: Path) -> str:
    return Path(repo_root).name


def worktree_path(
    repo_root: Path,
    directory_name: str,
    template: str,
    branch_name: str = "",
    source_branch: str = "",
) -> Path:
    """Compute where a new worktree lives.

    The template is resolved relative to the directory containing the
    repository and the worktree directory name is appended to it, so
    ``$BASE_PATH.worktree`` for ``/home/u/myrepo`` and ``feat`` gives
    ``/home/u/myrepo.worktree/feat``.
    """

    repo_root = Path(repo_root)
    parent = repo_root.parent
    variables = TemplateVariables(
        base_path=repository_base_name(repo_root),
        worktree_path=str(parent / directory_name),
        branch_name=branch_name,
        source_branch=source_branch,
    )
    return parent / resolve_template(template, variables) / directory_name


def directory_name_error(name: str) -> str | None:
    if not name.strip():
        return "Directory name cannot be empty"
    if "/" in name or "\\" in name:
        return "Directory name cannot contain path separators"
    if name.startswith(".") or name.startswith("-"):
        return "Directory name cannot start with . or -"
    if _INVALID_DIR_CHARS.search(name):
        return "Directory name contains invalid characters"
    if len(name) > 255:
        return "Directory name too long"
    return None


def branch_name_error(name: str) -> str | None:
    if not name.strip():
        return "Branch name cannot be empty"
    if ".." in name or "//" in name:
        return "Branch name cannot contain .. or //"
    if name.startswith("/") or name.endswith("/"):
        return "Branch name cannot start or end with /"
    if name.startswith("-") or name.endswith("."):
        return "Branch name cannot start with - or end with ."
    if _INVALID_BRANCH_CHARS.search(name):
        return "Branch name contains invalid characters"
    if name == "HEAD":
        return "Branch name cannot be HEAD"
    return None


def validate_directory_name(name: str) -> str:
    error = directory_name_error(name)
    if error:
        raise ValidationError(f"Invalid directory name: {error}", field="name")
    return name.strip()


def validate_branch_name(name: str) -> str:
    error = branch_name_error(name)
    if error:
        raise ValidationError(f"Invalid branch name: {error}", field="branch")
    return name.strip()


GLOB_FLAGS = glob.GLOBSTAR | glob.BRACE | glob.DOTGLOB


def matches_pattern(relative_path: str, pattern: str) -> bool:
    """Match a POSIX relative path against a glob pattern.

    Supports ``**``, brace groups and character classes; dotfiles match
    like any other name.
    """

    return glob.globmatch(relative_path, pattern, flags=GLOB_FLAGS)


def should_ignore(relative_path: str, ignore_patterns: Iterable[str], is_dir: bool = False) -> bool:
    patterns = list(ignore_patterns)
    if not patterns:
        return False
    candidates = (relative_path, relative_path + "/") if is_dir else (relative_path,)
    return any(glob.globmatch(candidate, patterns, flags=GLOB_FLAGS) for candidate in candidates)


def match_files(base_dir: Path, patterns: Iterable[str], ignore_patterns: Iterable[str] = ()) -> list[str]:
    """Return sorted paths under ``base_dir`` matching any pattern, minus ignores."""

    ignores = list(ignore_patterns)
    matches: set[str] = set()
    for pattern in patterns:
        try:
            candidates = glob.glob(pattern, flags=GLOB_FLAGS, root_dir=str(base_dir))
        except (ValueError, OSError) as exc:
            logger.warning("Failed to match pattern '%s': %s", pattern, exc)
            continue
        for candidate in candidates:
            relative = candidate.replace(os.sep, "/").rstrip("/")
            if relative in ("", ".") or should_ignore(relative, ignores, (base_dir / relative).is_dir()):
                continue
            matches.add(relative)
    return sorted(matches)


def _drop_nested(relative_paths: list[str]) -> list[str]:
    """Remove paths that live inside another selected path."""

    selected = set(relative_paths)
    kept = []
    for relative in relative_paths:
        parents = {parent.as_posix() for parent in Path(relative).parents}
        if parents & selected:
            continue
        kept.append(relative)
    return kept


def copy_files(
    source_dir: Path,
    target_dir: Path,
    patterns: Iterable[str],
    ignore_patterns: Iterable[str] = (),
) -> CopyResult:
    """Copy files matching ``patterns`` from ``source_dir`` into ``target_dir``.

    Directories are copied recursively, skipping anything the ignore
    patterns match. Empty directories are not recreated. Failures are
    collected on the result.
    """

    result = CopyResult()
    ignores = list(ignore_patterns)
    try:
        ensure_directory(target_dir)
        selected = _drop_nested(match_files(source_dir, patterns, ignores))
    except OSError as exc:
        result.errors.append(f"Failed to copy files: {exc}")
        return result

    for relative in selected:
        source = source_dir / relative
        target = target_dir / relative
        try:
            if not source.exists():
                result.skipped.append(relative)
            elif source.is_dir():
                _copy_tree(source, target, source_dir, result, ignores)
            else:
                ensure_directory(target.parent)
                shutil.copy2(source, target)
                result.copied.append(relative)
        except OSError as exc:
            result.errors.append(f"{relative}: {exc}")
    return result


def _copy_tree(source: Path, target: Path, root: Path, result: CopyResult, ignores: list[str]) -> None:
    # target directories are created on the first copied file, so fully
    # ignored directories leave nothing behind
    for entry in sorted(os.listdir(source)):
        child = source / entry
        relative = child.relative_to(root).as_posix()
        is_dir = child.is_dir()
        if should_ignore(relative, ignores, is_dir):
            result.skipped.append(relative)
            continue
        try:
            if is_dir:
                _copy_tree(child, target / entry, root, result, ignores)
            else:
                ensure_directory(target)
                shutil.copy2(child, target / entry)
                result.copied.append(relative)
        except OSError as exc:
            result.errors.append(f"{relative}: {exc}")


def remove_tree(path: Path) -> None:
    shutil.rmtree(path)


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def shorten_home(path: Path | str) -> str:
    text = str(path)
    home = str(Path.home())
    if home and text.startswith(home):
        return "~" + text[len(home) :]
    return text
