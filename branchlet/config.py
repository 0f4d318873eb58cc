"""Load and save the project/global JSON configuration."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

LOCAL_CONFIG_FILE_NAME = ".branchlet.json"
GLOBAL_CONFIG_FILE_NAME = "settings.json"
CONFIG_DIR_ENV = "BRANCHLET_CONFIG_DIR"

DEFAULT_COPY_PATTERNS = [".env", ".vscode/**"]
DEFAULT_COPY_IGNORES = [
    "**/node_modules/**",
    "**/dist/**",
    "**/.git/**",
    "**/.svn/**",
    "**/.hg/**",
    "**/CVS/**",
    "**/Thumbs.db",
    "**/.DS_Store",
    "**/coverage/**",
    "**/build/**",
    "**/out/**",
    "**/.next/**",
    "**/.nuxt/**",
    "**/target/**",
]
DEFAULT_PATH_TEMPLATE = "$BASE_PATH.worktree"


class BranchletConfig(BaseModel):
    """Settings read from ``.branchlet.json`` or the global settings file.

    Instances are immutable; use :meth:`with_updates` to derive a changed copy.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    worktree_copy_patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_COPY_PATTERNS))
    worktree_copy_ignores: list[str] = Field(default_factory=lambda: list(DEFAULT_COPY_IGNORES))
    worktree_path_template: str = DEFAULT_PATH_TEMPLATE
    post_create_cmd: list[str] = Field(default_factory=list)
    terminal_command: str = ""
    delete_branch_with_worktree: bool = False
    show_remote_branches: bool = False
    last_update_check: float | None = None
    latest_version: str | None = None
    checked_version: str | None = None

    def with_updates(self, **changes: Any) -> "BranchletConfig":
        return validate_config({**self.model_dump(), **changes})

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True), indent=2) + "\n"


@dataclass(frozen=True)
class LoadedConfig:
    """A configuration value together with the file it came from."""

    config: BranchletConfig
    path: Path | None = None

    @property
    def is_global(self) -> bool:
        return self.path is not None and self.path == global_config_file()


def global_config_dir() -> Path:
    raw = os.environ.get(CONFIG_DIR_ENV)
    if raw:
        return Path(raw).expanduser()
    return Path.home() / ".branchlet"


def global_config_file() -> Path:
    return global_config_dir() / GLOBAL_CONFIG_FILE_NAME


def _format_errors(exc: PydanticValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "<root>"
        messages.append(f"{location}: {error['msg']}")
    return "; ".join(messages)


def validate_config(data: Any, config_path: Path | None = None) -> BranchletConfig:
    try:
        return BranchletConfig.model_validate(data)
    except PydanticValidationError as exc:
        raise ConfigError(
            f"Invalid configuration: {_format_errors(exc)}",
            str(config_path) if config_path else None,
        ) from exc


def find_config_file(project_path: Path | None = None) -> Path | None:
    """Return the first configuration file that exists.

    Search order: the project root, the working directory, then the global
    settings file.
    """

    search: list[Path] = []
    if project_path is not None:
        search.append(Path(project_path) / LOCAL_CONFIG_FILE_NAME)
    search.append(Path.cwd() / LOCAL_CONFIG_FILE_NAME)
    search.append(global_config_file())
    for candidate in search:
        if candidate.is_file():
            return candidate
    return None


def read_config(path: Path) -> BranchletConfig:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Failed to load config from {path}: {exc}", str(path)) from exc
    return validate_config(raw, path)


def load_config(project_path: Path | None = None) -> LoadedConfig:
    ensure_global_config()
    path = find_config_file(project_path)
    if path is None:
        return LoadedConfig(BranchletConfig())
    logger.debug("Loading configuration from %s", path)
    return LoadedConfig(read_config(path), path)


def save_config(config: BranchletConfig, path: Path | None = None) -> LoadedConfig:
    target = path or (Path.cwd() / LOCAL_CONFIG_FILE_NAME)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(config.to_json(), encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to save config to {target}: {exc}", str(target)) from exc
    return LoadedConfig(config, target)


def ensure_global_config() -> Path:
    path = global_config_file()
    if not path.exists():
        logger.debug("Creating default configuration at %s", path)
        save_config(BranchletConfig(), path)
    return path


def load_global_config() -> LoadedConfig:
    path = ensure_global_config()
    return LoadedConfig(read_config(path), path)


def update_global_config(**changes: Any) -> LoadedConfig:
    """Apply ``changes`` to the global settings file only."""

    loaded = load_global_config()
    return save_config(loaded.config.with_updates(**changes), loaded.path)


def reset_global_config() -> LoadedConfig:
    return save_config(BranchletConfig(), global_config_file())


__all__ = [
    "BranchletConfig",
    "LoadedConfig",
    "LOCAL_CONFIG_FILE_NAME",
    "CONFIG_DIR_ENV",
    "global_config_dir",
    "global_config_file",
    "validate_config",
    "find_config_file",
    "read_config",
    "load_config",
    "save_config",
    "ensure_global_config",
    "load_global_config",
    "update_global_config",
    "reset_global_config",
]
