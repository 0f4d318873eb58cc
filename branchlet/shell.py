"""Install a shell function that lets the menu change the caller's directory."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from .exceptions import ValidationError

logger = logging.getLogger(__name__)

WRAPPER_SIGNATURE = "# Branchlet setup: added on"
SUPPORTED_SHELLS = ("zsh", "bash")


@dataclass(slots=True)
class ShellIntegrationStatus:
    installed: bool
    shell: str
    config_path: Path | None
    reason: str | None = None


def detect_shell() -> str:
    shell = os.environ.get("SHELL", "").lower()
    if "zsh" in shell:
        return "zsh"
    if "bash" in shell:
        return "bash"
    return "unknown"


def shell_config_path(shell: str) -> Path | None:
    if shell == "zsh":
        return Path.home() / ".zshrc"
    if shell == "bash":
        return Path.home() / ".bashrc"
    return None


def wrapper_function(command_name: str = "branchlet", today: date | None = None) -> str:
    """Return the shell function that wraps ``command_name``.

    Called without arguments it runs the menu, reads the chosen directory
    from a temporary file and ``cd``s into it. Any other invocation is passed
    straight through.
    """

    stamp = (today or date.today()).isoformat()
    return (
        f"{WRAPPER_SIGNATURE} {stamp}\n"
        f"{command_name}() {{\n"
        "  if [ $# -eq 0 ]; then\n"
        '    local cd_file="$(mktemp)"\n'
        f'    command {command_name} --cd-file "$cd_file"\n'
        '    local dir="$(cat "$cd_file")"\n'
        '    rm -f "$cd_file"\n'
        '    if [ -n "$dir" ]; then\n'
        '      cd "$dir" && echo "$(pwd)"\n'
        "    fi\n"
        "  else\n"
        f'    command {command_name} "$@"\n'
        "  fi\n"
        "}"
    )


def _block_bounds(lines: list[str]) -> tuple[int, int] | None:
    start = next((i for i, line in enumerate(lines) if WRAPPER_SIGNATURE in line), None)
    if start is None:
        return None
    end = start
    for index in range(start + 1, len(lines)):
        if lines[index].strip() == "}":
            end = index
            break
    return start, end


def strip_wrapper(content: str) -> str:
    """Remove the wrapper block, and the blank line written before it."""

    lines = content.split("\n")
    bounds = _block_bounds(lines)
    if bounds is None:
        return content
    start, end = bounds
    if start > 0 and not lines[start - 1].strip():
        start -= 1
    del lines[start : end + 1]
    return "\n".join(lines)


def detect_shell_integration(shell: str | None = None) -> ShellIntegrationStatus:
    shell = shell or detect_shell()
    config_path = shell_config_path(shell)
    if config_path is None:
        return ShellIntegrationStatus(False, shell, None, "Could not determine shell config file")
    if not config_path.exists():
        return ShellIntegrationStatus(False, shell, config_path, "Config file does not exist")
    try:
        content = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        return ShellIntegrationStatus(False, shell, config_path, f"Failed to read config: {exc}")
    if WRAPPER_SIGNATURE in content:
        return ShellIntegrationStatus(True, shell, config_path)
    return ShellIntegrationStatus(False, shell, config_path, "Shell integration not found in config")


def _require_config_path(shell: str) -> Path:
    config_path = shell_config_path(shell)
    if config_path is None:
        raise ValidationError(f"Unsupported shell '{shell}'. Supported shells: {', '.join(SUPPORTED_SHELLS)}")
    return config_path


def install_shell_integration(shell: str, command_name: str = "branchlet") -> Path:
    """Append the wrapper to the shell's rc file, replacing an older copy."""

    config_path = _require_config_path(shell)
    content = config_path.read_text(encoding="utf-8") if config_path.exists() else ""
    content = strip_wrapper(content).rstrip("\n")
    prefix = f"{content}\n\n" if content else ""
    config_path.write_text(f"{prefix}{wrapper_function(command_name)}\n", encoding="utf-8")
    logger.info("Installed shell integration in %s", config_path)
    return config_path


def remove_shell_integration(shell: str) -> Path | None:
    config_path = _require_config_path(shell)
    if not config_path.exists():
        return None
    content = config_path.read_text(encoding="utf-8")
    if WRAPPER_SIGNATURE not in content:
        return None
    config_path.write_text(strip_wrapper(content), encoding="utf-8")
    logger.info("Removed shell integration from %s", config_path)
    return config_path


__all__ = [
    "ShellIntegrationStatus",
    "WRAPPER_SIGNATURE",
    "detect_shell",
    "shell_config_path",
    "wrapper_function",
    "strip_wrapper",
    "detect_shell_integration",
    "install_shell_integration",
    "remove_shell_integration",
]
