"""Check PyPI for a newer release, at most once a day."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import Callable

import requests

from .config import BranchletConfig
from .exceptions import ConfigError

logger = logging.getLogger(__name__)

PYPI_URL = "https://pypi.org/pypi/branchlet/json"
REQUEST_TIMEOUT = 5
CACHE_TTL_SECONDS = 24 * 60 * 60

_VERSION_RE = re.compile(r"^v?(\d+)\.(\d+)\.(\d+)(?:[-.+].*)?$")

SaveCallback = Callable[..., object]


@dataclass(slots=True)
class UpdateCheckResult:
    has_update: bool
    current_version: str
    checked_at: float
    latest_version: str | None = None
    error: str | None = None


def parse_version(version: str) -> tuple[int, int, int]:
    match = _VERSION_RE.match(version.strip())
    if not match:
        raise ValueError(f"Invalid version format: {version}")
    major, minor, patch = match.groups()
    return int(major), int(minor), int(patch)


def is_valid_version(version: str) -> bool:
    try:
        parse_version(version)
    except ValueError:
        return False
    return True


def is_newer_version(current: str, candidate: str) -> bool:
    """Return True when ``candidate`` is a later major.minor.patch than ``current``.

    Unparseable versions never count as newer.
    """

    try:
        return parse_version(candidate) > parse_version(current)
    except ValueError:
        return False


def should_check(config: BranchletConfig, now: float | None = None) -> bool:
    now = time.time() if now is None else now
    return now - (config.last_update_check or 0) >= CACHE_TTL_SECONDS


def cached_update_status(config: BranchletConfig, current_version: str | None = None) -> UpdateCheckResult | None:
    if not config.last_update_check or not config.latest_version:
        return None
    version = current_version or config.checked_version or config.latest_version
    return UpdateCheckResult(
        has_update=is_newer_version(version, config.latest_version),
        current_version=version,
        latest_version=config.latest_version,
        checked_at=config.last_update_check,
    )


def fetch_latest_version(session: requests.Session | None = None) -> str:
    http = session or requests
    response = http.get(PYPI_URL, headers={"Accept": "application/json"}, timeout=REQUEST_TIMEOUT)
    response.raise_for_status()
    return str(response.json()["info"]["version"])


def check_for_updates(
    current_version: str,
    config: BranchletConfig,
    save: SaveCallback | None = None,
    *,
    force: bool = False,
    session: requests.Session | None = None,
    now: float | None = None,
) -> UpdateCheckResult:
    """Compare ``current_version`` with the newest release on PyPI.

    Within the cache window the stored result is returned. A successful
    lookup is persisted by calling ``save(last_update_check=..., ...)``.
    Failures are returned on the result, never raised.
    """

    now = time.time() if now is None else now
    if not force and not should_check(config, now):
        cached = cached_update_status(config, current_version)
        if cached is not None:
            return cached
        return UpdateCheckResult(False, current_version, config.last_update_check or now)

    try:
        latest = fetch_latest_version(session)
    except (requests.RequestException, ValueError, KeyError, TypeError) as exc:
        logger.debug("Update check failed: %s", exc)
        return UpdateCheckResult(False, current_version, now, error=str(exc))

    if save is not None:
        try:
            save(last_update_check=now, latest_version=latest, checked_version=current_version)
        except ConfigError as exc:
            logger.debug("Could not store update check: %s", exc)
    return UpdateCheckResult(
        has_update=is_newer_version(current_version, latest),
        current_version=current_version,
        checked_at=now,
        latest_version=latest,
    )


__all__ = [
    "UpdateCheckResult",
    "parse_version",
    "is_valid_version",
    "is_newer_version",
    "should_check",
    "cached_update_status",
    "fetch_latest_version",
    "check_for_updates",
]
