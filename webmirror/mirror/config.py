"""
Sync Configuration — Parse WEBMIRROR_* environment variables.

Minimal config is none at all; every setting has a default:

    WEBMIRROR_MIN_INTERVAL=1.0      # seconds between file downloads
    WEBMIRROR_TIMEOUT=30            # HTTP timeout in seconds
    WEBMIRROR_USER_AGENT=...        # sent with every request
    WEBMIRROR_TOUCH_UNCHANGED=true  # copy remote mtime onto unchanged files
    WEBMIRROR_JOURNAL=true          # append events to the mirror's journal
    WEBMIRROR_SOURCES_FILE=...      # extra/overriding source definitions
    WEBMIRROR_PROFILES_FILE=...     # named mirror profiles
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .. import __version__

logger = logging.getLogger(__name__)

LEDGER_NAME = ".webmirror-revisions"
JOURNAL_NAME = ".webmirror-journal.ndjson"
MOVED_SUFFIX = ".moved"
TEMP_SUFFIX = ".webmirror-part"

# Remote and local timestamps within this many seconds count as equal
MTIME_TOLERANCE = 1.0


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value.lower() in ("true", "1", "yes")


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    try:
        parsed = float(value)
    except ValueError:
        logger.warning(f"{name}={value!r} is not a number, using {default}")
        return default
    if parsed < 0:
        logger.warning(f"{name}={value!r} is negative, using {default}")
        return default
    return parsed


def _env_path(name: str) -> Optional[Path]:
    value = os.environ.get(name)
    return Path(value).expanduser() if value else None


@dataclass
class SyncSettings:
    """Tunables for one sync invocation."""

    min_interval: float = 1.0
    timeout: float = 30.0
    user_agent: str = f"webmirror/{__version__}"
    touch_unchanged: bool = True
    journal: bool = True
    sources_file: Optional[Path] = None
    profiles_file: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "SyncSettings":
        """Parse sync settings from environment variables."""
        defaults = cls()
        return cls(
            min_interval=_env_float("WEBMIRROR_MIN_INTERVAL", defaults.min_interval),
            timeout=_env_float("WEBMIRROR_TIMEOUT", defaults.timeout),
            user_agent=os.environ.get("WEBMIRROR_USER_AGENT") or defaults.user_agent,
            touch_unchanged=_env_bool("WEBMIRROR_TOUCH_UNCHANGED", defaults.touch_unchanged),
            journal=_env_bool("WEBMIRROR_JOURNAL", defaults.journal),
            sources_file=_env_path("WEBMIRROR_SOURCES_FILE"),
            profiles_file=_env_path("WEBMIRROR_PROFILES_FILE"),
        )
