"""
Errors — Failure taxonomy for mirror syncs.

Every error aborts the whole sync. Files already replaced earlier in the
walk stay replaced; each replacement is an individual rename.
Local filesystem failures are not wrapped and propagate as OSError.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional


class MirrorError(Exception):
    """Base class for all sync failures."""


class ConfigError(MirrorError):
    """Unknown source, invalid pattern, or unusable mirror root."""


class SafetyError(MirrorError):
    """Leftover .moved backups block a new sync until cleaned up."""

    def __init__(self, paths: List[Path]):
        self.paths = list(paths)
        shown = ", ".join(str(p) for p in self.paths[:5])
        more = f" (+{len(self.paths) - 5} more)" if len(self.paths) > 5 else ""
        super().__init__(
            f"{len(self.paths)} leftover .moved file(s) must be reviewed "
            f"and removed first: {shown}{more}"
        )


class FetchError(MirrorError):
    """A listing page or file could not be retrieved."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch {url}: {reason}")


class RevisionMismatchError(MirrorError):
    """A subdirectory page reports a different revision than the root."""

    def __init__(self, url: str, expected: str, actual: Optional[str]):
        self.url = url
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Revision mismatch at {url}: expected {expected!r}, "
            f"page reports {actual!r}"
        )
