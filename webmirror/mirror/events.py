"""
Sync Events — Structured progress reporting and operator hooks.

The sync algorithm never talks to a terminal. Callers supply:

    on_progress(event)                  -> None   every SyncEvent
    on_confirm(prompt)                  -> bool   yes/no questions
    review_before_accept(temp, dest)    -> bool   accept a downloaded file?
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

# Event kinds
START = "start"
PAGE = "page"
SHORT_CIRCUIT = "short_circuit"
MASKED = "masked"
IGNORED_LINK = "ignored_link"
UP_TO_DATE = "up_to_date"
UNCHANGED = "unchanged"
NEW = "new"
UPDATED = "updated"
REJECTED = "rejected"
DONE = "done"


@dataclass(frozen=True)
class SyncEvent:
    """One step of a sync, as reported to on_progress."""

    kind: str
    url: Optional[str] = None
    path: Optional[str] = None  # mirror-relative, POSIX separators
    detail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


ProgressCallback = Callable[[SyncEvent], None]
ConfirmCallback = Callable[[str], bool]
ReviewHook = Callable[[Path, Path], bool]


def ignore_progress(event: SyncEvent) -> None:
    pass


def decline(prompt: str) -> bool:
    return False


def always_accept(temp_path: Path, dest_path: Path) -> bool:
    return True


def fan_out(*callbacks: Optional[ProgressCallback]) -> ProgressCallback:
    """Combine several progress callbacks into one, skipping None."""
    active = [cb for cb in callbacks if cb is not None]

    def _emit(event: SyncEvent) -> None:
        for cb in active:
            cb(event)

    return _emit
