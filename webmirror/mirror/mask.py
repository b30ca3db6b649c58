"""
File Masks — Path-shaped glob filters.

A mask such as ``lisp/progmodes/*.el`` is split on ``/`` and each segment is
matched (fnmatch, case-sensitive) against the segment at the same depth of a
mirror-relative path. A mask shorter than the path only constrains the
leading segments, so ``docs`` selects the whole ``docs/`` subtree.

Directories are matched partially: a directory passes while every segment
it has matches, which lets ``lisp/progmodes/*.el`` descend into ``lisp``
but prune ``etc``. An empty mask matches everything.
"""

from __future__ import annotations

from fnmatch import fnmatchcase
from typing import Optional, Tuple


def split_path(path: Optional[str]) -> Tuple[str, ...]:
    if not path:
        return ()
    return tuple(p for p in path.split("/") if p)


class FileMask:
    """A parsed mask; an empty mask accepts every path."""

    def __init__(self, mask: Optional[str] = None):
        self.raw = mask or ""
        self.segments = split_path(mask)

    def __bool__(self) -> bool:
        return bool(self.segments)

    def __repr__(self) -> str:
        return f"FileMask({self.raw!r})"

    def _leading_match(self, parts: Tuple[str, ...]) -> bool:
        return all(fnmatchcase(p, m) for p, m in zip(parts, self.segments))

    def matches_file(self, rel_path: str) -> bool:
        """Whether a file at rel_path is selected."""
        parts = split_path(rel_path)
        if len(parts) < len(self.segments):
            return False
        return self._leading_match(parts)

    def matches_dir(self, rel_path: str) -> bool:
        """Whether anything below the directory at rel_path can be selected."""
        return self._leading_match(split_path(rel_path))
