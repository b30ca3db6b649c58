"""
Revision Ledger — Last synced revision per source, kept at the mirror root.

The file is plain text, one entry per line:

    # webmirror revision ledger
    https://cvs.example.org/viewvc/emacs/lisp/ 1.2041

A sync restricted by a file mask or to the top level records under its own
key (see source_key), so it never vouches for parts of the tree it skipped.

Blank lines and ``#`` comments are ignored. New entries are appended at the
end. Every change is written to a temp file and renamed into place, so an
entry is either fully present or absent.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import quote

from .config import LEDGER_NAME

logger = logging.getLogger(__name__)

HEADER = "# webmirror revision ledger: <source-id> <revision>\n"

# Characters left as-is when quoting a URL into a key; everything else,
# whitespace included, is percent-encoded.
URL_SAFE = ":/?#[]@!$&'()*+,;=%~"


def source_key(root_url: str, file_mask: Optional[str] = None, recursive: bool = True) -> str:
    """
    Ledger key for one way of syncing root_url.

    A full recursive sync is keyed by the URL alone. A masked sync appends
    ``#mask=<mask>`` and a top-level-only sync appends ``#top``.
    """
    key = quote(root_url, safe=URL_SAFE)
    if file_mask:
        key += "#mask=" + quote(file_mask, safe="/*?[]!")
    if not recursive:
        key += "#top"
    return key


class RevisionLedger:
    """
    Per-mirror-root record of source id -> revision token.

    Usage:
        ledger = RevisionLedger(Path("/srv/mirror"))
        ledger.clear(url)          # before downloading
        ledger.record(url, "42")   # after the whole tree succeeded
    """

    def __init__(self, root: Path, name: str = LEDGER_NAME):
        self.root = Path(root)
        self.path = self.root / name

    def entries(self) -> Dict[str, str]:
        """Read all entries, in file order."""
        if not self.path.exists():
            return {}

        result: Dict[str, str] = {}
        with self.path.open("r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, 1):
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                parts = line.split(None, 1)
                if len(parts) != 2:
                    logger.warning(f"[ledger] {self.path.name}:{lineno}: malformed entry ignored")
                    continue
                result[parts[0]] = parts[1]
        return result

    def get(self, key: str) -> Optional[str]:
        return self.entries().get(key)

    def clear(self, key: str) -> None:
        """Drop the entry for key, if any."""
        entries = self.entries()
        if key not in entries:
            return
        del entries[key]
        self._write(entries)
        logger.debug(f"[ledger] Cleared revision for {key}")

    def record(self, key: str, revision: str) -> None:
        """Set the revision for key."""
        if not revision or any(c.isspace() for c in key) or "\n" in revision:
            raise ValueError(f"Cannot record revision {revision!r} for {key!r}")
        entries = self.entries()
        entries.pop(key, None)
        entries[key] = revision
        self._write(entries)
        logger.info(f"[ledger] Recorded revision {revision} for {key}")

    def _write(self, entries: Dict[str, str]) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_name(self.path.name + ".tmp")
        with temp_path.open("w", encoding="utf-8") as f:
            f.write(HEADER)
            for key, revision in entries.items():
                f.write(f"{key} {revision}\n")
        os.replace(temp_path, self.path)
