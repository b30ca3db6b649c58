"""
Sync Journal — Append-only NDJSON record of sync events.

Each line is one JSON object. Lines are never edited, only appended.
Hook it up as a progress callback:

    journal = SyncJournal(root / JOURNAL_NAME)
    sync(..., on_progress=journal.emit)
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, Optional
from uuid import uuid4

from .events import SyncEvent


class SyncJournal:
    """Writes one line per SyncEvent, tagged with a per-run id."""

    def __init__(self, path: Path, run_id: Optional[str] = None):
        self.path = path
        self.run_id = run_id or f"R-{datetime.now(timezone.utc):%Y%m%dT%H%M%S}-{uuid4().hex[:6].upper()}"

    def emit(self, event: SyncEvent) -> None:
        entry: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "run_id": self.run_id,
        }
        entry.update({k: v for k, v in event.to_dict().items() if v is not None})

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(entry) + "\n")

    def read(self) -> Iterator[Dict[str, Any]]:
        """Yield every recorded entry, oldest first."""
        if not self.path.exists():
            return
        with self.path.open("r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    yield json.loads(line)
