"""
Mirror Sync — Reconcile a local tree against remote listing pages.

## Usage

    from webmirror.mirror.sync import sync

    result = sync("viewvc", "https://cvs.example.org/viewvc/emacs/lisp/",
                  Path("/srv/mirror/lisp"), file_mask="progmodes/*.el")
    print(result.revision, result.replaced)

## Walk

Each listing page is fetched once, its files are compared with the local
copies, and (when recursive) each subdirectory below the page is visited in
turn. Everything runs sequentially on the caller's thread.

A file is downloaded when it is missing locally, when its local mtime is
older than the remote one (beyond MTIME_TOLERANCE), or when the listing
gives no remote time at all. Downloads go to a temp file next to the
destination; identical bytes leave the local file alone, different bytes
push the old copy to ``<name>.moved`` and rename the download into place.

The ledger entry for the root URL (qualified by the mask and the recursive
flag, see ledger.source_key) is cleared before the walk and only rewritten
once the whole tree succeeded.
"""

from __future__ import annotations

import filecmp
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set, Union

from ..errors import ConfigError, RevisionMismatchError, SafetyError
from ..sources.loader import get_source, load_sources
from ..sources.models import RemoteSource
from . import events
from .config import MOVED_SUFFIX, MTIME_TOLERANCE, TEMP_SUFFIX, SyncSettings
from .events import ConfirmCallback, ProgressCallback, ReviewHook, SyncEvent
from .fetch import Fetcher, PageCache
from .ledger import RevisionLedger, source_key
from .listing import FileLink, Listing, parse_listing
from .mask import FileMask

logger = logging.getLogger(__name__)


@dataclass
class MirrorEntry:
    """One file under the mirror root, as seen during a walk."""

    rel_path: str
    url: str
    remote_mtime: Optional[float] = None
    local_mtime: Optional[float] = None

    def is_up_to_date(self, tolerance: float = MTIME_TOLERANCE) -> bool:
        """True when the local copy is not older than the remote one."""
        if self.local_mtime is None or self.remote_mtime is None:
            return False
        return self.local_mtime >= self.remote_mtime - tolerance


@dataclass
class SyncResult:
    """Outcome of one sync invocation."""

    revision: Optional[str] = None
    added: int = 0
    updated: int = 0
    unchanged: int = 0
    up_to_date: int = 0
    skipped: int = 0
    rejected: int = 0
    short_circuited: bool = False

    @property
    def replaced(self) -> int:
        return self.added + self.updated

    def summary(self) -> str:
        return (
            f"{self.added} new, {self.updated} updated, {self.unchanged} unchanged, "
            f"{self.up_to_date} up to date"
        )


def find_moved_files(root: Path) -> List[Path]:
    """All leftover backups below root, sorted."""
    if not root.is_dir():
        return []
    return sorted(p for p in root.rglob(f"*{MOVED_SUFFIX}") if p.is_file())


def _join(rel_dir: str, name: str) -> str:
    return f"{rel_dir}/{name}" if rel_dir else name


class MirrorSync:
    """
    One sync of one remote tree into one mirror root.

    Not reusable: create a new instance (or call sync()) per invocation.
    """

    def __init__(
        self,
        source: RemoteSource,
        local_root: Path,
        fetcher: Fetcher,
        *,
        file_mask: Optional[str] = None,
        recursive: bool = True,
        settings: Optional[SyncSettings] = None,
        cache: Optional[PageCache] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_confirm: Optional[ConfirmCallback] = None,
        review_before_accept: Optional[ReviewHook] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        local_root = Path(local_root)
        if not local_root.is_absolute():
            raise ConfigError(f"Mirror root must be an absolute path, got '{local_root}'")
        self.root = Path(os.path.normpath(local_root))
        if self.root.exists() and not self.root.is_dir():
            raise ConfigError(f"Mirror root {self.root} is not a directory")

        self.source = source
        self.fetcher = fetcher
        self.mask = FileMask(file_mask)
        self.recursive = recursive
        self.settings = settings or SyncSettings()
        self.cache = cache if cache is not None else PageCache()
        self.on_progress = on_progress or events.ignore_progress
        self.on_confirm = on_confirm or events.decline
        self.review = review_before_accept or events.always_accept
        self._sleep = sleep
        self._clock = clock

        self.ledger = RevisionLedger(self.root)
        self.result = SyncResult()
        self._visited: Set[str] = set()

    def _emit(self, kind: str, url: Optional[str] = None,
              path: Optional[str] = None, detail: Optional[str] = None) -> None:
        self.on_progress(SyncEvent(kind=kind, url=url, path=path, detail=detail))

    def ledger_key(self, root_url: str) -> str:
        """Ledger key for this sync: the root URL, qualified by mask and recursion."""
        return source_key(root_url, "/".join(self.mask.segments) or None, self.recursive)

    # ─── Entry Point ────────────────────────────────────────

    def run(self, root_url: str, force: bool = False) -> SyncResult:
        """
        Sync the tree at root_url.

        Raises:
            SafetyError: Leftover .moved files under the mirror root
            FetchError: A page or file could not be retrieved
            RevisionMismatchError: A subdirectory disagrees with the root
            OSError: Local filesystem failure
        """
        moved = find_moved_files(self.root)
        if moved:
            raise SafetyError(moved)

        self.root.mkdir(parents=True, exist_ok=True)
        key = self.ledger_key(root_url)
        self._emit(events.START, url=root_url, detail=self.source.name)
        logger.info(
            f"[mirror] Syncing {root_url} into {self.root} ({self.source.name})",
            extra={"url": root_url},
        )

        listing = self._fetch_listing(root_url)
        revision = listing.revision

        if revision is not None and not force and self.ledger.get(key) == revision:
            prompt = f"{root_url} is already mirrored at revision {revision}. Scan anyway?"
            if not self.on_confirm(prompt):
                logger.info(
                    f"[mirror] Revision {revision} already mirrored, nothing to do",
                    extra={"url": root_url, "revision": revision},
                )
                self._emit(events.SHORT_CIRCUIT, url=root_url, detail=revision)
                self.result.revision = revision
                self.result.short_circuited = True
                return self.result

        self.ledger.clear(key)

        self._sync_listing(listing, rel_dir="", expected_revision=None)

        self.result.revision = revision
        if revision is not None:
            self.ledger.record(key, revision)

        logger.info(
            f"[mirror] Sync complete: {self.result.summary()}",
            extra={"url": root_url, "revision": revision},
        )
        self._emit(events.DONE, url=root_url, detail=self.result.summary())
        return self.result

    # ─── Walk ───────────────────────────────────────────────

    def _fetch_listing(self, url: str) -> Listing:
        self._visited.add(url)
        page = self.cache.fetch(url, self.fetcher)
        return parse_listing(page, url, self.source)

    def _sync_listing(
        self,
        listing: Listing,
        rel_dir: str,
        expected_revision: Optional[str],
    ) -> None:
        if expected_revision is not None and listing.revision != expected_revision:
            raise RevisionMismatchError(listing.url, expected_revision, listing.revision)

        self._emit(
            events.PAGE,
            url=listing.url,
            path=rel_dir or ".",
            detail=f"{len(listing.files)} file(s), {len(listing.subdirs)} dir(s)",
        )
        for url in listing.ignored:
            self._emit(events.IGNORED_LINK, url=url, path=rel_dir or ".")

        for link in listing.files:
            rel_path = _join(rel_dir, link.name)
            if not self.mask.matches_file(rel_path):
                self.result.skipped += 1
                self._emit(events.MASKED, url=link.url, path=rel_path)
                continue
            self._sync_file(link, rel_path)

        if not self.recursive:
            return

        for sub in listing.subdirs:
            child_rel = _join(rel_dir, sub.rel_path)
            if not self.mask.matches_dir(child_rel):
                self._emit(events.MASKED, url=sub.url, path=child_rel + "/")
                continue
            if sub.url in self._visited:
                logger.debug(f"[mirror] Already visited {sub.url}")
                continue
            child = self._fetch_listing(sub.url)
            self._sync_listing(child, child_rel, listing.revision)

    # ─── Files ──────────────────────────────────────────────

    def _sync_file(self, link: FileLink, rel_path: str) -> None:
        dest = self.root.joinpath(*rel_path.split("/"))
        entry = MirrorEntry(rel_path=rel_path, url=link.url, remote_mtime=link.remote_mtime)

        if dest.exists() or dest.is_symlink():
            if not dest.is_file():
                raise IsADirectoryError(f"{dest} exists and is not a regular file")
            entry.local_mtime = dest.stat().st_mtime

        if entry.is_up_to_date():
            self.result.up_to_date += 1
            self._emit(events.UP_TO_DATE, url=link.url, path=rel_path)
            return

        dest.parent.mkdir(parents=True, exist_ok=True)
        temp = dest.with_name(f".{dest.name}{TEMP_SUFFIX}")

        started = self._clock()
        self.fetcher.download(link.url, temp)
        try:
            self._accept(entry, temp, dest)
        finally:
            temp.unlink(missing_ok=True)
        self._pace(started)

    def _accept(self, entry: MirrorEntry, temp: Path, dest: Path) -> None:
        had_local = entry.local_mtime is not None
        remote = entry.remote_mtime

        if had_local and filecmp.cmp(temp, dest, shallow=False):
            if remote is not None and self.settings.touch_unchanged:
                os.utime(dest, (remote, remote))
            self.result.unchanged += 1
            self._emit(events.UNCHANGED, url=entry.url, path=entry.rel_path)
            return

        if not self.review(temp, dest):
            logger.info(f"[mirror] Rejected {entry.rel_path}", extra=self._log_extra(entry))
            self.result.rejected += 1
            self._emit(events.REJECTED, url=entry.url, path=entry.rel_path)
            return

        if remote is not None:
            os.utime(temp, (remote, remote))

        if had_local:
            backup = dest.with_name(dest.name + MOVED_SUFFIX)
            backup.unlink(missing_ok=True)
            os.replace(dest, backup)
            os.replace(temp, dest)
            self.result.updated += 1
            logger.info(
                f"[mirror] Updated {entry.rel_path} (previous copy kept as {backup.name})",
                extra=self._log_extra(entry),
            )
            self._emit(events.UPDATED, url=entry.url, path=entry.rel_path)
        else:
            os.replace(temp, dest)
            self.result.added += 1
            logger.info(f"[mirror] New file {entry.rel_path}", extra=self._log_extra(entry))
            self._emit(events.NEW, url=entry.url, path=entry.rel_path)

    @staticmethod
    def _log_extra(entry: MirrorEntry) -> Dict[str, str]:
        return {"url": entry.url, "path": entry.rel_path}

    def _pace(self, started: float) -> None:
        remaining = self.settings.min_interval - (self._clock() - started)
        if remaining > 0:
            self._sleep(remaining)


def sync(
    source: Union[str, RemoteSource],
    root_url: str,
    local_root: Union[str, Path],
    file_mask: Optional[str] = None,
    recursive: bool = True,
    *,
    sources: Optional[Dict[str, RemoteSource]] = None,
    fetcher: Optional[Fetcher] = None,
    settings: Optional[SyncSettings] = None,
    cache: Optional[PageCache] = None,
    on_progress: Optional[ProgressCallback] = None,
    on_confirm: Optional[ConfirmCallback] = None,
    review_before_accept: Optional[ReviewHook] = None,
    force: bool = False,
    sleep: Callable[[float], None] = time.sleep,
) -> SyncResult:
    """
    Mirror the tree at root_url into local_root.

    Args:
        source: Source name (looked up in sources) or a RemoteSource
        root_url: Listing page of the tree's root
        local_root: Absolute path of the mirror root
        file_mask: Optional path-shaped glob, see mask.FileMask
        recursive: Descend into subdirectories
        sources: Known sources; loaded from config when omitted
        fetcher: HTTP client; one is created (and closed) when omitted
        force: Walk the tree even if the ledger shows the same revision

    Returns:
        SyncResult with the root revision and per-outcome counts
    """
    settings = settings or SyncSettings.from_env()

    if isinstance(source, str):
        if sources is None:
            sources = load_sources(settings.sources_file)
        source = get_source(source, sources)

    own_fetcher = fetcher is None
    if fetcher is None:
        fetcher = Fetcher.from_settings(settings)

    try:
        job = MirrorSync(
            source,
            Path(local_root),
            fetcher,
            file_mask=file_mask,
            recursive=recursive,
            settings=settings,
            cache=cache,
            on_progress=on_progress,
            on_confirm=on_confirm,
            review_before_accept=review_before_accept,
            sleep=sleep,
        )
        return job.run(root_url, force=force)
    finally:
        if own_fetcher:
            fetcher.close()
