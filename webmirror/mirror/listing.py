"""
Listing — Turn one listing page into file and subdirectory links.

Patterns come from the RemoteSource. Links are HTML-unescaped and resolved
against the page URL. Subdirectory links that do not live under the page's
own URL are ignored, which keeps the walk inside the requested subtree.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import unquote, urljoin, urlsplit

from ..sources.models import RemoteSource

logger = logging.getLogger(__name__)


@dataclass
class FileLink:
    url: str
    name: str
    remote_mtime: Optional[float] = None  # epoch seconds


@dataclass
class DirLink:
    url: str
    rel_path: str  # relative to the page it was found on


@dataclass
class Listing:
    """Everything scraped from one listing page."""

    url: str
    files: List[FileLink] = field(default_factory=list)
    subdirs: List[DirLink] = field(default_factory=list)
    revision: Optional[str] = None
    ignored: List[str] = field(default_factory=list)


def parse_mtime(text: str, time_format: Optional[str] = None) -> Optional[float]:
    """
    Parse a remote modification time into epoch seconds.

    Naive times are taken as UTC. Returns None when the text does not
    parse, so the caller falls back to a content comparison.
    """
    text = html.unescape(text).strip()
    try:
        if time_format:
            dt = datetime.strptime(text, time_format)
        else:
            dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"[listing] Unparseable modification time {text!r}")
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def _resolve(page_url: str, raw: str) -> str:
    return urljoin(page_url, html.unescape(raw.strip()))


def relative_to_page(page_url: str, url: str) -> Optional[str]:
    """
    Path of url below page_url, or None when url is outside it.

    The query string of either URL is not part of the comparison.
    """
    page = urlsplit(page_url)
    link = urlsplit(url)
    if (link.scheme, link.netloc) != (page.scheme, page.netloc):
        return None
    base = page.path if page.path.endswith("/") else page.path + "/"
    if not link.path.startswith(base):
        return None
    rel = unquote(link.path[len(base):]).strip("/")
    if not rel:
        return None
    if any(part in ("", ".", "..") for part in rel.split("/")):
        return None
    return rel


def extract_revision(page: str, source: RemoteSource) -> Optional[str]:
    pattern = source.revision_re
    if pattern is None:
        return None
    m = pattern.search(page)
    if m is None:
        return None
    return html.unescape(m.group("revision")).strip() or None


def parse_listing(page: str, page_url: str, source: RemoteSource) -> Listing:
    """Apply a source's patterns to a listing page."""
    listing = Listing(url=page_url, revision=extract_revision(page, source))

    seen_files: set = set()
    name_re = source.name_re
    for m in source.file_re.finditer(page):
        url = _resolve(page_url, m.group("url"))
        if url in seen_files:
            continue
        seen_files.add(url)

        name_match = name_re.search(url)
        if name_match is None:
            logger.debug(f"[listing] No file name in {url}, skipping")
            listing.ignored.append(url)
            continue
        name = unquote(name_match.group("name"))
        if not name or "/" in name or name in (".", ".."):
            listing.ignored.append(url)
            continue

        mtime_text = m.groupdict().get("mtime")
        mtime = parse_mtime(mtime_text, source.time_format) if mtime_text else None
        listing.files.append(FileLink(url=url, name=name, remote_mtime=mtime))

    seen_dirs: set = set()
    for m in source.dir_re.finditer(page):
        url = _resolve(page_url, m.group("url"))
        if url in seen_dirs:
            continue
        seen_dirs.add(url)

        rel = relative_to_page(page_url, url)
        if rel is None:
            logger.debug(f"[listing] Ignoring link outside {page_url}: {url}")
            listing.ignored.append(url)
            continue
        listing.subdirs.append(DirLink(url=url, rel_path=rel))

    return listing
