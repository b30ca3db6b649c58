"""
Shared fixtures for mirror tests.

Provides a fake VCS web front-end served through httpx.MockTransport and
a temporary mirror root, so syncs run without touching the network.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import httpx
import pytest

from webmirror.mirror.config import SyncSettings
from webmirror.mirror.fetch import Fetcher
from webmirror.sources.models import RemoteSource

BASE_URL = "http://vcs.test/browse/"

FAKE_SOURCE = RemoteSource(
    name="fake",
    description="Test front-end",
    file_pattern=r'<a class="file" href="(?P<url>[^"]+)"(?: data-mtime="(?P<mtime>[^"]+)")?>',
    dir_pattern=r'<a class="dir" href="(?P<url>[^"]+)">',
    name_pattern=r"/(?P<name>[^/?]+)(?:\?.*)?$",
    revision_pattern=r'<meta name="revision" content="(?P<revision>[^"]+)">',
)

# 2024-03-01T12:00:00Z
REMOTE_TIME = 1709294400.0


def iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat().replace("+00:00", "Z")


class FakeRemote:
    """
    An in-memory remote tree rendered as listing pages.

    Directory pages live at BASE_URL + "<dir>/", files at
    BASE_URL + "<path>?view=co".
    """

    def __init__(self, revision: Optional[str] = "42"):
        self.revision = revision
        self.revisions: Dict[str, Optional[str]] = {}
        self.files: Dict[str, bytes] = {}
        self.mtimes: Dict[str, Optional[float]] = {}
        self.extra_links: Dict[str, List[str]] = {}
        self.broken: Dict[str, int] = {}
        self.requests: List[str] = []

    def add_file(self, rel_path: str, content: bytes, mtime: Optional[float] = REMOTE_TIME) -> None:
        self.files[rel_path] = content
        self.mtimes[rel_path] = mtime

    def page_url(self, rel_dir: str = "") -> str:
        return BASE_URL + (rel_dir + "/" if rel_dir else "")

    def file_url(self, rel_path: str) -> str:
        return f"{BASE_URL}{rel_path}?view=co"

    def _dirs(self) -> set:
        dirs = {""}
        for path in self.files:
            parts = path.split("/")[:-1]
            for i in range(1, len(parts) + 1):
                dirs.add("/".join(parts[:i]))
        return dirs

    def render(self, rel_dir: str) -> str:
        prefix = rel_dir + "/" if rel_dir else ""
        revision = self.revisions.get(rel_dir, self.revision)

        lines = ["<html><head>"]
        if revision is not None:
            lines.append(f'<meta name="revision" content="{revision}">')
        lines.append("</head><body>")
        lines.append('<a class="dir" href="../">Parent Directory</a>')

        subdirs = sorted(
            d[len(prefix):] for d in self._dirs()
            if d.startswith(prefix) and d != rel_dir and "/" not in d[len(prefix):]
        )
        for sub in subdirs:
            lines.append(f'<a class="dir" href="{sub}/">{sub}/</a>')

        for path in sorted(self.files):
            if path.startswith(prefix) and "/" not in path[len(prefix):]:
                name = path[len(prefix):]
                mtime = self.mtimes[path]
                attr = f' data-mtime="{iso(mtime)}"' if mtime is not None else ""
                lines.append(f'<a class="file" href="{name}?view=co"{attr}>{name}</a>')

        lines.extend(self.extra_links.get(rel_dir, []))
        lines.append("</body></html>")
        return "\n".join(lines)

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)

        if url in self.broken:
            return httpx.Response(self.broken[url])

        for rel_dir in self._dirs():
            if url == self.page_url(rel_dir):
                return httpx.Response(200, text=self.render(rel_dir))
        for path, content in self.files.items():
            if url == self.file_url(path):
                return httpx.Response(200, content=content)
        return httpx.Response(404, text="Not Found")

    def fetcher(self) -> Fetcher:
        return Fetcher(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def mirror_root(tmp_path: Path) -> Path:
    root = tmp_path / "mirror"
    root.mkdir()
    return root


@pytest.fixture
def settings() -> SyncSettings:
    """Settings without pacing or journal."""
    return SyncSettings(min_interval=0.0, journal=False)


@pytest.fixture
def sources() -> Dict[str, RemoteSource]:
    return {FAKE_SOURCE.name: FAKE_SOURCE}


def write_local(root: Path, rel_path: str, content: bytes, mtime: Optional[float] = None) -> Path:
    """Helper to place a file in the mirror with a given mtime."""
    path = root.joinpath(*rel_path.split("/"))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path
