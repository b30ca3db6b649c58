"""
Fetch — Blocking HTTP access to listing pages and files.

Thin wrapper around httpx.Client. Any transport failure or non-success
status becomes a FetchError naming the URL.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

import httpx

from ..errors import FetchError
from .config import SyncSettings

logger = logging.getLogger(__name__)


class Fetcher:
    """
    HTTP client for one sync invocation.

    Usage:
        with Fetcher.from_settings(settings) as fetcher:
            html = fetcher.get_page(url)
            fetcher.download(file_url, temp_path)
    """

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = "webmirror",
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.timeout = timeout
        self.user_agent = user_agent
        self._client = httpx.Client(
            timeout=timeout,
            headers={"User-Agent": user_agent},
            follow_redirects=True,
            transport=transport,
        )
        self.requests_made = 0

    @classmethod
    def from_settings(
        cls,
        settings: SyncSettings,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "Fetcher":
        return cls(
            timeout=settings.timeout,
            user_agent=settings.user_agent,
            transport=transport,
        )

    def get_page(self, url: str) -> str:
        """Fetch a listing page and return its decoded text."""
        self.requests_made += 1
        logger.debug(f"[fetch] GET {url}")
        try:
            response = self._client.get(url)
        except httpx.TimeoutException:
            raise FetchError(url, f"timed out after {self.timeout}s") from None
        except httpx.HTTPError as e:
            raise FetchError(url, str(e) or type(e).__name__) from e

        if response.status_code >= 400:
            raise FetchError(url, f"HTTP {response.status_code}")
        return response.text

    def download(self, url: str, dest: Path) -> int:
        """
        Stream a file to dest.

        The partial file is removed if the transfer fails.

        Returns:
            Number of bytes written
        """
        self.requests_made += 1
        logger.debug(f"[fetch] GET {url} -> {dest.name}")
        written = 0
        try:
            with self._client.stream("GET", url) as response:
                if response.status_code >= 400:
                    raise FetchError(url, f"HTTP {response.status_code}")
                with dest.open("wb") as f:
                    for chunk in response.iter_bytes():
                        f.write(chunk)
                        written += len(chunk)
        except httpx.TimeoutException:
            dest.unlink(missing_ok=True)
            raise FetchError(url, f"timed out after {self.timeout}s") from None
        except httpx.HTTPError as e:
            dest.unlink(missing_ok=True)
            raise FetchError(url, str(e) or type(e).__name__) from e
        except BaseException:
            dest.unlink(missing_ok=True)
            raise
        return written

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class PageCache:
    """
    Listing pages already fetched during one sync.

    Passed explicitly into sync(); never shared between invocations.
    """

    def __init__(self) -> None:
        self._pages: Dict[str, str] = {}

    def fetch(self, url: str, fetcher: Fetcher) -> str:
        if url not in self._pages:
            self._pages[url] = fetcher.get_page(url)
        else:
            logger.debug(f"[fetch] Cache hit for {url}")
        return self._pages[url]

    def __contains__(self, url: str) -> bool:
        return url in self._pages

    def __len__(self) -> int:
        return len(self._pages)
