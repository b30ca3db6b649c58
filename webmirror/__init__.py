"""
webmirror — Mirror a VCS web front-end's file tree into a local directory.

Listing pages are scraped with per-front-end patterns, stale files are
downloaded, and superseded local copies are kept as ``<name>.moved``.
"""

__version__ = "0.4.0"
