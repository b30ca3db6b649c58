"""
Mirror — Scrape listing pages and reconcile a local mirror tree.

The entry point is sync.sync(); everything else here supports it.
"""
