"""
Sources — Scrape configuration for VCS web front-ends.
"""
