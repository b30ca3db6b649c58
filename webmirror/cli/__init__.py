"""
CLI commands for webmirror.
"""
