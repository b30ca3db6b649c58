"""
webmirror — CLI Entry Point

Usage:
    webmirror sync URL ROOT --source viewvc
    webmirror status ROOT
    webmirror moved ROOT [--delete]
    webmirror sources
"""

from __future__ import annotations

# Load .env before anything reads WEBMIRROR_* variables
from pathlib import Path
from dotenv import load_dotenv

_env_file = Path.cwd() / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

from typing import Optional

import click

from .logging_config import setup_logging
from .mirror.config import SyncSettings
from .cli.mirror import moved_cmd, status_cmd, sync_cmd
from .cli.sources import sources_cmd


@click.group()
@click.option("--log-level", help="DEBUG, INFO, WARNING, ERROR (default: LOG_LEVEL or INFO)")
@click.option("--log-format", type=click.Choice(["text", "json"]), help="Log output format")
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str], log_format: Optional[str]) -> None:
    """webmirror — Mirror a VCS web front-end's file tree locally."""
    setup_logging(log_level, log_format)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = SyncSettings.from_env()


cli.add_command(sync_cmd)
cli.add_command(status_cmd)
cli.add_command(moved_cmd)
cli.add_command(sources_cmd)


if __name__ == "__main__":
    cli()
