"""
CLI sources command — list the front-ends webmirror knows how to scrape.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click


@click.command("sources")
@click.option("--sources-file", type=click.Path(dir_okay=False, path_type=Path), help="Extra sources YAML")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def sources_cmd(ctx: click.Context, sources_file: Optional[Path], as_json: bool) -> None:
    """List available source types."""
    import json as json_lib

    from ..errors import ConfigError
    from ..sources.loader import load_sources

    try:
        sources = load_sources(sources_file or ctx.obj["settings"].sources_file)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        raise SystemExit(1)

    if as_json:
        click.echo(json_lib.dumps(
            [s.model_dump() for s in sources.values()], indent=2
        ))
        return

    for name in sorted(sources):
        source = sources[name]
        flags = []
        if source.revision_pattern:
            flags.append("revision")
        if "mtime" in source.file_re.groupindex:
            flags.append("mtime")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        click.echo(f"  {name:12} {source.description or ''}{suffix}")
