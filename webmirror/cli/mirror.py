"""
CLI mirror commands — sync a tree, inspect a mirror root, manage backups.

Usage:
    webmirror sync URL ROOT --source viewvc [--mask lisp/*.el] [--no-recursive]
    webmirror sync --profile emacs-lisp [--force] [--review] [--json-lines]
    webmirror status ROOT [--json]
    webmirror moved ROOT [--delete] [--yes]
"""

from __future__ import annotations

import difflib
import sys
from pathlib import Path
from typing import Optional

import click

from ..mirror import events
from ..mirror.events import SyncEvent


def _render_event(event: SyncEvent) -> None:
    """Human-readable progress line for one event."""
    kind = event.kind
    if kind == events.START:
        click.echo(f"\n🔀 Mirroring {event.url} ({event.detail})")
    elif kind == events.PAGE:
        click.echo(f"  📂 {event.path} — {event.detail}")
    elif kind == events.NEW:
        click.secho(f"    ➕ {event.path}", fg="green")
    elif kind == events.UPDATED:
        click.secho(f"    🔁 {event.path} (old copy kept as .moved)", fg="yellow")
    elif kind == events.UNCHANGED:
        click.echo(f"    ＝ {event.path} (same content)")
    elif kind == events.REJECTED:
        click.secho(f"    ✋ {event.path} rejected", fg="yellow")
    elif kind == events.SHORT_CIRCUIT:
        click.echo(f"  ✅ Already at revision {event.detail}, nothing to do")
    # up_to_date, masked, ignored_link: too chatty for the terminal


def _review_download(temp_path: Path, dest_path: Path) -> bool:
    """Show what changed and ask before accepting a download."""
    if not dest_path.exists():
        click.echo(f"\n  New file {dest_path} ({temp_path.stat().st_size} bytes)")
        return click.confirm("  Accept it?", default=True)

    try:
        old = dest_path.read_text(encoding="utf-8").splitlines(keepends=True)
        new = temp_path.read_text(encoding="utf-8").splitlines(keepends=True)
    except UnicodeDecodeError:
        click.echo(
            f"\n  Binary file {dest_path}: "
            f"{dest_path.stat().st_size} → {temp_path.stat().st_size} bytes"
        )
    else:
        diff = difflib.unified_diff(
            old, new, fromfile=str(dest_path), tofile=f"{dest_path} (remote)"
        )
        click.echo("")
        for line in diff:
            color = {"+": "green", "-": "red", "@": "cyan"}.get(line[:1])
            click.secho(line.rstrip("\n"), fg=color)

    return click.confirm(f"  Replace {dest_path.name}?", default=True)


def _ask(prompt: str) -> bool:
    if not sys.stdin.isatty():
        return False
    return click.confirm(prompt, default=False)


@click.command("sync")
@click.argument("url", required=False)
@click.argument("local_root", required=False, type=click.Path(file_okay=False, path_type=Path))
@click.option("--source", "-s", "source_name", help="Source type (see `webmirror sources`)")
@click.option("--mask", "-m", "file_mask", help="Path-shaped glob, e.g. lisp/progmodes/*.el")
@click.option("--recursive/--no-recursive", default=None, help="Descend into subdirectories (default: yes)")
@click.option("--profile", "-p", "profile_name", help="Use a named mirror from the profiles file")
@click.option("--profiles-file", type=click.Path(dir_okay=False, path_type=Path), help="Mirror profiles YAML")
@click.option("--sources-file", type=click.Path(dir_okay=False, path_type=Path), help="Extra sources YAML")
@click.option("--min-interval", type=float, help="Minimum seconds between file downloads")
@click.option("--force", is_flag=True, help="Walk the tree even if the revision is unchanged")
@click.option("--review", is_flag=True, help="Review every downloaded file before accepting it")
@click.option("--json-lines", "jsonl", is_flag=True, help="Output JSON lines instead of text")
@click.pass_context
def sync_cmd(
    ctx: click.Context,
    url: Optional[str],
    local_root: Optional[Path],
    source_name: Optional[str],
    file_mask: Optional[str],
    recursive: Optional[bool],
    profile_name: Optional[str],
    profiles_file: Optional[Path],
    sources_file: Optional[Path],
    min_interval: Optional[float],
    force: bool,
    review: bool,
    jsonl: bool,
) -> None:
    """Mirror the remote tree at URL into LOCAL_ROOT."""
    import json as _json

    from ..errors import MirrorError
    from ..mirror.config import JOURNAL_NAME
    from ..mirror.journal import SyncJournal
    from ..mirror.sync import sync
    from ..sources.loader import load_profiles, load_sources

    settings = ctx.obj["settings"]
    if sources_file:
        settings.sources_file = sources_file
    if profiles_file:
        settings.profiles_file = profiles_file
    if min_interval is not None:
        settings.min_interval = max(0.0, min_interval)

    def emit(event: SyncEvent) -> None:
        if jsonl:
            print(_json.dumps(event.to_dict()), flush=True)
        else:
            _render_event(event)

    def fail(message: str) -> None:
        if jsonl:
            print(_json.dumps({"kind": "error", "detail": message}), flush=True)
        else:
            click.secho(f"\n❌ {message}", fg="red", err=True)
        raise SystemExit(1)

    try:
        if profile_name:
            if not settings.profiles_file:
                fail("--profile needs --profiles-file or WEBMIRROR_PROFILES_FILE")
            profile = load_profiles(settings.profiles_file).get(profile_name)
            if profile is None:
                fail(f"No mirror profile named '{profile_name}' in {settings.profiles_file}")
            url = url or profile.url
            local_root = local_root or Path(profile.local_root).expanduser()
            source_name = source_name or profile.source
            file_mask = file_mask if file_mask is not None else profile.file_mask
            if recursive is None:
                recursive = profile.recursive

        if not url or local_root is None:
            fail("URL and LOCAL_ROOT are required (or use --profile)")
        if not source_name:
            fail("--source is required (or use --profile)")

        local_root = Path(local_root).expanduser().absolute()
        progress = [emit]
        if settings.journal:
            progress.append(SyncJournal(local_root / JOURNAL_NAME).emit)

        result = sync(
            source_name,
            url,
            local_root,
            file_mask=file_mask,
            recursive=True if recursive is None else recursive,
            sources=load_sources(settings.sources_file),
            settings=settings,
            on_progress=events.fan_out(*progress),
            on_confirm=_ask,
            review_before_accept=_review_download if review else None,
            force=force,
        )
    except MirrorError as e:
        fail(str(e))
    except OSError as e:
        fail(f"Local filesystem error: {e}")

    if jsonl:
        summary = {
            "kind": "summary",
            "revision": result.revision,
            "replaced": result.replaced,
            "added": result.added,
            "updated": result.updated,
            "unchanged": result.unchanged,
            "up_to_date": result.up_to_date,
            "short_circuited": result.short_circuited,
        }
        print(_json.dumps(summary), flush=True)
        return

    if result.short_circuited:
        return
    click.secho(
        f"\n✅ {result.added} file(s) added, {result.updated} updated"
        + (f" (revision {result.revision})" if result.revision else ""),
        fg="green",
    )
    if result.updated:
        click.echo("   Review the .moved backups, then run `webmirror moved ROOT --delete`.")


@click.command("status")
@click.argument("local_root", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def status_cmd(local_root: Path, as_json: bool) -> None:
    """Show ledger revisions and leftover backups of a mirror root."""
    import json as json_lib

    from ..mirror.ledger import RevisionLedger
    from ..mirror.sync import find_moved_files

    root = local_root.absolute()
    revisions = RevisionLedger(root).entries()
    moved = [p.relative_to(root).as_posix() for p in find_moved_files(root)]

    if as_json:
        click.echo(json_lib.dumps({"root": str(root), "revisions": revisions, "moved": moved}, indent=2))
        return

    click.echo(f"\n🔀 Mirror {root}\n")
    if revisions:
        for source_id, revision in revisions.items():
            click.echo(f"  ✅ {source_id}  @ {revision}")
    else:
        click.echo("  ⏳ No synced revision recorded")
    click.echo()
    if moved:
        click.secho(f"  ⚠️  {len(moved)} backup(s) awaiting review:", fg="yellow")
        for path in moved:
            click.echo(f"     {path}")
        click.echo()


@click.command("moved")
@click.argument("local_root", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--delete", is_flag=True, help="Delete the backups")
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
def moved_cmd(local_root: Path, delete: bool, yes: bool) -> None:
    """List (or delete) .moved backups that block the next sync."""
    from ..mirror.sync import find_moved_files

    root = local_root.absolute()
    moved = find_moved_files(root)

    if not moved:
        click.echo("No .moved backups.")
        return

    for path in moved:
        click.echo(path.relative_to(root).as_posix())

    if not delete:
        return

    if not yes and not click.confirm(f"\nDelete {len(moved)} backup(s)?", default=False):
        click.echo("Aborted.")
        raise SystemExit(1)

    for path in moved:
        path.unlink()
    click.secho(f"🗑️  Deleted {len(moved)} backup(s)", fg="green")
