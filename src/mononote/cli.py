"""CLI for mono-notes (create, edit and sync notes)."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from mononote.config import DATABASE_FILENAME, SYNC_INTERVAL, resolve_data_directory
from mononote.core.database.store import SqliteNoteStore, open_database
from mononote.core.markdown.parse import markdown_to_document
from mononote.core.markdown.render import document_to_markdown
from mononote.core.notes import create_note, delete_note, list_notes, open_note, save_content
from mononote.core.sync.engine import SyncEngine
from mononote.core.sync.scheduler import run_periodic_sync
from mononote.exceptions import NoteNameTakenError
from mononote.logging_config import configure_logging
from mononote.protocols import RemoteStoreProtocol
from mononote.remote.dropbox import DropboxRemoteStore
from mononote.remote.folder import FolderRemoteStore

app = typer.Typer(help="mono-notes: local-first markdown notes synced to Dropbox.")


@dataclass
class _Options:
    data_dir: Path
    remote_dir: Path | None
    verbose: bool = False


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    data_dir: Annotated[
        Path | None,
        typer.Option("--data-dir", "-d", help="Notes database directory"),
    ] = None,
    remote_dir: Annotated[
        Path | None,
        typer.Option("--remote-dir", "-r", help="Sync with this folder instead of Dropbox"),
    ] = None,
) -> None:
    configure_logging(verbose=verbose)
    ctx.obj = _Options(
        data_dir=data_dir or resolve_data_directory(), remote_dir=remote_dir, verbose=verbose
    )


@contextmanager
def _open_store(ctx: typer.Context) -> Iterator[SqliteNoteStore]:
    options: _Options = ctx.obj
    options.data_dir.mkdir(parents=True, exist_ok=True)
    conn = open_database(options.data_dir / DATABASE_FILENAME)
    try:
        yield SqliteNoteStore(conn)
    finally:
        conn.close()


def _make_remote(ctx: typer.Context) -> RemoteStoreProtocol:
    options: _Options = ctx.obj
    if options.remote_dir is not None:
        if not options.remote_dir.is_dir():
            logger.error("Remote directory not found: {}", options.remote_dir)
            raise typer.Exit(1)
        return FolderRemoteStore(options.remote_dir)
    return DropboxRemoteStore()


def _note_id(store: SqliteNoteStore, name: str) -> int:
    note = store.find_by_name(name)
    if note is None:
        typer.echo(f"Note '{name}' not found.")
        raise typer.Exit(1)
    return note.id


@app.command()
def new(ctx: typer.Context, name: str = typer.Argument(..., help="Note name")) -> None:
    """Create an empty note."""
    with _open_store(ctx) as store:
        try:
            create_note(store, name)
        except NoteNameTakenError as e:
            typer.echo(str(e))
            raise typer.Exit(1) from e
        typer.echo(f"Created '{name}'.")


@app.command(name="list")
def list_cmd(ctx: typer.Context) -> None:
    """List notes, most recently opened first."""
    with _open_store(ctx) as store:
        notes = list_notes(store)
        typer.echo(f"{len(notes)} notes:\n")
        for note in notes:
            typer.echo(f"  {note.name}  [{note.sync_status.value}]")


@app.command()
def show(ctx: typer.Context, name: str = typer.Argument(..., help="Note name")) -> None:
    """Print a note as markdown."""
    with _open_store(ctx) as store:
        note = open_note(store, name)
        if note is None:
            typer.echo(f"Note '{name}' not found.")
            raise typer.Exit(1)
        typer.echo(document_to_markdown(note.content))


@app.command()
def edit(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Note name"),
    file: Path = typer.Option(..., "--file", "-f", help="Markdown file with the new content"),
) -> None:
    """Replace a note's content from a markdown file and sync it."""
    if not file.exists():
        logger.error("File not found: {}", file)
        raise typer.Exit(1)
    content = markdown_to_document(file.read_text(encoding="utf-8"))
    with _open_store(ctx) as store:
        note_id = _note_id(store, name)
        engine = SyncEngine(store, _make_remote(ctx))
        save_content(store, note_id, content)
        engine.sync_note(note_id)
        typer.echo(f"Saved '{name}'.")


@app.command()
def rename(
    ctx: typer.Context,
    old: str = typer.Argument(..., help="Current name"),
    new_name: str = typer.Argument(..., metavar="NEW", help="New name"),
) -> None:
    """Rename a note."""
    with _open_store(ctx) as store:
        note_id = _note_id(store, old)
        try:
            SyncEngine(store, _make_remote(ctx)).rename_note(note_id, new_name)
        except NoteNameTakenError as e:
            typer.echo(str(e))
            raise typer.Exit(1) from e
        typer.echo(f"Renamed '{old}' to '{new_name}'.")


@app.command()
def delete(ctx: typer.Context, name: str = typer.Argument(..., help="Note name")) -> None:
    """Delete a note, and its remote copy once reachable."""
    with _open_store(ctx) as store:
        note_id = _note_id(store, name)
        engine = SyncEngine(store, _make_remote(ctx))
        if not delete_note(store, note_id):
            engine.sync_delete_note(note_id)
        typer.echo(f"Deleted '{name}'.")


@app.command()
def sync(
    ctx: typer.Context,
    watch: bool = typer.Option(False, "--watch", "-w", help="Keep syncing periodically"),
    interval: int = typer.Option(SYNC_INTERVAL, "--interval", "-i", help="Seconds between syncs"),
) -> None:
    """Reconcile local notes with the remote store."""
    options: _Options = ctx.obj

    with _open_store(ctx) as store:
        remote = _make_remote(ctx)
        if not remote.is_authorized():
            typer.echo("Remote store not configured; nothing to sync.")
            raise typer.Exit(1)
        engine = SyncEngine(store, remote)

        if watch:
            configure_logging(verbose=options.verbose, log_file=options.data_dir / "sync.log")
            stop_event = threading.Event()
            try:
                run_periodic_sync(engine, interval=interval, stop_event=stop_event)
            except KeyboardInterrupt:
                stop_event.set()
            return

        report = engine.sync_all()
        if report is None:
            typer.echo("Sync skipped.")
            return
        typer.echo(report.summary())
        if not report.success:
            typer.echo(f"Sync incomplete: {report.error}")
            raise typer.Exit(1)
