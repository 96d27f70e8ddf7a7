"""speakit history / bookmarks / voices — inspect saved state and engine voices."""

from __future__ import annotations

import sqlite3
from typing import Annotated

import typer
from rich.table import Table

from speakit.cli.common import build_engine, console, load_settings
from speakit.cli.errors import err_guest_cannot_delete, err_history_not_found, err_no_engine
from speakit.reader.voices import VoiceSelection
from speakit.speech import SpeechError
from speakit.storage import AccountStore, BookmarkStore, StoreError, open_store

_UserOpt = Annotated[
    str | None,
    typer.Option("--user", "-u", help="Account id; omit for this device's guest data."),
]


def history_cmd(
    user: _UserOpt = None,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Show at most N entries.")] = 20,
    delete: Annotated[
        str | None,
        typer.Option("--delete", help="Delete a history entry (accounts only)."),
    ] = None,
) -> None:
    """List reading history, newest first."""
    cfg = load_settings(user)
    store = _open(cfg)
    try:
        if delete:
            _delete(store, delete)
            return
        records = store.list_history(limit)
        bookmarks = {b.content_key: b for b in store.list_bookmarks()}
    except StoreError as exc:
        console.print(f"[red]Error:[/] {exc}")
        raise typer.Exit(1)
    finally:
        store.close()

    if not records:
        console.print("[dim]No reading history yet.[/]")
        return

    table = Table(title=_scope(store))
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Title")
    table.add_column("Type")
    table.add_column("Read at", no_wrap=True)
    table.add_column("Progress", justify="right")
    for record in records:
        bookmark = bookmarks.get(record.id)
        progress = f"{bookmark.progress_ratio:.0%}" if bookmark else "—"
        table.add_row(
            record.id, record.title, record.source_type.value, record.read_at[:19], progress
        )
    console.print(table)


def bookmarks_cmd(user: _UserOpt = None) -> None:
    """List saved playback positions."""
    cfg = load_settings(user)
    store = _open(cfg)
    try:
        bookmarks = store.list_bookmarks()
    except StoreError as exc:
        console.print(f"[red]Error:[/] {exc}")
        raise typer.Exit(1)
    finally:
        store.close()

    if not bookmarks:
        console.print("[dim]No bookmarks yet.[/]")
        return

    table = Table(title=_scope(store))
    table.add_column("History ID", style="dim", no_wrap=True)
    table.add_column("Position", justify="right")
    table.add_column("Progress", justify="right")
    table.add_column("Updated", no_wrap=True)
    for bookmark in bookmarks:
        table.add_row(
            bookmark.content_key,
            f"{bookmark.position}/{bookmark.total_units}",
            f"{bookmark.progress_ratio:.0%}",
            bookmark.updated_at[:19],
        )
    console.print(table)


def voices_cmd(
    engine: Annotated[
        str | None,
        typer.Option("--engine", help="Speech engine: system or timed."),
    ] = None,
) -> None:
    """List the voices of the speech engine; * marks the default."""
    cfg = load_settings()
    speech = build_engine(cfg, engine)
    try:
        selection = VoiceSelection(speech, cfg.voices.preferred)
    except SpeechError as exc:
        console.print(err_no_engine(str(exc)))
        raise typer.Exit(1)

    if not selection.voices:
        console.print("[yellow]No voices reported by the engine.[/]")
        return
    table = Table()
    table.add_column("")
    table.add_column("Name")
    table.add_column("Language")
    for voice in selection.voices:
        marker = "*" if voice == selection.selected else ""
        table.add_row(marker, voice.name, voice.language)
    console.print(table)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _open(cfg) -> BookmarkStore:
    try:
        return open_store(cfg.storage, cfg.user)
    except (StoreError, OSError, sqlite3.Error) as exc:
        console.print(f"[red]Error:[/] Cannot open storage: {exc}")
        raise typer.Exit(1)


def _delete(store: BookmarkStore, history_id: str) -> None:
    if not isinstance(store, AccountStore):
        console.print(err_guest_cannot_delete())
        raise typer.Exit(1)
    if not store.delete_history(history_id):
        console.print(err_history_not_found(history_id))
        raise typer.Exit(1)
    console.print(f"[green]✓[/] Deleted history entry {history_id} and its bookmark.")


def _scope(store: BookmarkStore) -> str:
    return "Guest (this device)" if store.is_guest else f"Account {store.identity}"
