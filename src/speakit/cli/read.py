"""speakit read — play a URL or PDF word by word.

Ctrl-C pauses playback; the position is saved and can be resumed with
``speakit read --resume <history-id>``.
"""

from __future__ import annotations

import sqlite3
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Annotated

import typer
from rich.live import Live
from rich.panel import Panel

from speakit.cli.common import build_engine, console, load_settings, load_source
from speakit.cli.errors import (
    err_history_not_found,
    err_no_engine,
    err_no_voice,
    err_resume_needs_file,
    err_unknown_voice,
    warn_not_saved,
    warn_speech_failed,
)
from speakit.cli.summarize import print_summary
from speakit.cli.view import ReaderView
from speakit.config import SpeakitConfig, clamp_rate
from speakit.db.models import SourceType
from speakit.reader.controller import NoVoiceError, PlaybackController, PlaybackState
from speakit.reader.session import ReaderSession
from speakit.reader.voices import VoiceSelection
from speakit.speech import SpeechEngine, SpeechError
from speakit.storage import BookmarkReconciler, BookmarkStore, StoreError, open_store

_TICK = 0.02  # seconds between engine polls
_REFRESH = 12  # live view refreshes per second


def read_cmd(
    source: Annotated[
        str | None,
        typer.Argument(help="Article URL or path to a PDF (optional with --resume for URLs)."),
    ] = None,
    user: Annotated[
        str | None,
        typer.Option("--user", "-u", help="Account id; omit to read as a guest."),
    ] = None,
    rate: Annotated[
        float | None,
        typer.Option("--rate", "-r", help="Speed multiplier, 0.5-2.0."),
    ] = None,
    voice: Annotated[
        str | None,
        typer.Option("--voice", help="Voice name (see: speakit voices)."),
    ] = None,
    engine: Annotated[
        str | None,
        typer.Option("--engine", help="Speech engine: system or timed (silent)."),
    ] = None,
    resume: Annotated[
        str | None,
        typer.Option("--resume", help="History id to continue from its bookmark."),
    ] = None,
    summary: Annotated[
        bool,
        typer.Option("--summary", help="Show an AI summary before playing."),
    ] = False,
    window: Annotated[
        int,
        typer.Option("--window", help="Words visible around the highlight."),
    ] = 60,
) -> None:
    """Read an article or PDF aloud with the current word highlighted."""
    cfg = load_settings(user)
    if rate is not None:
        cfg.playback.rate = clamp_rate(rate)

    store = _open_store_or_exit(cfg)
    try:
        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="speakit-store") as executor:
            reconciler = BookmarkReconciler(
                store, save_interval=cfg.playback.save_interval, executor=executor
            )
            reconciler.on_error(lambda exc: console.print(warn_not_saved(str(exc))))

            content_key = None
            if resume:
                source, content_key = _resolve_resume(store, resume, source)
            if not source:
                console.print("[red]Error:[/] No SOURCE given. Pass a URL or PDF path.")
                raise typer.Exit(1)

            content = load_source(source, cfg)
            if summary:
                print_summary(content.full_text, cfg)

            speech = build_engine(cfg, engine)
            voices = _select_voice(speech, cfg.voices.preferred, voice)

            session = ReaderSession(
                speech, voices, reconciler, cfg.playback, cfg.storage.preview_chars
            )
            controller = session.load(content, content_key)
            history_id = session.content_key
            controller.on_error(
                lambda index, exc: console.print(warn_speech_failed(index, str(exc)))
            )
            view = ReaderView(controller, content.title, window=window)
            try:
                _play(controller, speech, view)
            finally:
                view.close()
                session.close()

            _print_outcome(controller, history_id)
    finally:
        store.close()


# ------------------------------------------------------------------
# Steps
# ------------------------------------------------------------------


def _open_store_or_exit(cfg: SpeakitConfig) -> BookmarkStore:
    try:
        return open_store(cfg.storage, cfg.user)
    except (StoreError, OSError, sqlite3.Error) as exc:
        console.print(f"[red]Error:[/] Cannot open storage: {exc}")
        raise typer.Exit(1)


def _resolve_resume(
    store: BookmarkStore, history_id: str, source: str | None
) -> tuple[str | None, str]:
    try:
        record = store.get_history(history_id)
    except StoreError as exc:
        console.print(f"[red]Error:[/] {exc}")
        raise typer.Exit(1)
    if record is None:
        console.print(err_history_not_found(history_id))
        raise typer.Exit(1)
    if source is None:
        if record.source_type is SourceType.PDF:
            console.print(err_resume_needs_file(history_id))
            raise typer.Exit(1)
        source = record.source_url
    return source, record.id


def _select_voice(
    speech: SpeechEngine, preferred: list[list[str]], name: str | None
) -> VoiceSelection:
    try:
        voices = VoiceSelection(speech, preferred)
    except SpeechError as exc:
        console.print(err_no_engine(str(exc)))
        raise typer.Exit(1)
    if name:
        try:
            voices.select(name)
        except KeyError:
            console.print(err_unknown_voice(name, [v.name for v in voices.voices]))
            raise typer.Exit(1)
    return voices


def _play(controller: PlaybackController, speech: SpeechEngine, view: ReaderView) -> None:
    try:
        controller.play()
    except NoVoiceError:
        console.print(err_no_voice())
        raise typer.Exit(1)

    with Live(view.render(), console=console, refresh_per_second=_REFRESH) as live:
        try:
            while controller.state is PlaybackState.PLAYING:
                speech.poll()
                live.update(view.render())
                time.sleep(_TICK)
        except KeyboardInterrupt:
            controller.pause()
        live.update(view.render())


def _print_outcome(controller: PlaybackController, history_id: str | None) -> None:
    position = controller.position
    if controller.state is PlaybackState.FINISHED:
        console.print("[green]✓[/] Finished.")
        return
    console.print(
        Panel(
            f"Paused at word {position.current_index} of {position.total_units} "
            f"({position.progress_ratio:.0%}).\n"
            f"  Resume:  speakit read --resume {history_id}",
            expand=False,
        )
    )
