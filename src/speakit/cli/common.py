"""Helpers shared by the speakit commands."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from speakit.cli.errors import (
    err_config,
    err_extraction_failed,
    err_invalid_upload,
    err_no_engine,
    err_ssrf_blocked,
)
from speakit.config import ConfigError, SpeakitConfig, load_config
from speakit.db.models import SourceType
from speakit.gateway import (
    GatewayError,
    SsrfError,
    UploadValidationError,
    extract_from_path,
    extract_from_url,
)
from speakit.reader.session import ContentSession
from speakit.speech import SpeechEngine, SpeechError, SystemEngine, TimedEngine, VoiceDescriptor

console = Console()


def load_settings(user: str | None = None) -> SpeakitConfig:
    """Load config, apply the --user flag, exit with a message on bad config."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
    if user:
        cfg.user = user
    return cfg


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def build_engine(cfg: SpeakitConfig, engine: str | None = None) -> SpeechEngine:
    """Create the speech engine named by *engine* (or ``voices.engine``)."""
    name = engine or cfg.voices.engine
    if name == "timed":
        return TimedEngine(
            words_per_minute=cfg.voices.words_per_minute,
            voices=[VoiceDescriptor(id="silent", name="Silent")],
        )
    if name != "system":
        console.print(f"[red]Error:[/] Unknown engine '{name}'. Use 'system' or 'timed'.")
        raise typer.Exit(1)
    try:
        return SystemEngine(words_per_minute=cfg.voices.words_per_minute)
    except SpeechError as exc:
        console.print(err_no_engine(str(exc)))
        raise typer.Exit(1)


def load_source(source: str, cfg: SpeakitConfig) -> ContentSession:
    """Extract *source* (URL or local PDF path) into a ContentSession.

    Validation and extraction failures are printed and exit with code 1.
    """
    try:
        if is_url(source):
            extracted = extract_from_url(
                source,
                max_bytes=cfg.extraction.max_response_bytes,
                timeout=cfg.extraction.timeout,
            )
            return ContentSession(
                full_text=extracted.content,
                title=extracted.title,
                source_type=SourceType.URL,
                source_url=source,
            )
        extracted = extract_from_path(Path(source), max_bytes=cfg.extraction.max_pdf_bytes)
        return ContentSession(
            full_text=extracted.content,
            title=extracted.title,
            source_type=SourceType.PDF,
        )
    except UploadValidationError as exc:
        console.print(err_invalid_upload(str(exc)))
        raise typer.Exit(1)
    except SsrfError:
        console.print(err_ssrf_blocked(source))
        raise typer.Exit(1)
    except GatewayError as exc:
        console.print(err_extraction_failed(source, str(exc)))
        raise typer.Exit(1)
