"""Shared pytest fixtures."""

from __future__ import annotations

import pytest
import yaml

from speakit.db.connection import Database
from speakit.db.schema import initialize
from speakit.reader.controller import PlaybackController
from speakit.reader.position import PlaybackPosition
from speakit.reader.tokenizer import tokenize
from speakit.reader.voices import VoiceSelection
from speakit.speech.base import SpeechEngine, SpeechError, VoiceDescriptor

SAMANTHA = VoiceDescriptor(id="samantha", name="Samantha", language="en_US")
DANIEL = VoiceDescriptor(id="daniel", name="Daniel", language="en_GB")


class ManualEngine(SpeechEngine):
    """Speech engine completed by hand: tests decide when each unit ends."""

    def __init__(self, voices=None) -> None:
        super().__init__()
        self._voices = list(voices) if voices is not None else [SAMANTHA, DANIEL]
        self.started: list[tuple[str, VoiceDescriptor, float]] = []
        self.cancels = 0
        self.active = 0
        self.max_active = 0
        self.fail_start = False

    def list_voices(self):
        return list(self._voices)

    def publish(self, voices) -> None:
        self._voices = list(voices)
        self._notify_voices_changed()

    def _start(self, unit, voice, rate):
        if self.fail_start:
            raise SpeechError("synthesizer crashed")
        self.started.append((unit, voice, rate))
        self.active += 1
        self.max_active = max(self.max_active, self.active)

    def _halt(self):
        self.cancels += 1
        self.active = 0

    def complete(self, error: Exception | None = None) -> None:
        """Finish the active utterance (no-op if none is active)."""
        self.active = 0
        self._finish(error)

    @property
    def spoken(self) -> list[str]:
        return [unit for unit, _, _ in self.started]


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / "speakit.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def engine():
    return ManualEngine()


@pytest.fixture
def make_controller(engine):
    """Factory: build a controller over *text* on the shared ManualEngine."""

    def _make(text: str = "The quick brown fox", **kwargs) -> PlaybackController:
        units = tokenize(text)
        position = PlaybackPosition(len(units))
        voices = VoiceSelection(engine)
        return PlaybackController(units, position, engine, voices, **kwargs)

    return _make


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Run CLI commands with config and storage confined to tmp_path."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("speakit.config._GLOBAL_CONFIG_PATH", tmp_path / "global.yaml")
    monkeypatch.delenv("SPEAKIT_USER", raising=False)
    monkeypatch.delenv("SPEAKIT_SUMMARY_MODEL", raising=False)
    settings = {
        "storage": {
            "guest_path": str(tmp_path / "guest.json"),
            "db_path": str(tmp_path / "speakit.db"),
        },
        "voices": {"engine": "timed"},
    }
    (tmp_path / "speakit.yaml").write_text(yaml.dump(settings), encoding="utf-8")
    return tmp_path
