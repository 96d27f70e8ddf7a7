"""Playback core — tokenizer, position store, voice selection, controller."""

from speakit.reader.controller import NoVoiceError, PlaybackController, PlaybackState
from speakit.reader.position import PlaybackPosition
from speakit.reader.session import ContentSession, ReaderSession
from speakit.reader.tokenizer import tokenize
from speakit.reader.voices import VoiceSelection, pick_default

__all__ = [
    "ContentSession",
    "NoVoiceError",
    "PlaybackController",
    "PlaybackPosition",
    "PlaybackState",
    "ReaderSession",
    "VoiceSelection",
    "pick_default",
    "tokenize",
]
