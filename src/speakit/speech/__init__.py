"""Speech engines — the external speech capability behind the playback controller."""

from speakit.speech.base import SpeechEngine, SpeechEngineBusy, SpeechError, VoiceDescriptor
from speakit.speech.engines import SystemEngine, TimedEngine

__all__ = [
    "SpeechEngine",
    "SpeechEngineBusy",
    "SpeechError",
    "SystemEngine",
    "TimedEngine",
    "VoiceDescriptor",
]
