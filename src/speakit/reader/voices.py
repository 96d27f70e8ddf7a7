"""Voice selection state shared by the controller and the UI."""

from __future__ import annotations

from collections.abc import Callable, Sequence

from speakit.speech.base import SpeechEngine, VoiceDescriptor

DEFAULT_PREFERRED: list[list[str]] = [["Female", "Samantha"], ["Male", "Daniel"]]

VoiceListener = Callable[["VoiceSelection"], None]


def pick_default(
    voices: Sequence[VoiceDescriptor],
    preferred: Sequence[Sequence[str]] = DEFAULT_PREFERRED,
) -> VoiceDescriptor | None:
    """Pick the default voice.

    Marker groups are tried in order; within a group the first voice (in
    list order) whose name contains any marker wins. Falls back to the first
    voice, or None when the list is empty.
    """
    for markers in preferred:
        for voice in voices:
            if any(marker in voice.name for marker in markers):
                return voice
    return voices[0] if voices else None


class VoiceSelection:
    """Known voices plus the selected one.

    Subscribes to the engine's voice-change notification; a late voice list
    only replaces the selection when nothing valid was selected yet.
    """

    def __init__(
        self,
        engine: SpeechEngine,
        preferred: Sequence[Sequence[str]] = DEFAULT_PREFERRED,
    ) -> None:
        self._engine = engine
        self._preferred = [list(group) for group in preferred]
        self._voices: list[VoiceDescriptor] = []
        self._selected: VoiceDescriptor | None = None
        self._listeners: list[VoiceListener] = []
        engine.on_voices_changed(self.refresh)
        self.refresh()

    @property
    def voices(self) -> list[VoiceDescriptor]:
        return list(self._voices)

    @property
    def selected(self) -> VoiceDescriptor | None:
        return self._selected

    def subscribe(self, listener: VoiceListener) -> None:
        self._listeners.append(listener)

    def refresh(self) -> None:
        """Re-read the engine's voices and pick a default if needed."""
        self._voices = self._engine.list_voices()
        if self._selected not in self._voices:
            self._selected = pick_default(self._voices, self._preferred)
        self._notify()

    def select(self, name: str) -> VoiceDescriptor:
        """Select the voice called *name* (exact match, else case-insensitive).

        Raises:
            KeyError: If no known voice has that name.
        """
        match = next((v for v in self._voices if v.name == name), None)
        if match is None:
            lowered = name.lower()
            match = next((v for v in self._voices if v.name.lower() == lowered), None)
        if match is None:
            raise KeyError(f"Unknown voice '{name}'")
        self._selected = match
        self._notify()
        return match

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
