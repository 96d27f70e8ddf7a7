"""Concrete speech engines.

- ``TimedEngine``: silent; each unit "lasts" as long as it would take to say
  at the configured words-per-minute. Used for dry runs and tests.
- ``SystemEngine``: speaks through a local command-line synthesizer
  (``espeak-ng``, ``espeak`` or macOS ``say``), one process per unit.
"""

from __future__ import annotations

import shutil
import subprocess
import time
from collections.abc import Callable

from speakit.speech.base import SpeechEngine, SpeechError, VoiceDescriptor

_DEFAULT_WPM = 180
_SYSTEM_COMMANDS = ("espeak-ng", "espeak", "say")
_HALT_TIMEOUT = 1.0  # seconds


class TimedEngine(SpeechEngine):
    """Silent engine that completes each unit after its spoken duration.

    Args:
        words_per_minute: Speaking speed at rate 1.0.
        voices: Voices to report. ``None`` starts with an empty list, which
            can be filled later with ``publish_voices()``.
        clock: Monotonic time source (injectable for tests).
    """

    def __init__(
        self,
        words_per_minute: int = _DEFAULT_WPM,
        voices: list[VoiceDescriptor] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__()
        if words_per_minute < 1:
            raise ValueError("words_per_minute must be >= 1")
        self._wpm = words_per_minute
        self._voices = list(voices) if voices is not None else []
        self._clock = clock
        self._deadline: float | None = None
        self.spoken: list[str] = []

    def list_voices(self) -> list[VoiceDescriptor]:
        return list(self._voices)

    def publish_voices(self, voices: list[VoiceDescriptor]) -> None:
        """Replace the voice list and notify listeners (late-arriving voices)."""
        self._voices = list(voices)
        self._notify_voices_changed()

    def duration(self, unit: str, rate: float) -> float:
        """Seconds needed to say *unit* at *rate*; long words take longer."""
        syllable_weight = max(1.0, len(unit) / 6)
        return 60.0 / self._wpm * syllable_weight / rate

    def _start(self, unit: str, voice: VoiceDescriptor, rate: float) -> None:
        self.spoken.append(unit)
        self._deadline = self._clock() + self.duration(unit, rate)

    def _halt(self) -> None:
        self._deadline = None

    def poll(self) -> None:
        if self._deadline is not None and self._clock() >= self._deadline:
            self._deadline = None
            self._finish(None)


class SystemEngine(SpeechEngine):
    """Speak through a local synthesizer command.

    The first command found on PATH among ``espeak-ng``, ``espeak`` and
    ``say`` is used unless *command* is given. Voices are listed lazily on
    first use; ``refresh_voices()`` re-reads them and notifies listeners.
    """

    def __init__(self, command: str | None = None, words_per_minute: int = _DEFAULT_WPM) -> None:
        super().__init__()
        self._command = command or _find_command()
        self._wpm = words_per_minute
        self._proc: subprocess.Popen | None = None
        self._voices: list[VoiceDescriptor] | None = None

    @property
    def command(self) -> str:
        return self._command

    def list_voices(self) -> list[VoiceDescriptor]:
        if self._voices is None:
            self._voices = self._read_voices()
        return list(self._voices)

    def refresh_voices(self) -> None:
        self._voices = self._read_voices()
        self._notify_voices_changed()

    def _read_voices(self) -> list[VoiceDescriptor]:
        if _is_say(self._command):
            cmd = [self._command, "-v", "?"]
            parse = _parse_say_voices
        else:
            cmd = [self._command, "--voices"]
            parse = _parse_espeak_voices
        result = subprocess.run(cmd, capture_output=True, text=True)
        if result.returncode != 0:
            raise SpeechError(
                f"Could not list voices with '{self._command}': {result.stderr.strip()}"
            )
        return parse(result.stdout)

    def _build_command(self, unit: str, voice: VoiceDescriptor, rate: float) -> list[str]:
        wpm = str(int(self._wpm * rate))
        if _is_say(self._command):
            return [self._command, "-v", voice.id, "-r", wpm, "--", unit]
        return [self._command, "-v", voice.id, "-s", wpm, "--", unit]

    def _start(self, unit: str, voice: VoiceDescriptor, rate: float) -> None:
        self._proc = subprocess.Popen(
            self._build_command(unit, voice, rate),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
        )

    def _halt(self) -> None:
        proc, self._proc = self._proc, None
        if proc is not None and proc.poll() is None:
            proc.terminate()
            try:
                proc.wait(timeout=_HALT_TIMEOUT)
            except subprocess.TimeoutExpired:
                proc.kill()
                proc.wait()
        if proc is not None and proc.stderr is not None:
            proc.stderr.close()

    def poll(self) -> None:
        if self._proc is None:
            return
        code = self._proc.poll()
        if code is None:
            return
        proc, self._proc = self._proc, None
        stderr = ""
        if proc.stderr is not None:
            stderr = proc.stderr.read().decode(errors="replace")
            proc.stderr.close()
        if code != 0:
            self._finish(SpeechError(f"'{self._command}' exited with {code}: {stderr.strip()}"))
        else:
            self._finish(None)


def _find_command() -> str:
    for name in _SYSTEM_COMMANDS:
        if shutil.which(name):
            return name
    raise SpeechError(
        "No speech synthesizer found. Install espeak-ng (Linux) or use macOS 'say'."
    )


def _is_say(command: str) -> bool:
    return command.rsplit("/", 1)[-1] == "say"


def _parse_espeak_voices(output: str) -> list[VoiceDescriptor]:
    """Parse ``espeak --voices`` output.

    Columns: Pty Language Age/Gender VoiceName File Other Languages
    """
    voices: list[VoiceDescriptor] = []
    for line in output.splitlines()[1:]:
        parts = line.split()
        if len(parts) < 5:
            continue
        language, gender, name = parts[1], parts[2], parts[3]
        label = {"M": "Male", "F": "Female"}.get(gender.split("/")[-1], "")
        display = f"{name} ({label})" if label else name
        voices.append(VoiceDescriptor(id=language, name=display, language=language))
    return voices


def _parse_say_voices(output: str) -> list[VoiceDescriptor]:
    """Parse ``say -v ?`` output, e.g. ``Samantha  en_US  # Hello...``."""
    voices: list[VoiceDescriptor] = []
    for line in output.splitlines():
        head = line.split("#", 1)[0].rstrip()
        if not head:
            continue
        parts = head.rsplit(None, 1)
        if len(parts) != 2:
            continue
        name, language = parts[0].strip(), parts[1]
        voices.append(VoiceDescriptor(id=name, name=name, language=language))
    return voices
