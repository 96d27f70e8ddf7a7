"""Reader session — one loaded document wired to playback and persistence."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from speakit.config import PlaybackCfg
from speakit.db.models import HistoryRecord, SourceType
from speakit.reader.controller import PlaybackController
from speakit.reader.position import PlaybackPosition
from speakit.reader.tokenizer import tokenize
from speakit.reader.voices import VoiceSelection
from speakit.speech.base import SpeechEngine

if TYPE_CHECKING:
    from speakit.storage.reconciler import BookmarkReconciler

DEFAULT_PREVIEW_CHARS = 200


@dataclass(frozen=True)
class ContentSession:
    """A loaded article or document. Replaced wholesale, never edited."""

    full_text: str
    title: str
    source_type: SourceType
    source_url: str | None = None

    def __post_init__(self) -> None:
        if self.source_type is SourceType.URL and not self.source_url:
            raise ValueError("URL content requires source_url")
        if self.source_type is not SourceType.URL and self.source_url is not None:
            raise ValueError("source_url is only valid for URL content")

    def preview(self, limit: int = DEFAULT_PREVIEW_CHARS) -> str:
        return self.full_text[:limit]

    def history_record(self, limit: int = DEFAULT_PREVIEW_CHARS) -> HistoryRecord:
        return HistoryRecord(
            title=self.title,
            source_type=self.source_type,
            source_url=self.source_url,
            content_preview=self.preview(limit),
        )


class ReaderSession:
    """Owns the active document, its position, and its controller.

    Only one controller exists at a time; loading new content closes the
    previous one first, which cancels any utterance on the shared engine.

    Args:
        engine: The process-wide speech engine.
        voices: Voice selection bound to *engine*.
        reconciler: Bookmark reconciler over the session's store.
        playback: Controller options.
        preview_chars: Length of the history preview.
    """

    def __init__(
        self,
        engine: SpeechEngine,
        voices: VoiceSelection,
        reconciler: BookmarkReconciler,
        playback: PlaybackCfg | None = None,
        preview_chars: int = DEFAULT_PREVIEW_CHARS,
    ) -> None:
        self._engine = engine
        self._voices = voices
        self._reconciler = reconciler
        self._playback = playback or PlaybackCfg()
        self._preview_chars = preview_chars
        self._content: ContentSession | None = None
        self._content_key: str | None = None
        self._controller: PlaybackController | None = None

    @property
    def content(self) -> ContentSession | None:
        return self._content

    @property
    def content_key(self) -> str | None:
        return self._content_key

    @property
    def controller(self) -> PlaybackController:
        if self._controller is None:
            raise RuntimeError("No content loaded.")
        return self._controller

    @property
    def voices(self) -> VoiceSelection:
        return self._voices

    def load(self, content: ContentSession, content_key: str | None = None) -> PlaybackController:
        """Make *content* the active document and return its controller.

        Without *content_key* a new history record is appended and its id
        becomes the key. With one (reopening a history entry) no record is
        added and the saved bookmark, if any, is restored.
        """
        self.close()

        if content_key is None:
            record = content.history_record(self._preview_chars)
            self._reconciler.append_history(record)
            content_key = record.id

        units = tokenize(content.full_text)
        position = PlaybackPosition(len(units))
        bookmark = self._reconciler.load(content_key)
        if bookmark is not None:
            position.restore(bookmark.position)

        controller = PlaybackController(
            units,
            position,
            self._engine,
            self._voices,
            rate=self._playback.rate,
            advance_on_error=self._playback.advance_on_error,
            replay_finished=self._playback.replay_finished,
        )
        self._reconciler.attach(content_key, position, controller)

        self._content = content
        self._content_key = content_key
        self._controller = controller
        return controller

    def close(self) -> None:
        """Cancel playback of the active document and persist its position."""
        if self._controller is None:
            return
        self._controller.close()
        self._reconciler.detach(flush=True)
        self._controller = None
        self._content = None
        self._content_key = None
