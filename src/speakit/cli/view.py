"""Terminal reading view — highlighted current word, auto-scroll, progress."""

from __future__ import annotations

from rich.console import Group
from rich.progress_bar import ProgressBar
from rich.text import Text

from speakit.reader.controller import PlaybackController

_HIGHLIGHT = "bold black on yellow"


class ReaderView:
    """Render a window of words around the playback position.

    Subscribes to the position store: each change moves the highlight and,
    when the highlighted word leaves the window, re-centres the window on it.

    Args:
        controller: Controller whose position is shown.
        title: Heading above the text.
        window: Number of words visible at once.
    """

    def __init__(self, controller: PlaybackController, title: str, window: int = 60) -> None:
        if window < 1:
            raise ValueError("window must be >= 1")
        self._controller = controller
        self._title = title
        self._units = controller.units
        self._window = window
        self.offset = 0
        self.highlighted: int | None = None
        self._unsubscribe = controller.position.subscribe(lambda _: self._follow())
        self._follow()

    def close(self) -> None:
        self._unsubscribe()

    def _follow(self) -> None:
        position = self._controller.position
        index = position.current_index
        self.highlighted = index if index < position.total_units else None
        if index < self.offset or index >= self.offset + self._window:
            self.offset = max(0, index - self._window // 2)

    def render(self) -> Group:
        position = self._controller.position
        words = Text()
        for i in range(self.offset, min(len(self._units), self.offset + self._window)):
            if i > self.offset:
                words.append(" ")
            words.append(self._units[i], style=_HIGHLIGHT if i == self.highlighted else "")

        status = Text(
            f"{self._controller.state.value}  ·  word {position.current_index}/{position.total_units}"
            f"  ·  {position.progress_ratio:.0%}  ·  {self._controller.rate:.1f}x",
            style="dim",
        )
        bar = ProgressBar(total=max(1, position.total_units), completed=position.current_index)
        return Group(Text(self._title, style="bold"), bar, words, status)
