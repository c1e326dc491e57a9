"""Playlist pane listing tracks with the current one marked."""

from __future__ import annotations

from collections.abc import Sequence

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.message import Message
from textual.widgets import OptionList, Static
from textual.widgets.option_list import Option

from deck_player.services.track_registry import Track
from deck_player.utils.time_format import format_time_s

EMPTY_HINT = "Playlist is empty. Press 'a' to add music."


class PlaylistPane(Vertical):
    """Option list of tracks; selecting a row asks the app to play it."""

    DEFAULT_CSS = """
    PlaylistPane {
        height: 1fr;
    }

    #playlist-header {
        height: 1;
    }

    #playlist-options {
        height: 1fr;
    }
    """

    class TrackChosen(Message):
        def __init__(self, index: int) -> None:
            super().__init__()
            self.index = index

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._header = Static(EMPTY_HINT, id="playlist-header")
        self._options = OptionList(id="playlist-options")
        self._tracks: tuple[Track, ...] = ()
        self._current_index = -1

    def compose(self) -> ComposeResult:
        yield self._header
        yield self._options

    @property
    def highlighted_index(self) -> int | None:
        highlighted = self._options.highlighted
        if highlighted is None or not 0 <= highlighted < len(self._tracks):
            return None
        return highlighted

    def focus_list(self) -> None:
        self._options.focus()

    def set_tracks(self, tracks: Sequence[Track], current_index: int) -> None:
        previous = self._options.highlighted
        self._tracks = tuple(tracks)
        self._current_index = current_index
        self._options.clear_options()
        self._options.add_options(
            [
                Option(_row_text(index, track, index == current_index))
                for index, track in enumerate(self._tracks)
            ]
        )
        if self._tracks:
            total = sum(track.duration_s for track in self._tracks)
            self._header.update(
                f"{len(self._tracks)} track(s) - {format_time_s(total)}"
            )
            target = previous if previous is not None else max(current_index, 0)
            self._options.highlighted = min(target, len(self._tracks) - 1)
        else:
            self._header.update(EMPTY_HINT)

    def set_current_index(self, current_index: int) -> None:
        if current_index == self._current_index:
            return
        self.set_tracks(self._tracks, current_index)

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        event.stop()
        self.post_message(self.TrackChosen(event.option_index))


def _row_text(index: int, track: Track, is_current: bool) -> Text:
    text = Text(no_wrap=True, overflow="ellipsis")
    marker = "> " if is_current else "  "
    style = "bold #F2C94C" if is_current else ""
    text.append(f"{marker}{index + 1:>3}. ", style=style)
    text.append(track.title, style=style)
    text.append(f" - {track.artist}", style="dim")
    text.append(f"  {format_time_s(track.duration_s)}", style="dim")
    return text
