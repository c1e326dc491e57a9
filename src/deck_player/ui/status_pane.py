"""Now-playing header, progress/volume sliders and the status line."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.widget import Widget
from textual.widgets import Static

from deck_player.services.session_controller import PlayerView, SessionController
from deck_player.ui.slider_bar import SliderBar
from deck_player.utils.time_format import format_time_pair_s, format_time_s

IDLE_TITLE = "Select a song"


class StatusPane(Widget):
    DEFAULT_CSS = """
    StatusPane {
        height: auto;
    }

    #now-playing, #status-line {
        height: 1;
        width: 1fr;
        overflow: hidden;
    }

    #time-bar, #vol-bar {
        width: 1fr;
        min-width: 20;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._now_playing = Static(IDLE_TITLE, id="now-playing")
        self._time_bar = SliderBar(
            name="time", label="TIME", key_step=0.01, id="time-bar"
        )
        self._volume_bar = SliderBar(
            name="volume", label="VOL", key_step=0.05, id="vol-bar"
        )
        self._status_line = Static("", id="status-line")
        self._controller: SessionController | None = None
        self._view: PlayerView | None = None

    def compose(self) -> ComposeResult:
        yield self._now_playing
        yield self._time_bar
        yield self._volume_bar
        yield self._status_line

    def set_controller(self, controller: SessionController | None) -> None:
        self._controller = controller

    def update_view(self, view: PlayerView) -> None:
        self._view = view
        track = view.current_track
        header = Text()
        if track is None:
            header.append(IDLE_TITLE, style="dim")
        else:
            header.append(track.title, style="bold")
            header.append(" - ")
            header.append(track.artist)
            header.append(f" [{track.album}]", style="dim")
        self._now_playing.update(header)
        self.update_progress(view.position_s, view.duration_s)
        if not self._volume_bar.is_dragging:
            self._volume_bar.set_fraction(view.volume / 100.0)
        self._volume_bar.set_value_text("mute" if view.muted else str(view.volume))
        self._status_line.update(_status_text(view))

    def update_progress(
        self, position_s: float, duration_s: float, *, preview: bool = False
    ) -> None:
        pos_text, dur_text = format_time_pair_s(position_s, duration_s)
        self._time_bar.set_value_text(f"{pos_text}/{dur_text}")
        if preview or self._time_bar.is_dragging:
            return
        fraction = position_s / duration_s if duration_s > 0 else 0.0
        self._time_bar.set_fraction(fraction)

    def on_slider_bar_drag_started(self, event: SliderBar.DragStarted) -> None:
        if self._controller is not None and event.name == "time":
            self._controller.begin_seek_gesture()
        event.stop()

    async def on_slider_bar_changed(self, event: SliderBar.Changed) -> None:
        event.stop()
        controller = self._controller
        if controller is None or self._view is None:
            return
        if event.name == "volume":
            self.run_worker(
                controller.set_volume(round(event.fraction * 100)), exclusive=False
            )
            return
        if event.name != "time":
            return
        target_s = event.fraction * self._view.duration_s
        if controller.engine.seek_gesture_active:
            await controller.update_seek_gesture(target_s)
            if event.is_final:
                await controller.end_seek_gesture()
        elif event.is_final:
            await controller.seek_ratio(event.fraction)


def _status_text(view: PlayerView) -> Text:
    text = Text()
    text.append("Status: ", style="bold #F2C94C")
    text.append(view.status)
    text.append(" | ")
    text.append("Repeat: ", style="bold #F2C94C")
    text.append(view.repeat_mode)
    text.append(" | ")
    text.append("Shuffle: ", style="bold #F2C94C")
    text.append("on" if view.shuffle else "off")
    text.append(" | ")
    text.append(f"{view.track_count} track(s), {format_time_s(view.total_duration_s)}")
    return text
