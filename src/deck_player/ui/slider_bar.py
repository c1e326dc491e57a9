"""Draggable one-line slider for the progress and volume readouts."""

from __future__ import annotations

import math
from time import monotonic
from typing import NamedTuple

from rich.text import Text
from textual.events import Blur, Key, MouseDown, MouseMove, MouseUp
from textual.message import Message
from textual.widget import Widget

THUMB = "●"
FILLED = "━"
EMPTY = "─"


class BarSpan(NamedTuple):
    """Columns occupied by the bar inside the widget."""

    start: int
    length: int

    def contains(self, x: int) -> bool:
        return self.length > 0 and self.start <= x < self.start + self.length

    def fraction_at(self, x: int) -> float:
        if self.length <= 1:
            return 0.0
        return clamp_fraction((x - self.start) / (self.length - 1))


class SliderBar(Widget, can_focus=True):
    """Labeled slider driven by mouse drag, click or the arrow keys.

    A drag posts `DragStarted`, rate-limited intermediate `Changed` messages
    and exactly one final `Changed` on release or focus loss. Values pushed
    from outside with `set_fraction` are ignored while a drag is in progress.
    """

    DEFAULT_CSS = """
    SliderBar {
        height: 1;
    }
    SliderBar:focus {
        background: $boost;
    }
    """

    class DragStarted(Message):
        def __init__(self, name: str) -> None:
            super().__init__()
            self.name = name

    class Changed(Message):
        def __init__(self, name: str, fraction: float, is_final: bool) -> None:
            super().__init__()
            self.name = name
            self.fraction = fraction
            self.is_final = is_final

    def __init__(
        self,
        *,
        name: str,
        label: str,
        fraction: float = 0.0,
        value_text: str = "",
        key_step: float = 0.02,
        emit_interval: float = 0.05,
        **kwargs,
    ) -> None:
        super().__init__(name=name, **kwargs)
        self.label = label
        self.fraction = clamp_fraction(fraction)
        self.value_text = value_text
        self.key_step = key_step
        self.emit_interval = emit_interval
        self._span = BarSpan(0, 0)
        self._dragging = False
        self._last_post = 0.0

    @property
    def is_dragging(self) -> bool:
        return self._dragging

    @property
    def span(self) -> BarSpan:
        """Bar geometry from the most recent render."""
        return self._span

    def set_fraction(self, fraction: float) -> None:
        if self._dragging:
            return
        self.fraction = clamp_fraction(fraction)
        self.refresh()

    def set_value_text(self, value_text: str) -> None:
        self.value_text = value_text
        self.refresh()

    def render(self) -> Text:
        width = self.size.width
        if width <= 0:
            return Text("")
        label = f"{self.label:<4}"
        self._span, show_value = layout_bar(width, label, self.value_text)
        text = Text(no_wrap=True, overflow="crop")
        text.append(label, style="bold")
        if self._span.length:
            text.append(" ")
            text.append_text(bar_text(self.fraction, self._span.length))
        if show_value and self.value_text:
            text.append(" ")
            text.append(self.value_text)
        text.truncate(width)
        return text

    def on_mouse_down(self, event: MouseDown) -> None:
        if event.button != 1 or not self._span.contains(event.x):
            return
        event.stop()
        self.focus()
        self.capture_mouse()
        self._dragging = True
        self.post_message(self.DragStarted(self.name or ""))
        self._move_to(self._span.fraction_at(event.x), final=False)

    def on_mouse_move(self, event: MouseMove) -> None:
        if not self._dragging:
            return
        event.stop()
        self._move_to(self._span.fraction_at(event.x), final=False)

    def on_mouse_up(self, event: MouseUp) -> None:
        if not self._dragging:
            return
        event.stop()
        self._release()
        self._move_to(self._span.fraction_at(event.x), final=True)

    def on_blur(self, event: Blur) -> None:
        if not self._dragging:
            return
        event.stop()
        self._release()
        self._move_to(self.fraction, final=True)

    def on_key(self, event: Key) -> None:
        delta = {"left": -self.key_step, "right": self.key_step}.get(event.key)
        if delta is None:
            return
        event.stop()
        self._move_to(self.fraction + delta, final=True)

    def _release(self) -> None:
        self._dragging = False
        self.release_mouse()

    def _move_to(self, fraction: float, *, final: bool) -> None:
        self.fraction = clamp_fraction(fraction)
        now = monotonic()
        if final or now - self._last_post >= self.emit_interval:
            self._last_post = now
            self.post_message(self.Changed(self.name or "", self.fraction, final))
        self.refresh()


def layout_bar(width: int, label: str, value_text: str) -> tuple[BarSpan, bool]:
    """Place the bar after the label; drop the readout when space runs out."""
    start = len(label) + 1
    length = width - start - len(value_text) - 1
    if length >= 3:
        return BarSpan(start, length), True
    return BarSpan(start, max(0, width - start)), False


def bar_text(fraction: float, length: int) -> Text:
    if length <= 0:
        return Text("")
    thumb = round(clamp_fraction(fraction) * (length - 1))
    text = Text()
    text.append(FILLED * thumb, style="#F2C94C")
    text.append(THUMB, style="bold")
    text.append(EMPTY * (length - thumb - 1), style="dim")
    return text


def clamp_fraction(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return max(0.0, min(value, 1.0))
