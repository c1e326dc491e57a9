"""Mouse and keyboard interaction tests for the slider bar."""

from __future__ import annotations

import asyncio

import pytest
from textual.geometry import Size
from textual.message import Message

from deck_player.ui.slider_bar import (
    BarSpan,
    SliderBar,
    bar_text,
    clamp_fraction,
    layout_bar,
)


class _FakeEvent:
    def __init__(self, *, x: int = 0, button: int = 1, key: str = "") -> None:
        self.x = x
        self.button = button
        self.key = key
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True


class _SizedSliderBar(SliderBar):
    @property
    def size(self) -> Size:  # type: ignore[override]
        return Size(30, 1)


def _slider(**kwargs) -> tuple[_SizedSliderBar, list[Message]]:
    slider = _SizedSliderBar(name="time", label="TIME", emit_interval=0.0, **kwargs)
    slider.focus = lambda *args, **kwargs: None  # type: ignore[assignment]
    slider.capture_mouse = lambda *args, **kwargs: None  # type: ignore[assignment]
    slider.release_mouse = lambda *args, **kwargs: None  # type: ignore[assignment]
    slider.refresh = lambda *args, **kwargs: None  # type: ignore[assignment]
    emitted: list[Message] = []
    slider.post_message = emitted.append  # type: ignore[assignment]
    slider.render()
    return slider, emitted


def _changes(emitted: list[Message]) -> list[SliderBar.Changed]:
    return [m for m in emitted if isinstance(m, SliderBar.Changed)]


def test_drag_posts_start_progress_and_single_final() -> None:
    slider, emitted = _slider()
    span = slider.span

    async def run() -> None:
        last = span.start + span.length - 1
        down = _FakeEvent(x=span.start + 1)
        move = _FakeEvent(x=last)
        up = _FakeEvent(x=last)
        slider.on_mouse_down(down)  # type: ignore[arg-type]
        assert slider.is_dragging is True
        slider.on_mouse_move(move)  # type: ignore[arg-type]
        slider.on_mouse_up(up)  # type: ignore[arg-type]
        assert down.stopped and move.stopped and up.stopped

    asyncio.run(run())
    assert slider.is_dragging is False
    assert isinstance(emitted[0], SliderBar.DragStarted)
    assert emitted[0].name == "time"
    changes = _changes(emitted)
    assert [m.is_final for m in changes] == [False, False, True]
    assert changes[-1].fraction == 1.0


def test_blur_during_drag_posts_final_value() -> None:
    slider, emitted = _slider()
    slider.on_mouse_down(_FakeEvent(x=slider.span.start))  # type: ignore[arg-type]
    slider.on_blur(_FakeEvent())  # type: ignore[arg-type]

    changes = _changes(emitted)
    assert changes[-1].is_final is True
    assert changes[-1].fraction == 0.0
    assert slider.is_dragging is False


def test_click_outside_bar_is_ignored() -> None:
    slider, emitted = _slider()
    event = _FakeEvent(x=0)
    slider.on_mouse_down(event)  # type: ignore[arg-type]
    assert emitted == []
    assert event.stopped is False


def test_arrow_keys_step_and_clamp() -> None:
    slider, emitted = _slider(fraction=0.99, key_step=0.05)
    slider.on_key(_FakeEvent(key="right"))  # type: ignore[arg-type]
    slider.on_key(_FakeEvent(key="left"))  # type: ignore[arg-type]
    fractions = [m.fraction for m in _changes(emitted)]
    assert fractions[0] == 1.0
    assert fractions[1] == pytest.approx(0.95)
    assert all(m.is_final for m in _changes(emitted))


def test_external_updates_are_ignored_while_dragging() -> None:
    slider, _emitted = _slider()
    start = slider.span.start
    slider.on_mouse_down(_FakeEvent(x=start))  # type: ignore[arg-type]
    slider.set_fraction(0.7)
    assert slider.fraction == 0.0
    slider.on_mouse_up(_FakeEvent(x=start))  # type: ignore[arg-type]
    slider.set_fraction(0.7)
    assert slider.fraction == 0.7


def test_layout_drops_readout_when_narrow() -> None:
    assert layout_bar(30, "TIME", "1:00/3:00") == (BarSpan(5, 15), True)
    assert layout_bar(12, "TIME", "1:00/3:00") == (BarSpan(5, 7), False)


def test_bar_text_places_thumb() -> None:
    assert bar_text(0.0, 5).plain == "●────"
    assert bar_text(1.0, 5).plain == "━━━━●"
    assert bar_text(0.5, 1).plain == "●"
    assert bar_text(0.5, 0).plain == ""


def test_clamp_fraction_handles_non_finite_values() -> None:
    assert clamp_fraction(float("nan")) == 0.0
    assert clamp_fraction(float("inf")) == 0.0
    assert clamp_fraction(-0.2) == 0.0
    assert clamp_fraction(1.7) == 1.0
