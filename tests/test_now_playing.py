"""Tests for media-key command routing."""

from __future__ import annotations

import asyncio

import pytest

from deck_player.runtime_config import PlayerConfig
from deck_player.services.now_playing import (
    NOW_PLAYING_COMMANDS,
    LoggingNowPlayingSink,
    NowPlayingMetadata,
    dispatch_now_playing_command,
)


def _run(coro):
    return asyncio.run(coro)


class _RecordingController:
    def __init__(self) -> None:
        self.config = PlayerConfig(seek_step_s=5.0)
        self.calls: list[tuple[str, object]] = []

    async def play(self) -> bool:
        self.calls.append(("play", None))
        return True

    async def pause(self) -> bool:
        self.calls.append(("pause", None))
        return True

    async def previous(self) -> bool:
        self.calls.append(("previous", None))
        return True

    async def next(self) -> bool:
        self.calls.append(("next", None))
        return True

    async def seek_by(self, delta_s: float) -> bool:
        self.calls.append(("seek_by", delta_s))
        return True


@pytest.mark.parametrize(
    ("command", "expected"),
    [
        ("play", ("play", None)),
        ("pause", ("pause", None)),
        ("previous", ("previous", None)),
        ("next", ("next", None)),
        ("seekBack", ("seek_by", -5.0)),
        ("seekForward", ("seek_by", 5.0)),
    ],
)
def test_commands_map_one_to_one_onto_intents(command, expected) -> None:
    controller = _RecordingController()
    assert _run(dispatch_now_playing_command(controller, command)) is True
    assert controller.calls == [expected]


def test_unknown_command_is_ignored() -> None:
    controller = _RecordingController()
    assert _run(dispatch_now_playing_command(controller, "stop")) is False
    assert controller.calls == []


def test_command_list_matches_dispatch_table() -> None:
    assert set(NOW_PLAYING_COMMANDS) == {
        "play",
        "pause",
        "previous",
        "next",
        "seekBack",
        "seekForward",
    }


def test_logging_sink_remembers_last_update() -> None:
    sink = LoggingNowPlayingSink()
    metadata = NowPlayingMetadata(title="T", artist="A", album="B")
    sink.update(metadata, playing=True)
    assert sink.last == metadata
    assert sink.playing is True
    sink.update(None, playing=False)
    assert sink.last is None
    assert sink.playing is False
