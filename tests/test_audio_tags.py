"""Tests for the TinyTag reader and the audio suffix rules."""

from __future__ import annotations

import wave
from pathlib import Path

import pytest

from deck_player.media_formats import artwork_candidates, is_supported_audio_file
from deck_player.services.audio_tags import read_audio_tags


def _write_wave(path: Path, seconds: float, framerate: int = 22050) -> None:
    with wave.open(str(path), "wb") as writer:
        writer.setnchannels(1)
        writer.setsampwidth(2)
        writer.setframerate(framerate)
        writer.writeframes(b"\x00\x00" * int(seconds * framerate))


def test_wave_file_reports_its_duration(tmp_path) -> None:
    path = tmp_path / "beep.wav"
    _write_wave(path, 1.5)

    tags = read_audio_tags(path)

    assert tags.error is None
    assert tags.duration_s == pytest.approx(1.5, abs=0.01)


def test_missing_file_comes_back_as_error(tmp_path) -> None:
    tags = read_audio_tags(tmp_path / "gone.mp3")
    assert tags.error
    assert tags.title is None
    assert tags.duration_s is None


@pytest.mark.parametrize(
    ("name", "expected"),
    [("a.MP3", True), ("b.flac", True), ("c.opus", True), ("notes.txt", False)],
)
def test_supported_audio_suffixes(name: str, expected: bool) -> None:
    assert is_supported_audio_file(Path("/music") / name) is expected


def test_artwork_candidates_prefer_folder_art_over_track_stem() -> None:
    names = artwork_candidates(Path("/music/Song One.mp3"))
    assert names[0] == "cover.jpg"
    assert names.index("folder.png") < names.index("song one.jpg")
    assert names[-1] == "song one.gif"
