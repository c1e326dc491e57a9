"""Tests for the metadata-only playlist export document."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from deck_player.errors import EmptyPlaylistError
from deck_player.playlist_export import (
    build_playlist_export,
    default_playlist_name,
    export_file_name,
    write_playlist_export,
)
from deck_player.state_store import PersistedTrack

NOW = datetime(2024, 5, 17, 12, 30, tzinfo=timezone.utc)


def test_export_contains_metadata_only() -> None:
    tracks = [
        PersistedTrack(
            id="a",
            title="Song",
            artist="Band",
            album="Record",
            path="/secret/song.mp3",
            duration_s=201.5,
            file_size_bytes=10,
        )
    ]
    document = build_playlist_export(tracks, name="  Mix  ", now=NOW)
    assert document == {
        "name": "Mix",
        "tracks": [
            {"title": "Song", "artist": "Band", "album": "Record", "duration": 201.5}
        ],
        "createdAt": "2024-05-17T12:30:00+00:00",
    }


def test_blank_name_falls_back_to_dated_default() -> None:
    tracks = [PersistedTrack(id="a", title="Song")]
    document = build_playlist_export(tracks, name=" ", now=NOW)
    assert document["name"].startswith("My Playlist - ")
    assert document["name"] == default_playlist_name(NOW)


def test_empty_playlist_cannot_be_exported() -> None:
    with pytest.raises(EmptyPlaylistError):
        build_playlist_export([])


def test_write_playlist_export_creates_parent(tmp_path) -> None:
    target = tmp_path / "nested" / "mix.json"
    document = build_playlist_export([PersistedTrack(id="a", title="A")], now=NOW)
    assert write_playlist_export(target, document) == target
    assert json.loads(target.read_text(encoding="utf-8")) == document


def test_export_file_name_is_filesystem_safe() -> None:
    assert export_file_name("My Playlist - 2024-05-17") == (
        "My_Playlist_-_2024-05-17.json"
    )
    assert export_file_name("a/b:c") == "a_b_c.json"
    assert export_file_name("   ") == "playlist.json"
