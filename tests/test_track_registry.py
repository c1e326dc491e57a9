"""Tests for the ordered track registry."""

from __future__ import annotations

import math

import pytest

from deck_player.errors import DuplicateTrackIdError, InvalidIndexError
from deck_player.services.track_registry import Track, TrackRegistry


def _track(track_id: str, duration_s: float = 0.0) -> Track:
    return Track(
        id=track_id,
        title=track_id.upper(),
        artist="Artist",
        album="Album",
        source_ref=f"res:{track_id}",
        location=f"/music/{track_id}.mp3",
        duration_s=duration_s,
    )


def test_add_appends_in_insertion_order() -> None:
    registry = TrackRegistry()
    assert registry.add(_track("a")) == 0
    assert registry.add(_track("b")) == 1
    assert [track.id for track in registry.tracks()] == ["a", "b"]
    assert registry.total_count() == 2


def test_add_rejects_duplicate_id() -> None:
    registry = TrackRegistry()
    registry.add(_track("a"))
    with pytest.raises(DuplicateTrackIdError):
        registry.add(_track("a"))
    assert len(registry) == 1


def test_remove_at_returns_removed_track_and_checks_bounds() -> None:
    registry = TrackRegistry()
    registry.add(_track("a"))
    registry.add(_track("b"))
    removed = registry.remove_at(0)
    assert removed.id == "a"
    assert registry.get(0).id == "b"
    with pytest.raises(InvalidIndexError):
        registry.remove_at(1)
    with pytest.raises(IndexError):
        registry.get(-1)


def test_clear_returns_every_track() -> None:
    registry = TrackRegistry()
    registry.add(_track("a"))
    registry.add(_track("b"))
    removed = registry.clear()
    assert [track.id for track in removed] == ["a", "b"]
    assert len(registry) == 0


def test_total_duration_counts_unknown_as_zero() -> None:
    registry = TrackRegistry()
    registry.add(_track("a", 180.0))
    registry.add(_track("b"))
    registry.add(_track("c", 240.5))
    assert registry.total_duration_s() == pytest.approx(420.5)


def test_revision_changes_on_structural_mutation_only() -> None:
    registry = TrackRegistry()
    start = registry.revision
    registry.add(_track("a"))
    after_add = registry.revision
    registry.update_duration("a", 10.0)
    assert registry.revision == after_add > start
    registry.clear()
    assert registry.revision > after_add


def test_update_duration_is_keyed_by_id() -> None:
    registry = TrackRegistry()
    registry.add(_track("a"))
    registry.add(_track("b"))
    assert registry.update_duration("b", 200.0) is True
    assert registry.get(1).duration_s == 200.0
    registry.remove_at(0)
    assert registry.update_duration("a", 99.0) is False
    assert registry.get(0).duration_s == 200.0


def test_update_duration_ignores_unknown_values() -> None:
    registry = TrackRegistry()
    registry.add(_track("a", 30.0))
    assert registry.update_duration("a", math.nan) is False
    assert registry.update_duration("a", math.inf) is False
    assert registry.update_duration("a", 0.0) is False
    assert registry.get(0).duration_s == 30.0
