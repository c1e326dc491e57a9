"""Ordered, id-unique track list owned by the session.

The registry is pure data: it never touches playback state or resource
handles. Callers receive removed tracks back so they can release the handles.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from uuid import uuid4

from deck_player.errors import DuplicateTrackIdError, InvalidIndexError

logger = logging.getLogger(__name__)

UNKNOWN_ARTIST = "Unknown Artist"
UNKNOWN_ALBUM = "Unknown Album"


@dataclass(frozen=True)
class Track:
    """One playable playlist entry.

    `source_ref` is an opaque resource handle and `location` the persistable
    file path it was acquired for.
    """

    id: str
    title: str
    artist: str
    album: str
    source_ref: str
    location: str
    artwork_ref: str | None = None
    duration_s: float = 0.0
    file_size_bytes: int | None = None


def new_track_id() -> str:
    return uuid4().hex


class TrackRegistry:
    """Ordered track sequence with invariant-preserving mutation."""

    def __init__(self) -> None:
        self._tracks: list[Track] = []
        self._revision = 0

    def __len__(self) -> int:
        return len(self._tracks)

    @property
    def revision(self) -> int:
        """Counter bumped by every structural mutation (add/remove/clear)."""
        return self._revision

    def add(self, track: Track) -> int:
        if self.index_of(track.id) is not None:
            raise DuplicateTrackIdError(track.id)
        self._tracks.append(track)
        self._revision += 1
        return len(self._tracks) - 1

    def remove_at(self, index: int) -> Track:
        self._check_index(index)
        track = self._tracks.pop(index)
        self._revision += 1
        return track

    def clear(self) -> list[Track]:
        removed = self._tracks
        self._tracks = []
        self._revision += 1
        return removed

    def get(self, index: int) -> Track:
        self._check_index(index)
        return self._tracks[index]

    def find(self, track_id: str) -> Track | None:
        index = self.index_of(track_id)
        return None if index is None else self._tracks[index]

    def index_of(self, track_id: str) -> int | None:
        for index, track in enumerate(self._tracks):
            if track.id == track_id:
                return index
        return None

    def tracks(self) -> tuple[Track, ...]:
        return tuple(self._tracks)

    def total_count(self) -> int:
        return len(self._tracks)

    def total_duration_s(self) -> float:
        """Sum of known durations; unknown (0) durations contribute nothing."""
        return sum(track.duration_s for track in self._tracks)

    def update_duration(self, track_id: str, duration_s: float) -> bool:
        """Back-fill duration metadata, keyed by id so stale results are dropped."""
        index = self.index_of(track_id)
        if index is None:
            logger.debug("Dropping duration for removed track %s", track_id)
            return False
        if not math.isfinite(duration_s) or duration_s <= 0:
            return False
        current = self._tracks[index]
        if current.duration_s == duration_s:
            return False
        self._tracks[index] = replace(current, duration_s=duration_s)
        return True

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._tracks):
            raise InvalidIndexError(index, len(self._tracks))
