"""JSON persistence for the player session.

The session is stored as one JSON document under a single key of a small
key-value store. Loading is intentionally tolerant of invalid/missing values so
upgrades and partial/corrupt writes degrade to safe defaults instead of
aborting startup.
"""

from __future__ import annotations

import json
import logging
import math
import time
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Protocol
from uuid import uuid4

from deck_player.errors import PersistenceCorruptError, format_user_error
from deck_player.runtime_config import RepeatMode, normalize_repeat_mode
from deck_player.services.track_registry import UNKNOWN_ALBUM, UNKNOWN_ARTIST

logger = logging.getLogger(__name__)

SESSION_KEY = "musicPlayerData"
SNAPSHOT_VERSION = 1
DEFAULT_VOLUME = 50


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryKeyValueStore:
    """Dict-backed store for tests and headless runs."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class FileKeyValueStore:
    """One `<key>.json` file per key inside `directory`."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        try:
            return self.path_for(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        """Persist atomically via write-then-replace."""
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(f"{path.name}.{uuid4().hex}.tmp")
        delay_s = 0.02
        try:
            for attempt in range(4):
                tmp_path.write_text(value, encoding="utf-8")
                try:
                    tmp_path.replace(path)
                    return
                except OSError as exc:
                    if not _is_retryable_windows_replace_error(exc) or attempt >= 3:
                        raise
                    time.sleep(delay_s)
                    delay_s = min(0.25, delay_s * 2.0)
        finally:
            with suppress(OSError):
                tmp_path.unlink()


@dataclass(frozen=True)
class PersistedTrack:
    """Track metadata as stored; resource handles are never persisted."""

    id: str
    title: str
    artist: str = UNKNOWN_ARTIST
    album: str = UNKNOWN_ALBUM
    path: str = ""
    artwork_ref: str | None = None
    duration_s: float = 0.0
    file_size_bytes: int | None = None


@dataclass(frozen=True)
class SessionSnapshot:
    playlist: tuple[PersistedTrack, ...] = ()
    current_index: int = -1
    current_track_id: str | None = None
    position_s: float = 0.0
    shuffle: bool = False
    repeat_mode: RepeatMode = "none"
    volume: int = DEFAULT_VOLUME
    muted: bool = False
    pre_mute_volume: int = DEFAULT_VOLUME

    def to_json(self) -> str:
        payload: dict[str, Any] = {
            "version": SNAPSHOT_VERSION,
            "playlist": [
                {
                    "id": track.id,
                    "title": track.title,
                    "artist": track.artist,
                    "album": track.album,
                    "path": track.path,
                    "artworkRef": track.artwork_ref,
                    "duration": track.duration_s,
                    "fileSize": track.file_size_bytes,
                }
                for track in self.playlist
            ],
            "currentTrackIndex": self.current_index,
            "currentTrackId": self.current_track_id,
            "currentPositionSeconds": self.position_s,
            "isShuffleMode": self.shuffle,
            "repeatMode": self.repeat_mode,
            "volume": self.volume,
            "isMuted": self.muted,
            "preMuteVolume": self.pre_mute_volume,
        }
        return json.dumps(payload, indent=2, sort_keys=True)


def clamp_volume(value: object, default: int = DEFAULT_VOLUME) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if not math.isfinite(value):
        return default
    return max(0, min(int(round(value)), 100))


def _coerce_snapshot(data: dict[str, Any]) -> SessionSnapshot:
    """Coerce an untyped JSON object into a validated snapshot.

    The current index is resolved by track id first and then clamped into the
    playlist bounds, or reset to -1 for an empty playlist.
    """

    def _float_or_default(value: Any, default: float) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return default
        normalized = float(value)
        return normalized if math.isfinite(normalized) else default

    def _str_or_none(value: Any) -> str | None:
        return value if isinstance(value, str) and value.strip() else None

    raw_playlist = data.get("playlist")
    tracks: list[PersistedTrack] = []
    seen: set[str] = set()
    if isinstance(raw_playlist, list):
        for position, entry in enumerate(raw_playlist):
            if not isinstance(entry, dict):
                continue
            track_id = _str_or_none(entry.get("id")) or f"restored-{position}"
            if track_id in seen:
                continue
            seen.add(track_id)
            path = _str_or_none(entry.get("path")) or ""
            size = entry.get("fileSize")
            if isinstance(size, bool) or not isinstance(size, int) or size < 0:
                size = None
            tracks.append(
                PersistedTrack(
                    id=track_id,
                    title=_str_or_none(entry.get("title")) or Path(path).stem or "",
                    artist=_str_or_none(entry.get("artist")) or UNKNOWN_ARTIST,
                    album=_str_or_none(entry.get("album")) or UNKNOWN_ALBUM,
                    path=path,
                    artwork_ref=_str_or_none(entry.get("artworkRef")),
                    duration_s=max(0.0, _float_or_default(entry.get("duration"), 0.0)),
                    file_size_bytes=size,
                )
            )

    raw_index = data.get("currentTrackIndex")
    index = (
        raw_index
        if isinstance(raw_index, int) and not isinstance(raw_index, bool)
        else 0
    )
    volume = clamp_volume(data.get("volume"))
    muted = data.get("isMuted") is True
    snapshot = SessionSnapshot(
        playlist=tuple(tracks),
        current_index=index,
        current_track_id=_str_or_none(data.get("currentTrackId")),
        position_s=max(0.0, _float_or_default(data.get("currentPositionSeconds"), 0.0)),
        shuffle=data.get("isShuffleMode") is True,
        repeat_mode=normalize_repeat_mode(data.get("repeatMode")),
        volume=0 if muted else volume,
        muted=muted,
        pre_mute_volume=clamp_volume(data.get("preMuteVolume"), volume),
    )
    return reconcile_selection(snapshot)


def reconcile_selection(snapshot: SessionSnapshot) -> SessionSnapshot:
    """Keep `current_index` and `current_track_id` consistent and in bounds."""
    playlist = snapshot.playlist
    if not playlist:
        return replace(
            snapshot, current_index=-1, current_track_id=None, position_s=0.0
        )
    if snapshot.current_track_id is not None:
        for index, track in enumerate(playlist):
            if track.id == snapshot.current_track_id:
                return replace(snapshot, current_index=index)
    index = max(0, min(snapshot.current_index, len(playlist) - 1))
    position = snapshot.position_s
    if snapshot.current_track_id is not None:
        # the selected track is gone; the saved position belonged to it
        position = 0.0
    return replace(
        snapshot,
        current_index=index,
        current_track_id=playlist[index].id,
        position_s=position,
    )


def drop_missing_tracks(
    snapshot: SessionSnapshot, exists: Callable[[str], bool]
) -> tuple[SessionSnapshot, int]:
    """Remove entries whose backing file cannot be restored."""
    kept = tuple(
        track for track in snapshot.playlist if track.path and exists(track.path)
    )
    dropped = len(snapshot.playlist) - len(kept)
    if not dropped:
        return snapshot, 0
    for track in snapshot.playlist:
        if track not in kept:
            logger.info(
                "Dropping restored track %s; file %r is gone", track.id, track.path
            )
    return reconcile_selection(replace(snapshot, playlist=kept)), dropped


class SessionStore:
    """Saves and loads `SessionSnapshot` through a key-value store."""

    def __init__(self, store: KeyValueStore, *, key: str = SESSION_KEY) -> None:
        self._store = store
        self._key = key

    def save(self, snapshot: SessionSnapshot) -> None:
        self._store.set(self._key, snapshot.to_json())

    def load(self) -> SessionSnapshot | None:
        """Return the stored snapshot; `PersistenceCorruptError` if unreadable."""
        try:
            raw = self._store.get(self._key)
        except OSError as exc:
            raise PersistenceCorruptError(f"session store unreadable: {exc}") from exc
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise PersistenceCorruptError(f"session data is not JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise PersistenceCorruptError("session data is not a JSON object")
        return _coerce_snapshot(data)

    def load_with_notice(self) -> tuple[SessionSnapshot, str | None]:
        """Load the session and return an optional user-facing notice."""
        try:
            snapshot = self.load()
        except PersistenceCorruptError as exc:
            logger.warning("Saved session is unusable (%s); using defaults.", exc)
            return SessionSnapshot(), format_user_error(
                what_failed="Error loading saved data.",
                likely_cause="The saved session is corrupt or partially written.",
                next_step="Your playlist was reset; add your music again.",
            )
        if snapshot is None:
            logger.info("No saved session found; starting empty.")
            return SessionSnapshot(), None
        return snapshot, None


def _is_retryable_windows_replace_error(exc: OSError) -> bool:
    """Return whether an atomic replace failure is likely transient on Windows."""
    winerror = getattr(exc, "winerror", None)
    if winerror in {32, 5, 2}:
        return True
    errno = getattr(exc, "errno", None)
    if errno in {13, 16}:
        return True
    text = str(exc).lower()
    return "used by another process" in text or "permission denied" in text
