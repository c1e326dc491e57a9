"""Metadata-only "save playlist" documents."""

from __future__ import annotations

import json
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from deck_player.errors import EmptyPlaylistError


class _ExportableTrack(Protocol):
    title: str
    artist: str
    album: str
    duration_s: float


def default_playlist_name(now: datetime | None = None) -> str:
    local = (now or datetime.now()).astimezone()
    return f"My Playlist - {local.date().isoformat()}"


def build_playlist_export(
    tracks: Iterable[_ExportableTrack],
    *,
    name: str | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Return the export document; raises `EmptyPlaylistError` for no tracks."""
    entries = [
        {
            "title": track.title,
            "artist": track.artist,
            "album": track.album,
            "duration": track.duration_s,
        }
        for track in tracks
    ]
    if not entries:
        raise EmptyPlaylistError("No tracks to save.")
    created = now or datetime.now(timezone.utc)
    clean_name = (name or "").strip() or default_playlist_name(created)
    return {
        "name": clean_name,
        "tracks": entries,
        "createdAt": created.isoformat(),
    }


def write_playlist_export(path: Path, document: dict[str, Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document, indent=2), encoding="utf-8")
    return path


def export_file_name(name: str) -> str:
    """File-system friendly name for an export document."""
    safe = "".join(ch if ch.isalnum() or ch in "-_ " else "_" for ch in name)
    return f"{safe.strip().replace(' ', '_') or 'playlist'}.json"
