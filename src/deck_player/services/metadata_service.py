"""Async file/metadata provider backed by mutagen.

Probing never blocks the event loop: stat, tag parsing and artwork lookup run
through `run_blocking`. Files that are not audio or cannot be opened raise
`UnsupportedFileError`; unreadable tags only fall back to default metadata.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from mutagen import File as MutagenFile

from deck_player.errors import UnsupportedFileError
from deck_player.media_formats import artwork_candidates, is_supported_audio_file
from deck_player.services.audio_tags import (
    AudioTags,
    clean_text,
    read_audio_tags,
    safe_duration_s,
)
from deck_player.services.track_registry import UNKNOWN_ALBUM, UNKNOWN_ARTIST
from deck_player.utils.async_utils import run_blocking

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackMetadata:
    """Probe result with defaults already applied."""

    title: str
    artist: str = UNKNOWN_ARTIST
    album: str = UNKNOWN_ALBUM
    artwork_ref: str | None = None
    duration_s: float = 0.0
    file_size_bytes: int | None = None


class MetadataProbe(Protocol):
    async def probe(self, path: Path) -> TrackMetadata: ...


class MutagenMetadataProbe:
    """Reads tags with mutagen, then TinyTag, then plain file-name defaults."""

    def __init__(self, *, concurrency: int = 4) -> None:
        self._semaphore = asyncio.Semaphore(concurrency)

    async def probe(self, path: Path) -> TrackMetadata:
        if not is_supported_audio_file(path):
            raise UnsupportedFileError(str(path), "not a recognized audio file")
        async with self._semaphore:
            try:
                size_bytes = await run_blocking(_file_size, path)
            except OSError as exc:
                raise UnsupportedFileError(
                    str(path), f"file is missing or unreadable ({exc})"
                ) from exc
            try:
                tags = await run_blocking(_read_metadata, path)
            except Exception as exc:  # pragma: no cover - safety net
                logger.exception("Failed to read metadata for %s: %s", path, exc)
                tags = AudioTags(error=str(exc))
            if tags.error is not None:
                logger.debug("Using default metadata for %s: %s", path, tags.error)
            artwork = await run_blocking(find_sidecar_artwork, path)
        return TrackMetadata(
            title=tags.title or path.stem,
            artist=tags.artist or UNKNOWN_ARTIST,
            album=tags.album or UNKNOWN_ALBUM,
            artwork_ref=str(artwork) if artwork is not None else None,
            duration_s=tags.duration_s or 0.0,
            file_size_bytes=size_bytes,
        )


def _file_size(path: Path) -> int:
    stat = path.stat()
    if not path.is_file():
        raise IsADirectoryError(str(path))
    return stat.st_size


def _read_metadata(path: Path) -> AudioTags:
    try:
        audio = MutagenFile(path, easy=True)
    except Exception as exc:
        logger.debug("mutagen could not parse %s: %s", path, exc)
        audio = None
    if audio is None:
        return read_audio_tags(path)
    tags = audio.tags or {}
    return AudioTags(
        title=_first_tag(tags, "title"),
        artist=_first_tag(tags, "artist"),
        album=_first_tag(tags, "album"),
        duration_s=safe_duration_s(getattr(audio.info, "length", None)),
    )


def _first_tag(tags: dict, key: str) -> str | None:
    value = tags.get(key)
    if isinstance(value, list) and value:
        return clean_text(value[0])
    if isinstance(value, str):
        return clean_text(value)
    return None


def find_sidecar_artwork(track_path: Path) -> Path | None:
    """Locate nearby cover-art files (`cover.jpg`, `<stem>.png`, ...)."""
    directory = track_path.parent
    try:
        file_map = {
            item.name.lower(): item for item in directory.iterdir() if item.is_file()
        }
    except OSError:
        return None
    for name in artwork_candidates(track_path):
        candidate = file_map.get(name)
        if candidate is not None:
            return candidate
    return None


def expand_paths(paths: Iterable[Path]) -> list[Path]:
    """Expand directories into their files (sorted) while keeping file order."""
    expanded: list[Path] = []
    for path in paths:
        if path.is_dir():
            expanded.extend(
                sorted(child for child in path.rglob("*") if child.is_file())
            )
        else:
            expanded.append(path)
    return expanded
