"""Secondary tag reader used when mutagen cannot identify a file."""

from __future__ import annotations

import logging
import math
import wave
from dataclasses import dataclass
from pathlib import Path

from tinytag import TinyTag

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AudioTags:
    title: str | None = None
    artist: str | None = None
    album: str | None = None
    duration_s: float | None = None
    error: str | None = None


def read_audio_tags(path: Path) -> AudioTags:
    """Tags from TinyTag; a plain WAV still yields its duration from the header.

    Never raises. Failures come back as an `AudioTags` carrying `error`.
    """
    try:
        tag = TinyTag.get(str(path))
    except Exception as exc:
        logger.debug("tinytag could not parse %s: %s", path, exc)
        duration = _wave_duration_s(path)
        if duration is not None:
            return AudioTags(duration_s=duration)
        return AudioTags(error=str(exc) or "unreadable audio file")
    return AudioTags(
        title=clean_text(tag.title),
        artist=clean_text(tag.artist),
        album=clean_text(tag.album),
        duration_s=safe_duration_s(tag.duration),
    )


def _wave_duration_s(path: Path) -> float | None:
    try:
        with wave.open(str(path), "rb") as reader:
            rate = reader.getframerate()
            frames = reader.getnframes()
    except (OSError, EOFError, wave.Error):
        return None
    return safe_duration_s(frames / rate) if rate > 0 else None


def clean_text(value: object) -> str | None:
    """Trimmed text, or `None` for missing and blank values."""
    text = "" if value is None else str(value).strip()
    return text or None


def safe_duration_s(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    seconds = float(value)
    return seconds if math.isfinite(seconds) and seconds > 0 else None
