"""File suffix rules for audio tracks and sidecar cover art."""

from __future__ import annotations

import mimetypes
from pathlib import Path

# Containers and codecs libVLC decodes out of the box.
AUDIO_EXTENSIONS = frozenset(
    ".aac .ac3 .aiff .alac .ape .dff .dsf .flac .m4a .mka .mp2 .mp3 .ogg .opus "
    ".wav .wma".split()
)

ARTWORK_BASENAMES = ("cover", "folder", "front", "album", "artwork")
ARTWORK_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp", ".bmp", ".gif")


def is_supported_audio_file(path: Path) -> bool:
    """Known audio suffix, or a name the mimetypes table maps to `audio/*`."""
    if path.suffix.lower() in AUDIO_EXTENSIONS:
        return True
    mime_type = mimetypes.guess_type(path.name)[0] or ""
    return mime_type.startswith("audio/")


def artwork_candidates(track_path: Path) -> list[str]:
    """Sidecar image names to look for next to a track, best match first."""
    bases = [*ARTWORK_BASENAMES, track_path.stem.lower()]
    return [base + ext for base in bases for ext in ARTWORK_EXTENSIONS]
