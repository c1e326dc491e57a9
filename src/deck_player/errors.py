"""Error taxonomy shared by the playback core.

Recoverable errors are converted into `PlayerNotice` events at the boundary
where the asynchronous operation resolves. Only `InvalidIndexError` and
`DuplicateTrackIdError` are expected to escape to callers, and both indicate a
programming mistake rather than a user-facing condition.
"""

from __future__ import annotations

from typing import Literal

ErrorKind = Literal[
    "invalid_index",
    "duplicate_id",
    "empty_playlist",
    "playback_rejected",
    "load_failure",
    "persistence_corrupt",
    "unsupported_file",
]
NoticeLevel = Literal["info", "success", "warning", "error"]


class PlayerError(Exception):
    """Base class for playback core errors."""

    kind: ErrorKind = "invalid_index"
    severity: NoticeLevel = "error"
    recoverable: bool = True


class InvalidIndexError(PlayerError, IndexError):
    """Playlist index outside `[0, length)`."""

    kind: ErrorKind = "invalid_index"
    recoverable = False

    def __init__(self, index: int, length: int) -> None:
        super().__init__(f"Index {index} out of range for playlist of {length}.")
        self.index = index
        self.length = length


class DuplicateTrackIdError(PlayerError, ValueError):
    """Track id already present in the registry."""

    kind: ErrorKind = "duplicate_id"
    recoverable = False

    def __init__(self, track_id: str) -> None:
        super().__init__(f"Track id {track_id!r} is already in the playlist.")
        self.track_id = track_id


class EmptyPlaylistError(PlayerError):
    kind: ErrorKind = "empty_playlist"
    severity: NoticeLevel = "warning"


class PlaybackRejectedError(PlayerError):
    """The audio primitive refused to start playback."""

    kind: ErrorKind = "playback_rejected"


class LoadFailureError(PlayerError):
    """The audio primitive could not open or decode a resource."""

    kind: ErrorKind = "load_failure"


class PersistenceCorruptError(PlayerError):
    kind: ErrorKind = "persistence_corrupt"
    severity: NoticeLevel = "warning"


class UnsupportedFileError(PlayerError):
    """A file offered to the playlist is not playable audio."""

    kind: ErrorKind = "unsupported_file"

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


def format_user_error(
    *, what_failed: str, likely_cause: str, next_step: str, detail: str | None = None
) -> str:
    """Render the three-part user-facing error message."""
    message = f"{what_failed}\nLikely cause: {likely_cause}\nNext step: {next_step}"
    if detail:
        message = f"{message}\nDetails: {detail}"
    return message
