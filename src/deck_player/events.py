"""Outbound notifications emitted by the playback core.

Front ends subscribe to these frozen dataclasses through the single
`emit_event` callable handed to `SessionController`; the core never depends on
a concrete rendering technology.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from deck_player.errors import ErrorKind, NoticeLevel
    from deck_player.services.now_playing import NowPlayingMetadata
    from deck_player.services.playback_engine import PlaybackStatus
    from deck_player.services.session_controller import PlayerView
    from deck_player.services.track_registry import Track


@dataclass(frozen=True)
class PlaybackStatusChanged:
    """Engine moved between idle/loading/playing/paused/ended/error."""

    status: PlaybackStatus
    track_id: str | None


@dataclass(frozen=True)
class ProgressUpdated:
    """Throttled progress sample; `preview` marks drag-seek feedback."""

    position_s: float
    duration_s: float
    fraction: float
    preview: bool = False


@dataclass(frozen=True)
class TrackLoaded:
    """A track was attached to the audio primitive (load requested)."""

    track: Track
    index: int


@dataclass(frozen=True)
class DurationResolved:
    """The primitive reported the real duration of the loaded track."""

    track_id: str
    duration_s: float


@dataclass(frozen=True)
class TrackEnded:
    """The current track reached its natural end."""

    track_id: str


@dataclass(frozen=True)
class PlaylistChanged:
    track_count: int
    total_duration_s: float


@dataclass(frozen=True)
class NowPlayingChanged:
    """Payload for OS-level now-playing integrations."""

    metadata: NowPlayingMetadata | None
    playing: bool


@dataclass(frozen=True)
class PlayerNotice:
    """User-facing toast; `kind` names the error class when one applies."""

    level: NoticeLevel
    message: str
    kind: ErrorKind | None = None


@dataclass(frozen=True)
class SessionChanged:
    """Fresh derived view after an intent or engine event was applied."""

    view: PlayerView
