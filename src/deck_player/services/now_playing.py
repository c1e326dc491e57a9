"""OS "now playing" integration contract.

Sinks receive track metadata on every load and play/pause transition. Inbound
media-key commands are translated 1:1 into session controller intents by
`dispatch_now_playing_command`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Protocol, get_args

if TYPE_CHECKING:
    from deck_player.services.session_controller import SessionController

logger = logging.getLogger(__name__)

NowPlayingCommand = Literal[
    "play", "pause", "previous", "next", "seekBack", "seekForward"
]
NOW_PLAYING_COMMANDS: tuple[str, ...] = get_args(NowPlayingCommand)


@dataclass(frozen=True)
class NowPlayingMetadata:
    title: str
    artist: str
    album: str
    artwork_ref: str | None = None


class NowPlayingSink(Protocol):
    def update(self, metadata: NowPlayingMetadata | None, *, playing: bool) -> None:
        """Publish metadata; `None` clears the now-playing entry."""


class LoggingNowPlayingSink:
    """Sink that records updates in the log; used when no OS bridge exists."""

    def __init__(self) -> None:
        self.last: NowPlayingMetadata | None = None
        self.playing = False

    def update(self, metadata: NowPlayingMetadata | None, *, playing: bool) -> None:
        self.last = metadata
        self.playing = playing
        if metadata is None:
            logger.debug("Now playing cleared")
            return
        logger.debug(
            "Now playing: %s - %s (%s)",
            metadata.artist,
            metadata.title,
            "playing" if playing else "paused",
        )


async def dispatch_now_playing_command(
    controller: SessionController, command: str
) -> bool:
    """Route an inbound media command; unknown commands return `False`."""
    if command == "play":
        await controller.play()
    elif command == "pause":
        await controller.pause()
    elif command == "previous":
        await controller.previous()
    elif command == "next":
        await controller.next()
    elif command == "seekBack":
        await controller.seek_by(-controller.config.seek_step_s)
    elif command == "seekForward":
        await controller.seek_by(controller.config.seek_step_s)
    else:
        logger.warning("Ignoring unknown now-playing command %r", command)
        return False
    return True
