"""Playback engine wrapping the single audio primitive.

`PlaybackEngine` owns the current-track handle, the fine-grained playback
status and progress sampling. Loads are tagged with a generation counter; any
primitive event carrying an older token belongs to a superseded load and is
dropped.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Awaitable
from contextlib import suppress
from dataclasses import dataclass, replace
from typing import Callable, Literal

from deck_player.errors import PlaybackRejectedError, format_user_error
from deck_player.events import (
    DurationResolved,
    PlaybackStatusChanged,
    PlayerNotice,
    ProgressUpdated,
    TrackEnded,
)
from deck_player.services.audio_primitive import (
    AudioPrimitive,
    Ended,
    Loaded,
    PrimitiveEvent,
    PrimitiveFailed,
    TimeUpdate,
)
from deck_player.services.track_registry import Track

logger = logging.getLogger(__name__)

PlaybackStatus = Literal["idle", "loading", "playing", "paused", "ended", "error"]


@dataclass(frozen=True)
class EngineState:
    """Snapshot of transport state for the currently attached track."""

    status: PlaybackStatus = "idle"
    track_id: str | None = None
    position_s: float = 0.0
    duration_s: float = 0.0
    error: str | None = None

    @property
    def fraction(self) -> float:
        if self.duration_s <= 0:
            return 0.0
        return _clamp(self.position_s / self.duration_s, 0.0, 1.0)


class PlaybackEngine:
    """Drives the audio primitive and reports transitions as events."""

    def __init__(
        self,
        *,
        primitive: AudioPrimitive,
        emit_event: Callable[[object], Awaitable[None]],
        resolve_location: Callable[[str], str],
        progress_interval_s: float = 0.1,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._primitive = primitive
        self._emit_event = emit_event
        self._resolve_location = resolve_location
        self._progress_interval_s = max(0.0, progress_interval_s)
        self._clock = clock
        self._state = EngineState()
        self._lock = asyncio.Lock()
        self._generation = 0
        self._attached = False
        self._pending_play = False
        self._pending_start_s = 0.0
        self._last_sample_s: float | None = None
        self._gesture_active = False
        self._gesture_target_s: float | None = None
        self._primitive.set_event_handler(self._handle_primitive_event)

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def seek_gesture_active(self) -> bool:
        return self._gesture_active

    @property
    def playback_intended(self) -> bool:
        """True while playing or while a load in flight will start playing."""
        status = self._state.status
        return status == "playing" or (status == "loading" and self._pending_play)

    async def start(self) -> None:
        await self._primitive.start()

    async def shutdown(self) -> None:
        """Best-effort primitive shutdown."""
        with suppress(Exception):
            await self._primitive.shutdown()

    async def load_track(
        self, track: Track, *, autoplay: bool = False, start_s: float = 0.0
    ) -> int:
        """Attach `track` and return the generation token of this load.

        Progress is zeroed immediately; the primitive reports readiness later
        through a `Loaded` event, after which `autoplay` and `start_s` apply.
        """
        async with self._lock:
            self._generation += 1
            token = self._generation
            self._pending_play = autoplay
            self._pending_start_s = max(0.0, start_s)
            self._last_sample_s = None
            self._gesture_active = False
            self._gesture_target_s = None
            self._state = EngineState(status="loading", track_id=track.id)
        await self._emit_event(ProgressUpdated(0.0, 0.0, 0.0))
        await self._emit_status()
        if self._attached:
            await self._primitive.unload()
            self._attached = False
        try:
            location = self._resolve_location(track.source_ref)
            await self._primitive.load(location, token)
        except Exception as exc:
            logger.warning("Failed to attach track %s: %s", track.id, exc)
            if token == self._generation:
                await self._fail(str(exc))
            return token
        self._attached = True
        logger.debug("Loading track %s (generation %d)", track.id, token)
        return token

    async def reset(self) -> None:
        """Detach the current handle and return to `idle` with zero progress."""
        async with self._lock:
            self._generation += 1
            self._pending_play = False
            self._pending_start_s = 0.0
            self._gesture_active = False
            self._gesture_target_s = None
            self._state = EngineState()
        if self._attached:
            with suppress(Exception):
                await self._primitive.pause()
            await self._primitive.unload()
            self._attached = False
        await self._emit_event(ProgressUpdated(0.0, 0.0, 0.0))
        await self._emit_status()

    async def play(self) -> bool:
        """Start playback; a load in flight starts playing once it completes."""
        async with self._lock:
            status = self._state.status
            if status in {"idle", "error"}:
                return False
            if status == "loading":
                self._pending_play = True
                return True
            if status == "playing":
                return True
            token = self._generation
        try:
            await self._primitive.play()
        except PlaybackRejectedError as exc:
            if token != self._generation:
                return False
            logger.warning("Playback rejected for %s: %s", self._state.track_id, exc)
            self._state = replace(self._state, status="paused")
            await self._emit_event(
                PlayerNotice(
                    "error",
                    format_user_error(
                        what_failed="Error playing audio.",
                        likely_cause="The audio output refused to start this track.",
                        next_step="Check the audio device, then press play again.",
                        detail=str(exc),
                    ),
                    kind=exc.kind,
                )
            )
            await self._emit_status()
            return False
        if token != self._generation:
            return False
        self._state = replace(self._state, status="playing")
        await self._emit_status()
        return True

    async def pause(self) -> bool:
        """Pause if a track is attached; repeated calls do not re-notify."""
        async with self._lock:
            status = self._state.status
            if status == "loading":
                self._pending_play = False
                return True
            if status not in {"playing", "ended"}:
                return False
            self._state = replace(self._state, status="paused")
        await self._primitive.pause()
        await self._emit_status()
        return True

    async def stop(self) -> bool:
        """Pause and rewind to zero, keeping the track attached."""
        if self._state.status in {"idle", "loading", "error"}:
            return False
        await self._primitive.pause()
        if _known(self._state.duration_s):
            await self._primitive.set_current_time(0.0)
        self._state = replace(self._state, status="paused", position_s=0.0)
        self._last_sample_s = self._clock()
        await self._emit_event(ProgressUpdated(0.0, self._state.duration_s, 0.0))
        await self._emit_status()
        return True

    async def restart(self) -> bool:
        """Rewind to zero and play the attached track again."""
        if self._state.status in {"idle", "loading", "error"}:
            return False
        await self._apply_seek(0.0)
        return await self.play()

    async def seek(self, target_s: float) -> bool:
        """Seek to `target_s`; suppressed while a drag gesture is active."""
        if self._gesture_active:
            return False
        return await self._apply_seek(target_s)

    async def seek_by(self, delta_s: float) -> bool:
        return await self.seek(self._state.position_s + delta_s)

    async def seek_ratio(self, fraction: float) -> bool:
        return await self.seek(_clamp(fraction, 0.0, 1.0) * self._state.duration_s)

    def begin_seek_gesture(self) -> None:
        self._gesture_active = True
        self._gesture_target_s = None

    async def update_seek_gesture(self, position_s: float) -> bool:
        duration = self._state.duration_s
        if not self._gesture_active or not _known(duration):
            return False
        target = _clamp(position_s, 0.0, duration)
        self._gesture_target_s = target
        await self._emit_event(
            ProgressUpdated(target, duration, target / duration, preview=True)
        )
        return True

    async def end_seek_gesture(self) -> bool:
        """Close the gesture window and commit the last dragged position."""
        if not self._gesture_active:
            return False
        self._gesture_active = False
        target = self._gesture_target_s
        self._gesture_target_s = None
        if target is None:
            return False
        return await self._apply_seek(target)

    async def set_volume(self, volume: int) -> None:
        await self._primitive.set_volume(volume)

    async def _apply_seek(self, target_s: float) -> bool:
        duration = self._state.duration_s
        if self._state.status in {"idle", "loading"} or not _known(duration):
            return False
        position = _clamp(target_s, 0.0, duration)
        await self._primitive.set_current_time(position)
        status = self._state.status
        if status == "ended" and position < duration:
            status = "paused"
        changed = status != self._state.status
        self._state = replace(self._state, position_s=position, status=status)
        self._last_sample_s = self._clock()
        await self._emit_event(
            ProgressUpdated(position, duration, self._state.fraction)
        )
        if changed:
            await self._emit_status()
        return True

    async def _handle_primitive_event(self, event: PrimitiveEvent) -> None:
        if event.token != self._generation:
            logger.debug(
                "Ignoring %s for superseded load %d (current %d)",
                type(event).__name__,
                event.token,
                self._generation,
            )
            return
        if isinstance(event, Loaded):
            await self._on_loaded(event)
        elif isinstance(event, TimeUpdate):
            await self._on_time_update(event)
        elif isinstance(event, Ended):
            if self._state.status == "playing":
                await self._on_ended()
            else:
                logger.debug("Ignoring end of track while %s", self._state.status)
        elif isinstance(event, PrimitiveFailed):
            await self._fail(event.message)

    async def _on_loaded(self, event: Loaded) -> None:
        track_id = self._state.track_id
        duration = event.duration_s if _known(event.duration_s) else 0.0
        self._state = replace(
            self._state, status="paused", duration_s=duration, position_s=0.0
        )
        if track_id is not None and duration > 0:
            await self._emit_event(DurationResolved(track_id, duration))
        await self._emit_event(ProgressUpdated(0.0, duration, 0.0))
        await self._emit_status()
        start_s, self._pending_start_s = self._pending_start_s, 0.0
        if start_s > 0:
            await self._apply_seek(start_s)
        if self._pending_play:
            self._pending_play = False
            await self.play()

    async def _on_time_update(self, event: TimeUpdate) -> None:
        duration = self._state.duration_s
        if _known(event.duration_s):
            duration = event.duration_s
        self._state = replace(
            self._state, position_s=max(0.0, event.position_s), duration_s=duration
        )
        if self._gesture_active or duration <= 0:
            return
        now = self._clock()
        if (
            self._last_sample_s is not None
            and now - self._last_sample_s < self._progress_interval_s
        ):
            return
        self._last_sample_s = now
        await self._emit_event(
            ProgressUpdated(self._state.position_s, duration, self._state.fraction)
        )

    async def _on_ended(self) -> None:
        track_id = self._state.track_id
        duration = self._state.duration_s
        self._state = replace(self._state, status="ended", position_s=duration)
        await self._emit_event(ProgressUpdated(duration, duration, 1.0))
        await self._emit_status()
        if track_id is not None:
            await self._emit_event(TrackEnded(track_id))

    async def _fail(self, message: str) -> None:
        self._pending_play = False
        with suppress(Exception):
            await self._primitive.pause()
        self._state = replace(
            self._state,
            status="error",
            error=format_user_error(
                what_failed="Error playing audio file.",
                likely_cause="File is missing, corrupt, or uses an unknown codec.",
                next_step="Remove the entry or pick another track.",
                detail=message,
            ),
        )
        logger.error("Load failure for track %s: %s", self._state.track_id, message)
        await self._emit_status()
        await self._emit_event(
            PlayerNotice("error", self._state.error or message, kind="load_failure")
        )

    async def _emit_status(self) -> None:
        await self._emit_event(
            PlaybackStatusChanged(self._state.status, self._state.track_id)
        )


def _known(seconds: float) -> bool:
    return math.isfinite(seconds) and seconds > 0


def _clamp(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(value, max_value))
