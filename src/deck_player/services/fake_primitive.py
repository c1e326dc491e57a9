"""Fake audio primitive for deterministic testing and the `fake` backend."""

from __future__ import annotations

import asyncio
import math
from contextlib import suppress
from dataclasses import dataclass

from deck_player.errors import PlaybackRejectedError

from .audio_primitive import (
    Ended,
    Loaded,
    PrimitiveEvent,
    PrimitiveEventHandler,
    PrimitiveFailed,
    TimeUpdate,
)


@dataclass
class _MediaState:
    location: str | None = None
    token: int = 0
    ready: bool = False
    playing: bool = False
    position_s: float = 0.0
    duration_s: float = math.nan
    volume: int = 100


class FakeAudioPrimitive:
    """In-memory primitive that simulates loading and playback progress.

    With `load_delay_s=None` loads stay pending until `complete_load` or
    `fail_load` is called; with `tick_interval_s=None` time only moves through
    `advance`/`finish`. Every command is appended to `calls`.
    """

    def __init__(
        self,
        *,
        durations: dict[str, float] | None = None,
        default_duration_s: float = 180.0,
        load_delay_s: float | None = 0.0,
        tick_interval_s: float | None = None,
        failing_locations: set[str] | None = None,
        rejecting_locations: set[str] | None = None,
    ) -> None:
        self._durations = dict(durations or {})
        self._default_duration_s = default_duration_s
        self._load_delay_s = load_delay_s
        self._tick_interval_s = tick_interval_s
        self.failing_locations = set(failing_locations or ())
        self.rejecting_locations = set(rejecting_locations or ())
        self._state = _MediaState()
        self._pending: dict[int, str] = {}
        self._handler: PrimitiveEventHandler | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._ticker: asyncio.Task[None] | None = None
        self.calls: list[str] = []

    def set_event_handler(self, handler: PrimitiveEventHandler) -> None:
        self._handler = handler

    async def start(self) -> None:
        if self._ticker is not None or self._tick_interval_s is None:
            return
        self._ticker = asyncio.create_task(self._ticker_loop(self._tick_interval_s))

    async def shutdown(self) -> None:
        tasks = list(self._tasks)
        if self._ticker is not None:
            tasks.append(self._ticker)
            self._ticker = None
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task
        self._tasks.clear()

    @property
    def current_time(self) -> float:
        return self._state.position_s

    @property
    def duration(self) -> float:
        return self._state.duration_s

    @property
    def volume(self) -> int:
        return self._state.volume

    @property
    def location(self) -> str | None:
        return self._state.location

    @property
    def is_playing(self) -> bool:
        return self._state.playing

    @property
    def pending_tokens(self) -> list[int]:
        return sorted(self._pending)

    async def load(self, location: str, token: int) -> None:
        self.calls.append(f"load:{location}")
        self._state = _MediaState(
            location=location, token=token, volume=self._state.volume
        )
        self._pending[token] = location
        if self._load_delay_s is not None:
            task = asyncio.create_task(
                self._complete_later(token, self._load_delay_s)
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def unload(self) -> None:
        self.calls.append("unload")
        self._state = _MediaState(volume=self._state.volume)

    async def play(self) -> None:
        self.calls.append("play")
        location = self._state.location
        if location is None or not self._state.ready:
            raise PlaybackRejectedError("No media is ready for playback.")
        if location in self.rejecting_locations:
            raise PlaybackRejectedError(f"Playback of {location} was refused.")
        if self._state.position_s >= self._state.duration_s:
            self._state.position_s = 0.0
        self._state.playing = True

    async def pause(self) -> None:
        self.calls.append("pause")
        self._state.playing = False

    async def set_current_time(self, seconds: float) -> None:
        self.calls.append(f"seek:{seconds:g}")
        if not self._state.ready:
            return
        self._state.position_s = max(0.0, min(seconds, self._state.duration_s))
        state = self._state
        await self._emit(TimeUpdate(state.token, state.position_s, state.duration_s))

    async def set_volume(self, volume: int) -> None:
        self._state.volume = max(0, min(int(volume), 100))

    async def complete_load(
        self, token: int | None = None, *, duration_s: float | None = None
    ) -> None:
        """Resolve a pending load (latest by default) as a real primitive would."""
        token = self._resolve_token(token)
        location = self._pending.pop(token)
        if location in self.failing_locations:
            await self._emit(PrimitiveFailed(token, f"Cannot decode {location}"))
            return
        resolved = (
            duration_s
            if duration_s is not None
            else self._durations.get(location, self._default_duration_s)
        )
        if token == self._state.token:
            self._state.ready = True
            self._state.duration_s = resolved
            self._state.position_s = 0.0
        await self._emit(Loaded(token, resolved))

    async def fail_load(
        self, token: int | None = None, message: str = "decode error"
    ) -> None:
        token = self._resolve_token(token)
        self._pending.pop(token)
        await self._emit(PrimitiveFailed(token, message))

    async def advance(self, seconds: float) -> None:
        """Move playback forward, emitting `TimeUpdate` and `Ended` at the end."""
        state = self._state
        if not state.ready or not state.playing:
            return
        state.position_s = min(state.position_s + seconds, state.duration_s)
        await self._emit(TimeUpdate(state.token, state.position_s, state.duration_s))
        if state.position_s >= state.duration_s:
            state.playing = False
            await self._emit(Ended(state.token))

    async def finish(self) -> None:
        state = self._state
        if not state.ready:
            return
        await self.advance(max(0.0, state.duration_s - state.position_s))

    def _resolve_token(self, token: int | None) -> int:
        if token is None:
            if not self._pending:
                raise LookupError("No pending load to resolve")
            return max(self._pending)
        if token not in self._pending:
            raise LookupError(f"No pending load for token {token}")
        return token

    async def _complete_later(self, token: int, delay_s: float) -> None:
        await asyncio.sleep(delay_s)
        if token in self._pending:
            await self.complete_load(token)

    async def _ticker_loop(self, interval_s: float) -> None:
        try:
            while True:
                await asyncio.sleep(interval_s)
                await self.advance(interval_s)
        except asyncio.CancelledError:
            pass

    async def _emit(self, event: PrimitiveEvent) -> None:
        if self._handler is None:
            return
        await self._handler(event)
