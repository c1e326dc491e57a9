"""VLC audio primitive using python-vlc."""

from __future__ import annotations

import asyncio
import contextlib
import math
import queue
import threading
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any, cast

from deck_player.errors import LoadFailureError, PlaybackRejectedError

from .audio_primitive import (
    Ended,
    Loaded,
    PrimitiveEvent,
    PrimitiveEventHandler,
    PrimitiveFailed,
    TimeUpdate,
)


@dataclass
class _Command:
    name: str
    args: tuple[Any, ...]
    future: asyncio.Future[Any] | None


@dataclass
class _Media:
    token: int
    location: str
    loaded: bool = False
    ended: bool = False
    position_ms: int = -1
    load_ticks: int = 0


class VlcAudioPrimitive:
    """Audio primitive backed by a dedicated libVLC thread.

    Commands are queued to the thread and awaited through loop futures; events
    are marshalled back with `run_coroutine_threadsafe`, tagged with the token
    of the load they belong to.
    """

    def __init__(self, *, poll_interval_ms: int = 100, load_timeout_s: float = 10.0):
        self._poll_interval = poll_interval_ms / 1000
        self._load_timeout_ticks = max(1, int(load_timeout_s / self._poll_interval))
        self._handler: PrimitiveEventHandler | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: queue.Queue[_Command] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._media: _Media | None = None
        self._current_time = 0.0
        self._duration = math.nan

    def set_event_handler(self, handler: PrimitiveEventHandler) -> None:
        self._handler = handler

    @property
    def current_time(self) -> float:
        return self._current_time

    @property
    def duration(self) -> float:
        return self._duration

    async def start(self) -> None:
        if self._thread is not None:
            return
        loop = asyncio.get_running_loop()
        self._loop = loop
        ready: asyncio.Future[None] = loop.create_future()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, args=(ready,), name="deck-player-vlc", daemon=True
        )
        self._thread.start()
        await ready

    async def shutdown(self) -> None:
        thread, self._thread = self._thread, None
        if thread is None:
            return
        self._stop_event.set()
        self._queue.put(_Command("wake", (), None))
        thread.join(timeout=2.0)

    async def load(self, location: str, token: int) -> None:
        await self._submit("load", location, token)

    async def unload(self) -> None:
        await self._submit("unload")

    async def play(self) -> None:
        await self._submit("play")

    async def pause(self) -> None:
        await self._submit("pause")

    async def set_current_time(self, seconds: float) -> None:
        await self._submit("seek", seconds)

    async def set_volume(self, volume: int) -> None:
        await self._submit("set_volume", volume)

    async def _submit(self, name: str, *args: Any) -> Any:
        if self._loop is None:
            raise RuntimeError("VLC primitive not started.")
        done: asyncio.Future[Any] = self._loop.create_future()
        self._queue.put(_Command(name, args, done))
        return await done

    def _run(self, ready: asyncio.Future[None]) -> None:
        try:
            import vlc

            instance = vlc.Instance()
            player = instance.media_player_new()
        except Exception as exc:  # pragma: no cover - depends on VLC install
            message = f"VLC backend unavailable; install VLC/libVLC. ({exc})"
            self._notify_future_exception(ready, RuntimeError(message))
            return

        self._notify_future_result(ready, None)
        while not self._stop_event.is_set():
            with contextlib.suppress(queue.Empty):
                cmd = self._queue.get(timeout=self._poll_interval)
                if cmd.name != "wake":
                    self._execute(cmd, instance, player)
            self._poll(player)
        player.stop()

    def _execute(self, cmd: _Command, instance: Any, player: Any) -> None:
        try:
            result = self._handle_command(cmd, instance, player)
        except Exception as exc:
            self._notify_future_exception(cmd.future, exc)
        else:
            self._notify_future_result(cmd.future, result)

    def _poll(self, player: Any) -> None:
        media = self._media
        if media is None:
            return
        state = _state_name(player)
        if state == "error":
            if not media.ended:
                media.ended = True
                self._emit_event(
                    PrimitiveFailed(media.token, f"libVLC cannot play {media.location}")
                )
            return
        if not media.loaded:
            length_ms = player.get_media().get_duration() if player.get_media() else -1
            media.load_ticks += 1
            if length_ms > 0 or media.load_ticks >= self._load_timeout_ticks:
                media.loaded = True
                self._duration = length_ms / 1000 if length_ms > 0 else math.nan
                self._emit_event(Loaded(media.token, self._duration))
            return
        if state == "ended" and not media.ended:
            media.ended = True
            media.position_ms = -1
            self._current_time = self._duration if _finite(self._duration) else 0.0
            self._emit_event(Ended(media.token))
            return
        if state in {"playing", "paused"}:
            pos = max(player.get_time(), 0)
            if pos != media.position_ms:
                media.position_ms = pos
                self._current_time = pos / 1000
                self._emit_event(
                    TimeUpdate(media.token, self._current_time, self._duration)
                )

    def _handle_command(self, cmd: _Command, instance: Any, player: Any) -> Any:
        handler = getattr(self, f"_cmd_{cmd.name}", None)
        if handler is None:
            raise ValueError(f"Unknown command {cmd.name}")
        return handler(instance, player, *cmd.args)

    def _cmd_load(self, instance: Any, player: Any, location: str, token: int) -> None:
        media = instance.media_new_path(location)
        if media is None:
            raise LoadFailureError(f"libVLC could not open {location}")
        player.set_media(media)
        media.parse_with_options(0, 0)
        self._media = _Media(token=token, location=location)
        self._reset_clock()

    def _cmd_unload(self, instance: Any, player: Any) -> None:
        player.stop()
        self._media = None
        self._reset_clock()

    def _cmd_play(self, instance: Any, player: Any) -> None:
        media = self._media
        if media is None or not media.loaded:
            raise PlaybackRejectedError("No media is ready for playback.")
        resume_ms = -1
        if media.ended:
            # libVLC will not replay an ended media without a stop first.
            player.stop()
            media.ended = False
            resume_ms = media.position_ms
        if player.play() == -1:
            raise PlaybackRejectedError(f"libVLC refused to play {media.location}")
        if resume_ms > 0:
            player.set_time(resume_ms)

    def _cmd_pause(self, instance: Any, player: Any) -> None:
        player.set_pause(1)

    def _cmd_seek(self, instance: Any, player: Any, seconds: float) -> None:
        position_ms = int(seconds * 1000)
        media = self._media
        # An ended player ignores set_time; the position is applied on replay.
        if media is None or not media.ended:
            player.set_time(position_ms)
        self._current_time = float(seconds)
        if media is not None:
            media.position_ms = position_ms
            self._emit_event(
                TimeUpdate(media.token, self._current_time, self._duration)
            )

    def _cmd_set_volume(self, instance: Any, player: Any, volume: int) -> None:
        player.audio_set_volume(int(volume))

    def _reset_clock(self) -> None:
        self._current_time = 0.0
        self._duration = math.nan

    def _emit_event(self, event: PrimitiveEvent) -> None:
        if self._handler is None or self._loop is None:
            return
        coro = self._handler(event)
        asyncio.run_coroutine_threadsafe(
            cast(Coroutine[Any, Any, None], coro), self._loop
        )

    def _notify_future_result(
        self, future: asyncio.Future[Any] | None, value: Any
    ) -> None:
        if future is None or self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._resolve_future_result, future, value)

    def _notify_future_exception(
        self, future: asyncio.Future[Any] | None, exc: Exception
    ) -> None:
        if future is None or self._loop is None:
            return
        self._loop.call_soon_threadsafe(
            self._resolve_future_exception, future, exc
        )

    @staticmethod
    def _resolve_future_result(future: asyncio.Future[Any], value: Any) -> None:
        if not future.done():
            future.set_result(value)

    @staticmethod
    def _resolve_future_exception(
        future: asyncio.Future[Any], exc: Exception
    ) -> None:
        if not future.done():
            future.set_exception(exc)


def _state_name(player: Any) -> str:
    try:
        state = player.get_state()
    except Exception:
        return "error"
    return str(getattr(state, "name", "")).lower()


def _finite(value: float) -> bool:
    return math.isfinite(value) and value > 0
