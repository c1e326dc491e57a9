"""Audio primitive contract and event payloads.

`PlaybackEngine` depends on this protocol to stay backend-agnostic. Concrete
implementations (fake/VLC) translate engine-specific behavior into these
commands and events. Every event carries the `token` of the load it belongs
to so superseded loads can be recognized and ignored.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class PrimitiveEvent:
    """Marker base type for primitive-originated events."""

    token: int


@dataclass(frozen=True)
class Loaded(PrimitiveEvent):
    """Media is ready; `duration_s` may be NaN/inf when the stream is unknown."""

    duration_s: float


@dataclass(frozen=True)
class TimeUpdate(PrimitiveEvent):
    position_s: float
    duration_s: float


@dataclass(frozen=True)
class Ended(PrimitiveEvent):
    """Playback reached the natural end of the media."""

    pass


@dataclass(frozen=True)
class PrimitiveFailed(PrimitiveEvent):
    """Open/decode failure reported asynchronously."""

    message: str


PrimitiveEventHandler = Callable[[PrimitiveEvent], Awaitable[None]]


class AudioPrimitive(Protocol):
    """Single-source decode/output primitive consumed by `PlaybackEngine`.

    `play` raises `PlaybackRejectedError` when playback is refused; `load`
    raises `LoadFailureError` when the location cannot be attached at all.
    """

    def set_event_handler(self, handler: PrimitiveEventHandler) -> None: ...

    async def start(self) -> None: ...

    async def shutdown(self) -> None: ...

    async def load(self, location: str, token: int) -> None: ...

    async def unload(self) -> None: ...

    async def play(self) -> None: ...

    async def pause(self) -> None: ...

    async def set_current_time(self, seconds: float) -> None: ...

    async def set_volume(self, volume: int) -> None: ...

    @property
    def current_time(self) -> float: ...

    @property
    def duration(self) -> float: ...
