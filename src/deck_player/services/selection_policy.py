"""Next/previous track selection and natural end-of-track policy.

Shuffle is plain random selection: every step picks a uniformly random index,
so immediate repeats are possible and there is no full-cycle guarantee.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Literal

from deck_player.runtime_config import RepeatMode

Direction = Literal["forward", "backward"]
EndAction = Literal["replay", "advance", "stop"]

_default_random = random.Random()


@dataclass(frozen=True)
class TrackEndAction:
    """What the controller should do when the current track ends."""

    action: EndAction
    index: int


def next_index(
    length: int,
    current_index: int,
    *,
    shuffle: bool,
    direction: Direction,
    rng: random.Random | None = None,
) -> int:
    """Return the index to move to; `length` must be positive."""
    if length <= 0:
        raise ValueError("next_index requires a non-empty playlist")
    if shuffle:
        return (rng or _default_random).randrange(length)
    if direction == "forward":
        return (current_index + 1) % length
    return length - 1 if current_index <= 0 else current_index - 1


def resolve_track_end(
    length: int,
    current_index: int,
    *,
    shuffle: bool,
    repeat_mode: RepeatMode,
    rng: random.Random | None = None,
) -> TrackEndAction:
    if repeat_mode == "one":
        return TrackEndAction("replay", current_index)
    if repeat_mode == "none" and not shuffle and current_index >= length - 1:
        return TrackEndAction("stop", current_index)
    return TrackEndAction(
        "advance",
        next_index(
            length, current_index, shuffle=shuffle, direction="forward", rng=rng
        ),
    )
