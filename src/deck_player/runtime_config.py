"""Runtime configuration normalization helpers.

These helpers keep CLI flag and persisted-value interpretation deterministic
across entrypoints.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, cast

RepeatMode = Literal["none", "one", "all"]
REPEAT_MODES: tuple[RepeatMode, ...] = ("none", "one", "all")
BACKEND_NAMES = ("fake", "vlc")


@dataclass(frozen=True)
class PlayerConfig:
    """Tunables for the session controller and playback engine."""

    seek_step_s: float = 10.0
    volume_step: int = 10
    progress_interval_s: float = 0.1
    default_volume: int = 50


def resolve_log_level(*, verbose: bool, quiet: bool) -> str:
    """Resolve effective log level from CLI flags.

    Precedence is deterministic: --quiet overrides --verbose.
    """
    if quiet:
        return "WARNING"
    if verbose:
        return "DEBUG"
    return "INFO"


def normalize_repeat_mode(value: object) -> RepeatMode:
    """Map persisted/CLI repeat values onto `none|one|all`."""
    if not isinstance(value, str):
        return "none"
    normalized = value.strip().lower()
    if normalized == "off":
        return "none"
    if normalized in REPEAT_MODES:
        return cast(RepeatMode, normalized)
    return "none"


def resolve_backend_name(cli_backend: str | None, default: str = "vlc") -> str:
    if cli_backend in BACKEND_NAMES:
        return cli_backend
    return default if default in BACKEND_NAMES else "fake"
