"""Session orchestration between user intents and the playback engine.

`SessionController` is the public API of the player core. It owns the current
selection, shuffle/repeat/volume configuration and the two-phase clear flow;
it reacts to engine events (duration resolved, track ended) and persists the
session after every mutating intent.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Iterable
from dataclasses import dataclass
from itertools import count
from pathlib import Path
from typing import Callable, Literal

from deck_player import paths
from deck_player.errors import (
    EmptyPlaylistError,
    ErrorKind,
    NoticeLevel,
    UnsupportedFileError,
    format_user_error,
)
from deck_player.events import (
    DurationResolved,
    NowPlayingChanged,
    PlaybackStatusChanged,
    PlayerNotice,
    PlaylistChanged,
    SessionChanged,
    TrackEnded,
    TrackLoaded,
)
from deck_player.playlist_export import (
    build_playlist_export,
    export_file_name,
    write_playlist_export,
)
from deck_player.runtime_config import REPEAT_MODES, PlayerConfig, RepeatMode
from deck_player.services.audio_primitive import AudioPrimitive
from deck_player.services.metadata_service import (
    MetadataProbe,
    TrackMetadata,
    expand_paths,
)
from deck_player.services.now_playing import NowPlayingMetadata, NowPlayingSink
from deck_player.services.playback_engine import PlaybackEngine, PlaybackStatus
from deck_player.services.resource_pool import ResourcePool
from deck_player.services.selection_policy import next_index, resolve_track_end
from deck_player.services.track_registry import Track, TrackRegistry, new_track_id
from deck_player.state_store import (
    PersistedTrack,
    SessionSnapshot,
    SessionStore,
    clamp_volume,
    drop_missing_tracks,
)
from deck_player.utils.async_utils import run_blocking
from deck_player.utils.time_format import format_file_size, format_time_s

logger = logging.getLogger(__name__)

SessionPhase = Literal["no_playlist", "track_selected", "playing", "paused"]
REPEAT_CYCLE: dict[RepeatMode, RepeatMode] = {
    "none": "all",
    "all": "one",
    "one": "none",
}


@dataclass(frozen=True)
class PlayerView:
    """Renderer-agnostic snapshot of everything a front end displays."""

    phase: SessionPhase
    status: PlaybackStatus
    current_index: int
    current_track: Track | None
    position_s: float
    duration_s: float
    progress: float
    volume: int
    muted: bool
    shuffle: bool
    repeat_mode: RepeatMode
    track_count: int
    total_duration_s: float


@dataclass(frozen=True)
class ClearToken:
    """Confirmation handle returned by `request_clear`."""

    serial: int
    revision: int
    track_count: int


@dataclass(frozen=True)
class AddTracksResult:
    added: int
    failed: int


@dataclass(frozen=True)
class TrackDetails:
    title: str
    artist: str
    album: str
    duration: str
    file_size: str
    location: str


class SessionController:
    """Owns playlist selection and session configuration; emits events."""

    def __init__(
        self,
        *,
        primitive: AudioPrimitive,
        probe: MetadataProbe,
        store: SessionStore,
        emit_event: Callable[[object], Awaitable[None]],
        config: PlayerConfig | None = None,
        now_playing: NowPlayingSink | None = None,
        rng: random.Random | None = None,
        registry: TrackRegistry | None = None,
        pool: ResourcePool | None = None,
        path_exists: Callable[[str], bool] | None = None,
    ) -> None:
        self.config = config or PlayerConfig()
        self.registry = registry or TrackRegistry()
        self.pool = pool or ResourcePool()
        self._probe = probe
        self._store = store
        self._emit_event = emit_event
        self._now_playing = now_playing
        self._rng = rng or random.Random()
        self._path_exists = path_exists or (lambda value: Path(value).is_file())
        self.engine = PlaybackEngine(
            primitive=primitive,
            emit_event=self._on_engine_event,
            resolve_location=self.pool.resolve,
            progress_interval_s=self.config.progress_interval_s,
        )
        self._current_index = -1
        self._shuffle = False
        self._repeat_mode: RepeatMode = "none"
        self._volume = clamp_volume(self.config.default_volume)
        self._pre_mute_volume = self._volume
        self._muted = False
        self._restore_position_s = 0.0
        self._clear_serials = count(1)
        self._clear_token: ClearToken | None = None

    # -- derived view -----------------------------------------------------

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def current_track(self) -> Track | None:
        if self._current_index < 0:
            return None
        return self.registry.get(self._current_index)

    @property
    def view(self) -> PlayerView:
        state = self.engine.state
        if self._current_index < 0:
            phase: SessionPhase = "no_playlist"
        elif self.engine.playback_intended:
            phase = "playing"
        elif state.status in {"paused", "ended"}:
            phase = "paused"
        else:
            phase = "track_selected"
        return PlayerView(
            phase=phase,
            status=state.status,
            current_index=self._current_index,
            current_track=self.current_track,
            position_s=state.position_s,
            duration_s=state.duration_s,
            progress=state.fraction,
            volume=self._volume,
            muted=self._muted,
            shuffle=self._shuffle,
            repeat_mode=self._repeat_mode,
            track_count=self.registry.total_count(),
            total_duration_s=self.registry.total_duration_s(),
        )

    # -- lifecycle --------------------------------------------------------

    async def restore(self) -> None:
        """Start the engine and rebuild the playlist from the saved session."""
        await self.engine.start()
        snapshot, notice = self._store.load_with_notice()
        if notice:
            await self._notify("error", notice, kind="persistence_corrupt")
        snapshot, dropped = drop_missing_tracks(snapshot, self._path_exists)
        for entry in snapshot.playlist:
            self.registry.add(
                Track(
                    id=entry.id,
                    title=entry.title,
                    artist=entry.artist,
                    album=entry.album,
                    source_ref=self.pool.acquire(entry.path),
                    location=entry.path,
                    artwork_ref=entry.artwork_ref,
                    duration_s=entry.duration_s,
                    file_size_bytes=entry.file_size_bytes,
                )
            )
        self._shuffle = snapshot.shuffle
        self._repeat_mode = snapshot.repeat_mode
        self._volume = snapshot.volume
        self._muted = snapshot.muted
        self._pre_mute_volume = snapshot.pre_mute_volume
        await self.engine.set_volume(self._volume)
        if dropped:
            await self._notify(
                "warning",
                f"{dropped} saved track(s) could not be found and were removed.",
            )
        await self._emit_event(self._playlist_changed())
        if snapshot.current_index >= 0:
            await self._load_index(
                snapshot.current_index, autoplay=False, start_s=snapshot.position_s
            )
        await self._emit_session()
        logger.info(
            "Restored session with %d track(s), index %d",
            len(self.registry),
            self._current_index,
        )

    async def shutdown(self) -> None:
        """Persist the final position and release the primitive."""
        await self._save()
        await self.engine.shutdown()

    # -- transport intents ------------------------------------------------

    async def toggle_play_pause(self) -> None:
        if not await self._require_tracks():
            return
        if self.engine.playback_intended:
            await self.pause()
        else:
            await self.play()

    async def play(self) -> bool:
        if not await self._require_tracks():
            return False
        if self._current_index < 0:
            self._current_index = 0
        if self.engine.state.status in {"idle", "error"}:
            await self._load_index(self._current_index, autoplay=True)
            started = True
        else:
            started = await self.engine.play()
        await self._emit_session()
        return started

    async def pause(self) -> bool:
        paused = await self.engine.pause()
        if paused:
            await self._emit_session()
        return paused

    async def previous(self) -> bool:
        return await self._step("backward")

    async def next(self) -> bool:
        return await self._step("forward")

    async def select_track(self, index: int, *, play: bool | None = None) -> None:
        """Jump to `index`; `play=None` keeps the current play/pause status."""
        self.registry.get(index)
        autoplay = self.engine.playback_intended if play is None else play
        await self._load_index(index, autoplay=autoplay)
        await self._save()
        await self._emit_session()

    async def seek(self, target_s: float) -> bool:
        return await self._committed_seek(await self.engine.seek(target_s))

    async def seek_by(self, delta_s: float) -> bool:
        return await self._committed_seek(await self.engine.seek_by(delta_s))

    async def seek_ratio(self, fraction: float) -> bool:
        return await self._committed_seek(await self.engine.seek_ratio(fraction))

    def begin_seek_gesture(self) -> None:
        self.engine.begin_seek_gesture()

    async def update_seek_gesture(self, position_s: float) -> bool:
        return await self.engine.update_seek_gesture(position_s)

    async def end_seek_gesture(self) -> bool:
        return await self._committed_seek(await self.engine.end_seek_gesture())

    async def _committed_seek(self, accepted: bool) -> bool:
        if accepted:
            await self._save()
            await self._emit_session()
        return accepted

    # -- configuration intents --------------------------------------------

    async def toggle_shuffle(self) -> bool:
        self._shuffle = not self._shuffle
        await self._save()
        await self._notify(
            "success", f"Shuffle {'enabled' if self._shuffle else 'disabled'}"
        )
        await self._emit_session()
        return self._shuffle

    async def toggle_repeat(self) -> RepeatMode:
        self._repeat_mode = REPEAT_CYCLE[self._repeat_mode]
        await self._save()
        await self._notify("success", f"Repeat: {self._repeat_mode}")
        await self._emit_session()
        return self._repeat_mode

    async def set_repeat_mode(self, mode: RepeatMode) -> None:
        if mode not in REPEAT_MODES:
            raise ValueError(f"Unknown repeat mode {mode!r}")
        self._repeat_mode = mode
        await self._save()
        await self._emit_session()

    async def set_volume(self, volume: float) -> int:
        """Clamp into [0, 100]; a positive volume while muted unmutes."""
        self._volume = clamp_volume(volume, self._volume)
        if self._muted:
            if self._volume > 0:
                self._muted = False
            else:
                self._pre_mute_volume = 0
        await self.engine.set_volume(self._volume)
        await self._save()
        await self._emit_session()
        return self._volume

    async def adjust_volume(self, delta: int) -> int:
        base = self._pre_mute_volume if self._muted else self._volume
        return await self.set_volume(base + delta)

    async def toggle_mute(self) -> bool:
        if self._muted:
            self._muted = False
            self._volume = self._pre_mute_volume
        else:
            self._pre_mute_volume = self._volume
            self._volume = 0
            self._muted = True
        await self.engine.set_volume(self._volume)
        await self._save()
        await self._emit_session()
        return self._muted

    # -- playlist intents -------------------------------------------------

    async def add_tracks(self, files: Iterable[Path]) -> AddTracksResult:
        """Probe and append files; unplayable files are skipped and counted."""
        candidates = await run_blocking(expand_paths, list(files))
        results = await asyncio.gather(
            *(self._probe.probe(path) for path in candidates), return_exceptions=True
        )
        was_empty = len(self.registry) == 0
        added = 0
        failed = 0
        for path, result in zip(candidates, results):
            if isinstance(result, UnsupportedFileError):
                failed += 1
                await self._notify(
                    "error",
                    f"Error processing {path.name}: {result.reason}",
                    kind=result.kind,
                )
                continue
            if isinstance(result, BaseException):
                raise result
            self.registry.add(self._track_from_metadata(path, result))
            added += 1
        if added:
            plural = "s" if added > 1 else ""
            await self._notify("success", f"Added {added} track{plural} to playlist")
            await self._emit_event(self._playlist_changed())
            if was_empty:
                await self._load_index(0, autoplay=False)
            await self._save()
            await self._emit_session()
        elif failed:
            await self._notify(
                "warning",
                format_user_error(
                    what_failed="No tracks were added.",
                    likely_cause="None of the selected files is playable audio.",
                    next_step="Choose MP3, FLAC, OGG, WAV, or M4A files.",
                ),
                kind="unsupported_file",
            )
        return AddTracksResult(added=added, failed=failed)

    async def remove_track(self, index: int) -> Track:
        """Remove one entry and rebase the current selection."""
        current = self._current_index
        removed = self.registry.remove_at(index)
        if index == current:
            if len(self.registry) == 0:
                self._current_index = -1
                await self.engine.reset()
                await self._publish_now_playing()
            else:
                await self._load_index(min(current, len(self.registry) - 1))
        elif index < current:
            self._current_index = current - 1
        self.pool.release(removed.source_ref)
        await self._notify("success", "Track removed from playlist")
        await self._emit_event(self._playlist_changed())
        await self._save()
        await self._emit_session()
        return removed

    async def request_clear(self) -> ClearToken | None:
        """First phase of clearing; the caller confirms with the token."""
        if len(self.registry) == 0:
            await self._notify(
                "warning", "Playlist is already empty", kind="empty_playlist"
            )
            return None
        token = ClearToken(
            serial=next(self._clear_serials),
            revision=self.registry.revision,
            track_count=len(self.registry),
        )
        self._clear_token = token
        return token

    async def confirm_clear(self, token: ClearToken) -> bool:
        if token != self._clear_token or token.revision != self.registry.revision:
            await self._notify(
                "warning",
                "Playlist changed before the clear was confirmed; nothing removed.",
            )
            return False
        self._clear_token = None
        removed = self.registry.clear()
        self._current_index = -1
        await self.engine.reset()
        for track in removed:
            self.pool.release(track.source_ref)
        await self._publish_now_playing()
        await self._notify("success", "Playlist cleared")
        await self._emit_event(self._playlist_changed())
        await self._save()
        await self._emit_session()
        return True

    def cancel_clear(self, token: ClearToken) -> None:
        if token == self._clear_token:
            self._clear_token = None

    async def export_playlist(
        self, path: Path | None = None, *, name: str | None = None
    ) -> Path | None:
        """Write the metadata-only playlist document; `None` when nothing saved."""
        try:
            document = build_playlist_export(self.registry.tracks(), name=name)
        except EmptyPlaylistError:
            await self._notify("warning", "No tracks to save", kind="empty_playlist")
            return None
        target = path or paths.export_dir() / export_file_name(document["name"])
        try:
            await run_blocking(write_playlist_export, target, document)
        except OSError as exc:
            await self._notify(
                "error",
                format_user_error(
                    what_failed="Error saving playlist.",
                    likely_cause="The export location is not writable.",
                    next_step=f"Check permissions for '{target.parent}'.",
                    detail=str(exc),
                ),
            )
            return None
        await self._notify("success", "Playlist saved successfully")
        return target

    def track_details(self, index: int) -> TrackDetails:
        track = self.registry.get(index)
        return TrackDetails(
            title=track.title,
            artist=track.artist,
            album=track.album,
            duration=format_time_s(track.duration_s),
            file_size=format_file_size(track.file_size_bytes),
            location=track.location,
        )

    # -- engine callbacks -------------------------------------------------

    async def on_track_ended(self) -> None:
        """Apply the repeat policy after a natural end of track."""
        length = len(self.registry)
        if length == 0 or self._current_index < 0:
            return
        decision = resolve_track_end(
            length,
            self._current_index,
            shuffle=self._shuffle,
            repeat_mode=self._repeat_mode,
            rng=self._rng,
        )
        logger.debug("Track ended; %s -> %d", decision.action, decision.index)
        if decision.action == "replay":
            await self.engine.restart()
        elif decision.action == "advance":
            await self._load_index(decision.index, autoplay=True)
        else:
            await self.engine.stop()
        await self._save()
        await self._emit_session()

    async def _on_engine_event(self, event: object) -> None:
        if isinstance(event, DurationResolved):
            if self.registry.update_duration(event.track_id, event.duration_s):
                await self._emit_event(self._playlist_changed())
                await self._save()
        await self._emit_event(event)
        if isinstance(event, PlaybackStatusChanged):
            if event.status in {"playing", "paused"}:
                await self._publish_now_playing()
            await self._emit_session()
        elif isinstance(event, TrackEnded):
            await self.on_track_ended()

    # -- helpers ----------------------------------------------------------

    async def _step(self, direction: Literal["forward", "backward"]) -> bool:
        length = len(self.registry)
        if length == 0:
            return False
        index = next_index(
            length,
            self._current_index,
            shuffle=self._shuffle,
            direction=direction,
            rng=self._rng,
        )
        await self._load_index(index, autoplay=self.engine.playback_intended)
        await self._save()
        await self._emit_session()
        return True

    async def _load_index(
        self, index: int, *, autoplay: bool = False, start_s: float = 0.0
    ) -> None:
        track = self.registry.get(index)
        self._current_index = index
        self._restore_position_s = start_s
        await self.engine.load_track(track, autoplay=autoplay, start_s=start_s)
        await self._emit_event(TrackLoaded(track, index))
        await self._publish_now_playing()

    async def _require_tracks(self) -> bool:
        if len(self.registry) > 0:
            return True
        await self._notify(
            "warning", "Please add some music to your playlist", kind="empty_playlist"
        )
        return False

    def _track_from_metadata(self, path: Path, metadata: TrackMetadata) -> Track:
        location = str(path)
        return Track(
            id=new_track_id(),
            title=metadata.title,
            artist=metadata.artist,
            album=metadata.album,
            source_ref=self.pool.acquire(location),
            location=location,
            artwork_ref=metadata.artwork_ref,
            duration_s=metadata.duration_s,
            file_size_bytes=metadata.file_size_bytes,
        )

    async def _publish_now_playing(self) -> None:
        track = self.current_track
        metadata = (
            NowPlayingMetadata(
                title=track.title,
                artist=track.artist,
                album=track.album,
                artwork_ref=track.artwork_ref,
            )
            if track is not None
            else None
        )
        playing = self.engine.playback_intended
        if self._now_playing is not None:
            self._now_playing.update(metadata, playing=playing)
        await self._emit_event(NowPlayingChanged(metadata, playing))

    def _playlist_changed(self) -> PlaylistChanged:
        return PlaylistChanged(
            track_count=self.registry.total_count(),
            total_duration_s=self.registry.total_duration_s(),
        )

    def snapshot(self) -> SessionSnapshot:
        state = self.engine.state
        position = state.position_s
        if state.status == "loading":
            position = self._restore_position_s
        current = self.current_track
        return SessionSnapshot(
            playlist=tuple(
                PersistedTrack(
                    id=track.id,
                    title=track.title,
                    artist=track.artist,
                    album=track.album,
                    path=track.location,
                    artwork_ref=track.artwork_ref,
                    duration_s=track.duration_s,
                    file_size_bytes=track.file_size_bytes,
                )
                for track in self.registry.tracks()
            ),
            current_index=self._current_index,
            current_track_id=current.id if current is not None else None,
            position_s=position if current is not None else 0.0,
            shuffle=self._shuffle,
            repeat_mode=self._repeat_mode,
            volume=self._volume,
            muted=self._muted,
            pre_mute_volume=self._pre_mute_volume,
        )

    async def _save(self) -> None:
        try:
            self._store.save(self.snapshot())
        except OSError as exc:
            await self._notify(
                "error",
                format_user_error(
                    what_failed="Error saving data.",
                    likely_cause="The state directory is not writable or is full.",
                    next_step="Check free space and permissions, then retry.",
                    detail=str(exc),
                ),
            )

    async def _notify(
        self, level: NoticeLevel, message: str, *, kind: ErrorKind | None = None
    ) -> None:
        if level == "error":
            logger.error("%s", message)
        elif level == "warning":
            logger.warning("%s", message)
        else:
            logger.info("%s", message)
        await self._emit_event(PlayerNotice(level, message, kind=kind))

    async def _emit_session(self) -> None:
        await self._emit_event(SessionChanged(self.view))

