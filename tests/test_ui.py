"""Minimal UI tests for the Textual app."""

from __future__ import annotations

import asyncio

from deck_player.app import DeckPlayerApp
from deck_player.services.metadata_service import TrackMetadata
from deck_player.services.session_controller import TrackDetails
from deck_player.state_store import (
    SESSION_KEY,
    MemoryKeyValueStore,
    PersistedTrack,
    SessionSnapshot,
    SessionStore,
)
from deck_player.ui.modals.message import track_details_text
from deck_player.ui.playlist_pane import PlaylistPane
from deck_player.ui.status_pane import StatusPane


def _run(coro):
    return asyncio.run(coro)


class _NullProbe:
    async def probe(self, path):
        return TrackMetadata(title=path.stem)


def _store_with_tracks(tmp_path, count: int = 2) -> MemoryKeyValueStore:
    tracks = []
    for index in range(count):
        path = tmp_path / f"track{index}.mp3"
        path.write_bytes(b"")
        tracks.append(PersistedTrack(id=f"t{index}", title=path.stem, path=str(path)))
    snapshot = SessionSnapshot(
        playlist=tuple(tracks), current_index=0, current_track_id="t0", volume=60
    )
    return MemoryKeyValueStore({SESSION_KEY: snapshot.to_json()})


async def _wait_for_controller(app: DeckPlayerApp, pilot) -> None:
    for _ in range(50):
        if app.controller is not None:
            return
        await pilot.pause(0.02)
    raise AssertionError("controller was not initialized")


def test_app_mounts_without_init() -> None:
    app = DeckPlayerApp(auto_init=False)

    async def run_app() -> None:
        async with app.run_test():
            await asyncio.sleep(0)
            assert app.query_one(PlaylistPane)
            assert app.query_one(StatusPane)
            assert app.controller is None
            app.exit()

    _run(run_app())


def test_app_restores_session_and_toggles_playback(tmp_path) -> None:
    kv = _store_with_tracks(tmp_path)
    app = DeckPlayerApp(
        backend_name="fake", store=SessionStore(kv), probe=_NullProbe()
    )

    async def run_app() -> None:
        async with app.run_test() as pilot:
            await _wait_for_controller(app, pilot)
            controller = app.controller
            assert controller is not None
            assert controller.view.track_count == 2
            assert controller.view.volume == 60
            await pilot.pause(0.05)

            await app.action_play_pause()
            assert controller.view.phase == "playing"
            await app.action_next_track()
            assert controller.current_index == 1
            await pilot.press("m")
            await pilot.pause(0.05)
            assert controller.view.muted is True
            app.exit()

    _run(run_app())
    assert '"isMuted": true' in kv.data[SESSION_KEY]


def test_track_details_text_lists_every_field() -> None:
    text = track_details_text(
        TrackDetails(
            title="Song",
            artist="Band",
            album="LP",
            duration="3:05",
            file_size="4.2 MB",
            location="/m/song.mp3",
        )
    )
    for value in ("Song", "Band", "LP", "3:05", "4.2 MB"):
        assert value in text
