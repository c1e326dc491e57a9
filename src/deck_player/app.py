"""Textual TUI app for deck-player."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Literal

from textual.app import App, ComposeResult
from textual.widgets import Footer, Header

from . import __version__
from .events import (
    PlayerNotice,
    PlaylistChanged,
    ProgressUpdated,
    SessionChanged,
    TrackLoaded,
)
from .logging_utils import setup_logging
from .paths import log_dir, state_dir
from .playlist_export import default_playlist_name
from .runtime_config import PlayerConfig, resolve_backend_name, resolve_log_level
from .services.audio_primitive import AudioPrimitive
from .services.fake_primitive import FakeAudioPrimitive
from .services.metadata_service import MetadataProbe, MutagenMetadataProbe
from .services.now_playing import LoggingNowPlayingSink
from .services.session_controller import SessionController
from .services.vlc_primitive import VlcAudioPrimitive
from .state_store import FileKeyValueStore, SessionStore
from .ui.modals.confirm import ConfirmModal
from .ui.modals.message import MessageModal, track_details_text
from .ui.modals.path_input import PathInputModal
from .ui.playlist_pane import PlaylistPane
from .ui.status_pane import StatusPane
from .version import build_help_epilog

logger = logging.getLogger(__name__)

ToastSeverity = Literal["information", "warning", "error"]
NOTICE_SEVERITY: dict[str, ToastSeverity] = {
    "info": "information",
    "success": "information",
    "warning": "warning",
    "error": "error",
}


class DeckPlayerApp(App):
    TITLE = "deck-player"
    CSS = """
    Screen {
        layout: vertical;
    }

    #playlist-pane {
        height: 1fr;
        border: solid white;
    }

    #status-pane {
        height: 6;
        border: solid white;
        padding: 0 1;
    }

    ModalScreen {
        align: center middle;
    }

    #modal-body {
        padding: 1 2;
        border: solid white;
        width: 60%;
        height: auto;
    }
    """
    BINDINGS = [
        ("space", "play_pause", "Play/Pause"),
        ("left", "seek_back", "Seek -10s"),
        ("right", "seek_forward", "Seek +10s"),
        ("ctrl+left", "previous_track", "Previous"),
        ("ctrl+right", "next_track", "Next"),
        ("up", "volume_up", "Vol +"),
        ("down", "volume_down", "Vol -"),
        ("+", "volume_up", "Vol +"),
        ("-", "volume_down", "Vol -"),
        ("m", "mute", "Mute"),
        ("ctrl+s", "shuffle", "Shuffle"),
        ("ctrl+r", "repeat", "Repeat"),
        ("a", "add_tracks", "Add"),
        ("delete", "remove_track", "Remove"),
        ("c", "clear_playlist", "Clear"),
        ("e", "export_playlist", "Save"),
        ("i", "track_info", "Info"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        *,
        auto_init: bool = True,
        backend_name: str | None = None,
        store: SessionStore | None = None,
        probe: MetadataProbe | None = None,
        config: PlayerConfig | None = None,
    ) -> None:
        super().__init__()
        self._auto_init = auto_init
        self._backend_name = resolve_backend_name(backend_name)
        self._store = store
        self._probe = probe
        self._config = config or PlayerConfig()
        self.controller: SessionController | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield PlaylistPane(id="playlist-pane")
        yield StatusPane(id="status-pane")
        yield Footer()

    async def on_mount(self) -> None:
        if self._auto_init:
            self.run_worker(self._initialize(), exclusive=True)

    async def _initialize(self) -> None:
        try:
            store = self._store or SessionStore(FileKeyValueStore(state_dir()))
            probe = self._probe or MutagenMetadataProbe()
            controller = self._build_controller(self._backend_name, store, probe)
            try:
                await controller.restore()
            except Exception as exc:
                if self._backend_name == "fake":
                    raise
                logger.exception(
                    "Failed to start %s backend: %s", self._backend_name, exc
                )
                self._backend_name = "fake"
                controller = self._build_controller("fake", store, probe)
                await controller.restore()
                await self.push_screen(
                    MessageModal(
                        "VLC backend unavailable; using fake backend.\n"
                        "Likely cause: VLC/libVLC runtime is not installed.\n"
                        "Next step: install VLC, then restart with --backend vlc."
                    )
                )
            self.controller = controller
            self.query_one(StatusPane).set_controller(controller)
            self._refresh_playlist()
            self.query_one(StatusPane).update_view(controller.view)
            self.query_one(PlaylistPane).focus_list()
        except Exception as exc:
            logger.exception("Failed to initialize app: %s", exc)
            await self.push_screen(
                MessageModal(
                    "Failed to initialize the player.\n"
                    "Likely cause: state directory or audio backend startup failure.\n"
                    "Next step: verify file permissions and review the log file."
                )
            )

    def _build_controller(
        self, backend_name: str, store: SessionStore, probe: MetadataProbe
    ) -> SessionController:
        logger.info("Playback backend selected: %s", backend_name)
        primitive: AudioPrimitive
        if backend_name == "vlc":
            primitive = VlcAudioPrimitive()
        else:
            primitive = FakeAudioPrimitive(tick_interval_s=0.25)
        return SessionController(
            primitive=primitive,
            probe=probe,
            store=store,
            emit_event=self._handle_event,
            config=self._config,
            now_playing=LoggingNowPlayingSink(),
        )

    async def on_unmount(self) -> None:
        if self.controller is not None:
            await self.controller.shutdown()

    async def _handle_event(self, event: object) -> None:
        if isinstance(event, ProgressUpdated):
            for pane in self.query(StatusPane):
                pane.update_progress(
                    event.position_s, event.duration_s, preview=event.preview
                )
        elif isinstance(event, SessionChanged):
            for pane in self.query(StatusPane):
                pane.update_view(event.view)
            for playlist in self.query(PlaylistPane):
                playlist.set_current_index(event.view.current_index)
        elif isinstance(event, PlaylistChanged):
            self._refresh_playlist()
        elif isinstance(event, TrackLoaded):
            for playlist in self.query(PlaylistPane):
                playlist.set_current_index(event.index)
        elif isinstance(event, PlayerNotice):
            self.notify(
                event.message,
                severity=NOTICE_SEVERITY.get(event.level, "information"),
                timeout=3,
            )

    def _refresh_playlist(self) -> None:
        if self.controller is None:
            return
        for playlist in self.query(PlaylistPane):
            playlist.set_tracks(
                self.controller.registry.tracks(), self.controller.current_index
            )

    async def on_playlist_pane_track_chosen(
        self, event: PlaylistPane.TrackChosen
    ) -> None:
        if self.controller is not None:
            await self.controller.select_track(event.index, play=True)

    async def action_play_pause(self) -> None:
        if self.controller is not None:
            await self.controller.toggle_play_pause()

    async def action_seek_back(self) -> None:
        if self.controller is not None:
            await self.controller.seek_by(-self._config.seek_step_s)

    async def action_seek_forward(self) -> None:
        if self.controller is not None:
            await self.controller.seek_by(self._config.seek_step_s)

    async def action_previous_track(self) -> None:
        if self.controller is not None:
            await self.controller.previous()

    async def action_next_track(self) -> None:
        if self.controller is not None:
            await self.controller.next()

    async def action_volume_up(self) -> None:
        if self.controller is not None:
            await self.controller.adjust_volume(self._config.volume_step)

    async def action_volume_down(self) -> None:
        if self.controller is not None:
            await self.controller.adjust_volume(-self._config.volume_step)

    async def action_mute(self) -> None:
        if self.controller is not None:
            await self.controller.toggle_mute()

    async def action_shuffle(self) -> None:
        if self.controller is not None:
            await self.controller.toggle_shuffle()

    async def action_repeat(self) -> None:
        if self.controller is not None:
            await self.controller.toggle_repeat()

    def action_add_tracks(self) -> None:
        controller = self.controller
        if controller is None:
            return

        def _submit(value: str | None) -> None:
            if value:
                self.run_worker(controller.add_tracks([Path(value).expanduser()]))

        self.push_screen(
            PathInputModal("Add audio file or folder", placeholder="~/Music"), _submit
        )

    async def action_remove_track(self) -> None:
        if self.controller is None:
            return
        index = self.query_one(PlaylistPane).highlighted_index
        if index is not None:
            await self.controller.remove_track(index)

    async def action_clear_playlist(self) -> None:
        controller = self.controller
        if controller is None:
            return
        token = await controller.request_clear()
        if token is None:
            return

        def _answer(confirmed: bool | None) -> None:
            if confirmed:
                self.run_worker(controller.confirm_clear(token))
            else:
                controller.cancel_clear(token)

        self.push_screen(
            ConfirmModal(
                f"Are you sure you want to clear all {token.track_count} tracks "
                "from the playlist?",
                confirm_label="Clear",
            ),
            _answer,
        )

    def action_export_playlist(self) -> None:
        controller = self.controller
        if controller is None:
            return

        def _submit(value: str | None) -> None:
            if value:
                self.run_worker(controller.export_playlist(name=value))

        self.push_screen(
            PathInputModal(
                "Enter a name for your playlist", value=default_playlist_name()
            ),
            _submit,
        )

    def action_track_info(self) -> None:
        if self.controller is None:
            return
        index = self.query_one(PlaylistPane).highlighted_index
        if index is None:
            index = self.controller.current_index
        if index < 0:
            return
        details = self.controller.track_details(index)
        self.push_screen(MessageModal(track_details_text(details), title="Track Info"))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deck-player",
        description="Keyboard-driven terminal music player.",
        epilog=build_help_epilog(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--quiet", action="store_true", help="Only show warnings and errors"
    )
    parser.add_argument("--log-file", help="Write logs to a file path")
    parser.add_argument(
        "--backend",
        choices=("fake", "vlc"),
        help="Audio backend to use (fake or vlc).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        level = resolve_log_level(verbose=args.verbose, quiet=args.quiet)
        setup_logging(
            log_dir=log_dir(),
            level=level,
            log_file=Path(args.log_file) if args.log_file else None,
            console=False,
        )
        logging.getLogger(__name__).info("Starting deck-player TUI")
        DeckPlayerApp(backend_name=args.backend).run()
        return 0
    except Exception as exc:  # pragma: no cover - top-level safety net
        logging.getLogger(__name__).exception("Fatal startup error: %s", exc)
        print(
            "Startup failed. Verify backend/state/log paths and re-run with --verbose.",
            file=sys.stderr,
        )
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
