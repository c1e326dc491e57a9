"""Read-only message modal for errors and track details."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label

from deck_player.services.session_controller import TrackDetails


class MessageModal(ModalScreen[None]):
    BINDINGS = [
        ("escape", "close", "Close"),
        ("enter", "close", "Close"),
    ]

    def __init__(self, message: str, *, title: str | None = None) -> None:
        super().__init__()
        self._title = title
        self._message = message

    def compose(self) -> ComposeResult:
        widgets = [Label(self._message), Button("OK", id="ok")]
        if self._title:
            widgets.insert(0, Label(f"[b]{self._title}[/b]"))
        yield Vertical(*widgets, id="modal-body")

    def on_mount(self) -> None:
        self.query_one("#ok", Button).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        del event
        self.action_close()

    def action_close(self) -> None:
        self.dismiss(None)


def track_details_text(details: TrackDetails) -> str:
    return "\n".join(
        (
            f"Title: {details.title}",
            f"Artist: {details.artist}",
            f"Album: {details.album}",
            f"Duration: {details.duration}",
            f"File Size: {details.file_size}",
            f"Location: {details.location}",
        )
    )
