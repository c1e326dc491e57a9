"""Headless command-line interface for the saved deck-player session."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .errors import EmptyPlaylistError
from .logging_utils import setup_logging
from .paths import export_dir, log_dir, state_dir
from .playlist_export import (
    build_playlist_export,
    export_file_name,
    write_playlist_export,
)
from .runtime_config import resolve_log_level
from .state_store import FileKeyValueStore, SessionSnapshot, SessionStore
from .utils.time_format import format_file_size, format_time_s


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deck-player-cli", description="Inspect or export the saved session."
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
        "--state-dir", help="Directory holding the session (default: per-user)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("show", help="Print the saved playlist and settings")
    export = subparsers.add_parser("export", help="Write the playlist document")
    export.add_argument("--name", help="Playlist name (default: dated name)")
    export.add_argument("--output", help="Target JSON file path")
    return parser


def render_session(snapshot: SessionSnapshot) -> str:
    lines = [
        f"Tracks: {len(snapshot.playlist)}",
        f"Shuffle: {'on' if snapshot.shuffle else 'off'}",
        f"Repeat: {snapshot.repeat_mode}",
        f"Volume: {'muted' if snapshot.muted else snapshot.volume}",
    ]
    for index, track in enumerate(snapshot.playlist):
        marker = ">" if index == snapshot.current_index else " "
        lines.append(
            f"{marker} {index + 1:>3}. {track.title} - {track.artist} "
            f"[{track.album}] {format_time_s(track.duration_s)} "
            f"({format_file_size(track.file_size_bytes)})"
        )
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = logging.getLogger(__name__)
    try:
        level = resolve_log_level(verbose=args.verbose, quiet=args.quiet)
        setup_logging(
            log_dir=log_dir(),
            level=level,
            log_file=Path(args.log_file) if args.log_file else None,
        )
        directory = Path(args.state_dir) if args.state_dir else state_dir()
        snapshot, notice = SessionStore(FileKeyValueStore(directory)).load_with_notice()
        if notice:
            print(notice, file=sys.stderr)
        if args.command == "show":
            print(render_session(snapshot))
            return 0
        try:
            document = build_playlist_export(snapshot.playlist, name=args.name)
        except EmptyPlaylistError:
            print("No tracks to save.", file=sys.stderr)
            return 2
        target = (
            Path(args.output)
            if args.output
            else export_dir() / export_file_name(document["name"])
        )
        write_playlist_export(target, document)
        logger.info("Exported %d track(s) to %s", len(document["tracks"]), target)
        print(f"Playlist saved to {target}")
        return 0
    except Exception as exc:  # pragma: no cover - top-level safety net
        logger.exception("Unhandled error: %s", exc)
        print("Unexpected error. Re-run with --verbose for details.", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
