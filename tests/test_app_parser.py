"""Tests for TUI argparse configuration."""

from __future__ import annotations

from deck_player.app import build_parser
from deck_player.version import __version__


def test_app_parser_accepts_backend() -> None:
    args = build_parser().parse_args(["--backend", "fake"])
    assert args.backend == "fake"


def test_app_parser_leaves_backend_unset_by_default() -> None:
    args = build_parser().parse_args([])
    assert args.backend is None
    assert args.log_file is None


def test_app_help_includes_platform_and_version() -> None:
    help_text = build_parser().format_help()
    assert "Platform: " in help_text
    assert f"Version: {__version__}" in help_text
