"""Tests for runtime config precedence behavior."""

from __future__ import annotations

from deck_player.app import build_parser as app_build_parser
from deck_player.cli import build_parser as cli_build_parser
from deck_player.runtime_config import (
    PlayerConfig,
    normalize_repeat_mode,
    resolve_backend_name,
    resolve_log_level,
)


def test_resolve_log_level_precedence_matrix() -> None:
    assert resolve_log_level(verbose=False, quiet=False) == "INFO"
    assert resolve_log_level(verbose=True, quiet=False) == "DEBUG"
    assert resolve_log_level(verbose=False, quiet=True) == "WARNING"
    assert resolve_log_level(verbose=True, quiet=True) == "WARNING"


def test_log_flags_consistent_across_entrypoints() -> None:
    app_args = app_build_parser().parse_args(["--verbose", "--quiet"])
    cli_args = cli_build_parser().parse_args(["--verbose", "--quiet", "show"])
    for args in (app_args, cli_args):
        assert resolve_log_level(verbose=args.verbose, quiet=args.quiet) == "WARNING"


def test_normalize_repeat_mode() -> None:
    assert normalize_repeat_mode("ALL") == "all"
    assert normalize_repeat_mode(" one ") == "one"
    assert normalize_repeat_mode("off") == "none"
    assert normalize_repeat_mode("forever") == "none"
    assert normalize_repeat_mode(3) == "none"


def test_resolve_backend_name_defaults_to_vlc() -> None:
    assert resolve_backend_name(None) == "vlc"
    assert resolve_backend_name("fake") == "fake"
    assert resolve_backend_name("bogus") == "vlc"
    assert resolve_backend_name(None, default="bogus") == "fake"


def test_player_config_defaults() -> None:
    config = PlayerConfig()
    assert config.seek_step_s == 10.0
    assert config.volume_step == 10
    assert config.default_volume == 50
