"""Tests for time and size formatting helpers."""

from __future__ import annotations

import math

import pytest

from deck_player.utils.time_format import (
    format_file_size,
    format_time_pair_s,
    format_time_s,
)


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [
        (0, "0:00"),
        (5.9, "0:05"),
        (65, "1:05"),
        (3600, "60:00"),
        (-3, "0:00"),
        (math.nan, "0:00"),
        (math.inf, "0:00"),
    ],
)
def test_format_time_s(seconds: float, expected: str) -> None:
    assert format_time_s(seconds) == expected


def test_format_time_pair_s() -> None:
    assert format_time_pair_s(61, 240) == ("1:01", "4:00")


@pytest.mark.parametrize(
    ("size", "expected"),
    [
        (None, "Unknown"),
        (0, "Unknown"),
        (512, "512 Bytes"),
        (1536, "1.5 KB"),
        (5 * 1024 * 1024, "5 MB"),
        (int(2.25 * 1024**3), "2.25 GB"),
    ],
)
def test_format_file_size(size: int | None, expected: str) -> None:
    assert format_file_size(size) == expected
