"""Test configuration."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from deck_player.services import metadata_service as metadata_service_module  # noqa
from deck_player.services import session_controller as session_controller_module  # noqa


@pytest.fixture(autouse=True)
def run_blocking_inline(monkeypatch: pytest.MonkeyPatch):
    """Run blocking adapters inline in tests to avoid thread hangs in CI/sandbox."""

    async def _inline(func, /, *args, **kwargs):
        return func(*args, **kwargs)

    monkeypatch.setattr(metadata_service_module, "run_blocking", _inline)
    monkeypatch.setattr(session_controller_module, "run_blocking", _inline)
