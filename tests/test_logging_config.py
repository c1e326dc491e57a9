"""Tests for the JSON log setup and how both entrypoints configure it."""

from __future__ import annotations

import json
import logging
import logging.handlers
from pathlib import Path

import pytest

import deck_player.app as app_module
import deck_player.cli as cli_module
from deck_player.logging_utils import LOG_FILE_NAME, JsonLogFormatter, setup_logging


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    yield root
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


@pytest.fixture
def setup_calls(monkeypatch, tmp_path) -> list[dict]:
    calls: list[dict] = []
    for module in (app_module, cli_module):
        monkeypatch.setattr(module, "setup_logging", lambda **kw: calls.append(kw))
        monkeypatch.setattr(module, "log_dir", lambda: tmp_path / "logs")
    return calls


class _RecordingApp:
    instances: list[_RecordingApp] = []

    def __init__(self, *, backend_name: str | None = None) -> None:
        self.backend_name = backend_name
        self.ran = False
        _RecordingApp.instances.append(self)

    def run(self) -> None:
        self.ran = True


class _CrashingApp(_RecordingApp):
    def run(self) -> None:
        raise RuntimeError("terminal went away")


def _last_json_line(path: Path) -> dict:
    for handler in logging.getLogger().handlers:
        handler.flush()
    return json.loads(path.read_text(encoding="utf-8").splitlines()[-1])


def test_default_log_file_receives_json_with_context(tmp_path, root_logger) -> None:
    log_path = setup_logging(log_dir=tmp_path, console=False)
    logging.getLogger("deck_player.engine").warning(
        "load timed out", extra={"track_id": "abc"}
    )

    record = _last_json_line(log_path)
    assert log_path == tmp_path / LOG_FILE_NAME
    assert record["message"] == "load timed out"
    assert record["level"] == "WARNING"
    assert record["logger"] == "deck_player.engine"
    assert record["context"] == {"track_id": "abc"}
    assert record["timestamp"].endswith("Z")


def test_explicit_log_file_creates_missing_parent(tmp_path, root_logger) -> None:
    target = tmp_path / "nested" / "dir" / "run.log"
    assert setup_logging(log_dir=tmp_path, level="DEBUG", log_file=target) == target
    logging.getLogger("deck_player").debug("debug line")

    assert _last_json_line(target)["message"] == "debug line"
    assert root_logger.level == logging.DEBUG


def test_console_flag_controls_stderr_handler(tmp_path, root_logger) -> None:
    setup_logging(log_dir=tmp_path, console=False)
    assert [type(h) for h in root_logger.handlers] == [
        logging.handlers.RotatingFileHandler
    ]
    setup_logging(log_dir=tmp_path, console=True)
    assert len(root_logger.handlers) == 2


def test_formatter_reprs_values_json_cannot_encode() -> None:
    record = logging.makeLogRecord(
        {"name": "x", "levelname": "INFO", "msg": "hi", "where": Path("/m/a.mp3")}
    )
    payload = json.loads(JsonLogFormatter().format(record))
    assert payload["context"] == {"where": repr(Path("/m/a.mp3"))}


def test_tui_logs_to_file_only(monkeypatch, setup_calls, tmp_path) -> None:
    _RecordingApp.instances.clear()
    monkeypatch.setattr(app_module, "DeckPlayerApp", _RecordingApp)

    rc = app_module.main(
        ["--verbose", "--log-file", str(tmp_path / "tui.log"), "--backend", "fake"]
    )

    assert rc == 0
    (call,) = setup_calls
    assert call["level"] == "DEBUG"
    assert call["log_file"] == tmp_path / "tui.log"
    assert call["console"] is False
    (app,) = _RecordingApp.instances
    assert app.backend_name == "fake"
    assert app.ran is True


def test_tui_startup_failure_exits_with_one(
    monkeypatch, setup_calls, capsys
) -> None:
    monkeypatch.setattr(app_module, "DeckPlayerApp", _CrashingApp)

    assert app_module.main([]) == 1
    assert "Startup failed." in capsys.readouterr().err


def test_cli_quiet_wins_over_verbose(setup_calls, tmp_path) -> None:
    rc = cli_module.main(
        ["--verbose", "--quiet", "--state-dir", str(tmp_path), "show"]
    )

    assert rc == 0
    assert setup_calls[0]["level"] == "WARNING"
    assert setup_calls[0]["log_file"] is None
