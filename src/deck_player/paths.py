"""Per-user directories for state, logs and playlist exports."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from platformdirs import PlatformDirs

APP_NAME = "deck-player"


@lru_cache(maxsize=4)
def get_app_dirs(app_name: str = APP_NAME) -> PlatformDirs:
    return PlatformDirs(app_name, appauthor=False)


def _user_dir(root: str, *parts: str) -> Path:
    path = Path(root).joinpath(*parts)
    path.mkdir(parents=True, exist_ok=True)
    return path


def data_dir(app_name: str = APP_NAME) -> Path:
    return _user_dir(get_app_dirs(app_name).user_data_dir)


def config_dir(app_name: str = APP_NAME) -> Path:
    return _user_dir(get_app_dirs(app_name).user_config_dir)


def log_dir(app_name: str = APP_NAME) -> Path:
    """Rotating log files live under the data directory."""
    return _user_dir(get_app_dirs(app_name).user_data_dir, "logs")


def state_dir(app_name: str = APP_NAME) -> Path:
    """Backing directory of the session key-value store."""
    return _user_dir(get_app_dirs(app_name).user_config_dir, "state")


def export_dir(app_name: str = APP_NAME) -> Path:
    """Default target for exported playlist documents."""
    return _user_dir(get_app_dirs(app_name).user_data_dir, "exports")
