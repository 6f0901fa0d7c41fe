from __future__ import annotations

import os
from pathlib import Path

APP_DIR_NAME = "AidingMindfulness"
HOME_ENV_VAR = "AIDING_MINDFULNESS_HOME"


def data_directory() -> Path:
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override)
    local_appdata = os.environ.get("LOCALAPPDATA")
    if local_appdata:
        return Path(local_appdata) / APP_DIR_NAME
    xdg_data = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg_data) if xdg_data else Path.home() / ".local" / "share"
    return base / APP_DIR_NAME


def database_path() -> Path:
    return data_directory() / "mindfulness.sqlite3"


def log_path() -> Path:
    return data_directory() / "logs" / "aiding_mindfulness.log"


def ensure_directories() -> None:
    log_path().parent.mkdir(parents=True, exist_ok=True)
