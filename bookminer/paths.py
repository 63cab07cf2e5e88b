"""Per-user file locations."""

from __future__ import annotations

import os
from pathlib import Path

from .utils import ensure_dir

APP_DIR_NAME = "bookminer"


def get_data_dir(*, create: bool = True) -> Path:
    """Resolve the data directory.

    Order: $BOOKMINER_DATA_DIR, $XDG_DATA_HOME/bookminer, ~/.local/share/bookminer.
    """
    override = os.environ.get("BOOKMINER_DATA_DIR")
    if override:
        path = Path(override)
    else:
        xdg = os.environ.get("XDG_DATA_HOME")
        base = Path(xdg) if xdg else Path.home() / ".local" / "share"
        path = base / APP_DIR_NAME
    if create:
        ensure_dir(path)
    return path


def get_tags_file() -> Path:
    return get_data_dir() / "tags"


def get_note_config_file() -> Path:
    return get_data_dir() / "last_selection"


def get_settings_file() -> Path:
    return get_data_dir() / "config.json"


def get_log_file() -> Path:
    return get_data_dir() / "bookminer.log"
