from __future__ import annotations

from datetime import datetime
from pathlib import Path

from PIL import Image, ImageGrab

from .errors import LocalIOError


def unique_screenshot_filename(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return f"screenshot_{now.strftime('%Y%m%d_%H%M%S')}.png"


def capture_screenshot() -> Image.Image:
    """Grab the whole (first) screen as an in-memory image."""
    try:
        return ImageGrab.grab()
    except OSError as e:
        raise LocalIOError("<screen>", "capturing screenshot", e) from e


def save_image(image: Image.Image, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        image.save(path, format="PNG")
    except OSError as e:
        raise LocalIOError(path, "saving screenshot", e) from e
    return path
