"""Field content sources and their resolution into Anki field values."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from .utils import read_text

if TYPE_CHECKING:
    from .session import SessionState


class ContentKind(Enum):
    """Where a note field gets its value from.

    Values are the names stored in the cached configuration.
    """

    EMPTY = "Empty"
    FRONT_TEXT = "Front"
    BACK_TEXT = "Back"
    SCREENSHOT = "Screenshot"
    PAGE_NUMBER = "PageNumber"
    FILE_NAME = "FileName"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def choices(cls) -> list[ContentKind]:
        return list(cls)


_LABELS = {
    ContentKind.EMPTY: "Empty",
    ContentKind.FRONT_TEXT: "Front",
    ContentKind.BACK_TEXT: "Back",
    ContentKind.SCREENSHOT: "Screenshot",
    ContentKind.PAGE_NUMBER: "Page Number",
    ContentKind.FILE_NAME: "File Name",
}

# Order matters: '&' first, so later entities are not escaped again.
_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("\t", "&Tab;"),
)


def anki_escape(text: str) -> str:
    for char, entity in _ESCAPES:
        text = text.replace(char, entity)
    return text


def wrap_latex(text: str) -> str:
    return f"[latex]{text}[/latex]"


def resolve(kind: ContentKind, session: SessionState) -> str:
    """Resolve one content kind against the session.

    Missing optional data (screenshot, page number, file name) gives "".
    Unreadable scratch fragments raise LocalIOError.
    """
    if kind is ContentKind.EMPTY:
        return ""
    if kind is ContentKind.FRONT_TEXT:
        return anki_escape(wrap_latex(read_text(session.front_path)))
    if kind is ContentKind.BACK_TEXT:
        return anki_escape(wrap_latex(read_text(session.back_path)))
    if kind is ContentKind.SCREENSHOT:
        if session.screenshot_path is None:
            return ""
        return f'<img src="{session.screenshot_path.name}">'
    if kind is ContentKind.PAGE_NUMBER:
        return "" if session.page_number is None else str(session.page_number)
    if kind is ContentKind.FILE_NAME:
        return session.source_filename or ""
    raise ValueError(f"Unknown content kind: {kind!r}")


def resolve_fields(session: SessionState) -> dict[str, str]:
    if session.note_config is None:
        raise ValueError("session has no note configuration")
    return {name: resolve(kind, session) for name, kind in session.note_config.field_mapping}
