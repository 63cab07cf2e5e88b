"""Persistence for the last note configuration and the tag list.

Both are single current-value files: every save overwrites the whole file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .content import ContentKind
from .errors import LocalIOError
from .utils import load_json, read_text, write_json, write_text

logger = logging.getLogger(__name__)


@dataclass
class NoteConfig:
    deck_name: str
    note_type: str
    field_mapping: list[tuple[str, ContentKind]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "deck_name": self.deck_name,
            "note_type": self.note_type,
            "field_mapping": [[name, kind.value] for name, kind in self.field_mapping],
        }

    @classmethod
    def from_dict(cls, data: Any) -> NoteConfig:
        if not isinstance(data, dict):
            raise ValueError("expected an object")
        mapping: list[tuple[str, ContentKind]] = []
        for entry in data.get("field_mapping") or []:
            name, kind = entry
            mapping.append((str(name), ContentKind(kind)))
        return cls(
            deck_name=str(data["deck_name"]),
            note_type=str(data["note_type"]),
            field_mapping=mapping,
        )


def load_note_config(path: str | Path) -> NoteConfig | None:
    """Return the cached configuration, or None if nothing was saved yet."""
    path = Path(path)
    if not path.exists():
        return None
    data = load_json(path)
    try:
        config = NoteConfig.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise LocalIOError(path, "parsing stored note configuration", e) from e
    logger.debug("Loaded note config from %s: deck=%s note_type=%s", path, config.deck_name, config.note_type)
    return config


def save_note_config(path: str | Path, config: NoteConfig) -> None:
    write_json(path, config.to_dict())
    logger.debug("Saved note config to %s", path)


def load_tags(path: str | Path) -> list[str]:
    path = Path(path)
    if not path.exists():
        return []
    return [line for line in read_text(path).splitlines() if line.strip()]


def save_tags(path: str | Path, tags: list[str]) -> None:
    unique = list(dict.fromkeys(t for t in tags if t.strip()))
    write_text(path, "\n".join(unique))
