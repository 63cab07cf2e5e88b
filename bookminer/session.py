from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .store import NoteConfig

FRONT_FILENAME = "front.tex"
BACK_FILENAME = "back.tex"


@dataclass
class SessionState:
    working_dir: Path
    screenshot_path: Path | None = None
    page_number: int | None = None
    source_filename: str | None = None
    selected_tags: list[str] = field(default_factory=list)
    note_config: NoteConfig | None = None

    @property
    def front_path(self) -> Path:
        return self.working_dir / FRONT_FILENAME

    @property
    def back_path(self) -> Path:
        return self.working_dir / BACK_FILENAME

    def set_tags(self, tags: list[str]) -> None:
        # Distinct labels, first occurrence wins the display position.
        self.selected_tags = list(dict.fromkeys(tags))

    @property
    def attachments(self) -> list[Path]:
        return [self.screenshot_path] if self.screenshot_path is not None else []
