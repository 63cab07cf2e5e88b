"""Shared test fixtures."""
from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Any

import pytest

from bookminer.content import ContentKind
from bookminer.errors import ServiceUnreachable
from bookminer.session import SessionState
from bookminer.store import NoteConfig


class ScriptedTerminal:
    """Stands in for bookminer.terminal.Terminal.

    Keys are replayed from a list; draws and editor calls are recorded.
    """

    def __init__(self, keys: list[str] | None = None):
        self.keys = list(keys or [])
        self.draws: list[Any] = []
        self.edited: list[Path] = []
        self.active = False
        self.enter_count = 0
        self.exit_count = 0
        # Raised once the scripted keys run out, e.g. a closed stdin.
        self.read_error: BaseException | None = None

    def feed(self, *keys: str) -> None:
        self.keys.extend(keys)

    def __enter__(self) -> ScriptedTerminal:
        self.active = True
        self.enter_count += 1
        return self

    def __exit__(self, *exc_info) -> None:
        self.active = False
        self.exit_count += 1

    @contextmanager
    def suspended(self):
        was_active = self.active
        self.active = False
        try:
            yield
        finally:
            self.active = was_active

    def edit_file(self, path: Path, editor: str) -> None:
        with self.suspended():
            Path(path).touch(exist_ok=True)
            self.edited.append(Path(path))

    def draw(self, renderable: Any) -> None:
        self.draws.append(renderable)

    def read_key(self) -> str:
        if not self.keys:
            if self.read_error is not None:
                raise self.read_error
            raise AssertionError("ScriptedTerminal ran out of keys")
        return self.keys.pop(0)


class FakeAnkiClient:
    """In-memory AnkiConnect replacement recording every call."""

    def __init__(
        self,
        decks: list[str] | None = None,
        note_types: list[str] | None = None,
        fields: dict[str, list[str]] | None = None,
    ):
        self.decks = decks if decks is not None else ["Default", "Books"]
        self.note_types = note_types if note_types is not None else ["Basic", "Cloze"]
        self.fields = fields if fields is not None else {"Basic": ["Front", "Back"], "Cloze": ["Text", "Extra"]}
        self.calls: list[tuple[str, tuple]] = []
        self.submissions: list[dict[str, Any]] = []
        # Number of upcoming calls that fail as unreachable.
        self.unreachable_submits = 0
        self.unreachable_decks = 0

    def list_decks(self) -> list[str]:
        self.calls.append(("list_decks", ()))
        if self.unreachable_decks:
            self.unreachable_decks -= 1
            raise ServiceUnreachable("down")
        return list(self.decks)

    def list_note_types(self) -> list[str]:
        self.calls.append(("list_note_types", ()))
        return list(self.note_types)

    def list_fields(self, note_type: str) -> list[str]:
        self.calls.append(("list_fields", (note_type,)))
        return list(self.fields[note_type])

    def submit_note(self, deck, note_type, field_values, tags, attachments=()):
        self.calls.append(("submit_note", (deck, note_type)))
        self.submissions.append(
            {
                "deck": deck,
                "note_type": note_type,
                "fields": dict(field_values),
                "tags": list(tags),
                "attachments": list(attachments),
            }
        )
        if self.unreachable_submits:
            self.unreachable_submits -= 1
            raise ServiceUnreachable("down")
        return 1234

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)


@pytest.fixture
def work_dir(tmp_path) -> Path:
    d = tmp_path / "bookmining_work"
    d.mkdir()
    (d / "front.tex").write_text("x < y", encoding="utf-8")
    (d / "back.tex").write_text('"quoted" & done', encoding="utf-8")
    return d


@pytest.fixture
def basic_config() -> NoteConfig:
    return NoteConfig(
        deck_name="Books",
        note_type="Basic",
        field_mapping=[("Front", ContentKind.FRONT_TEXT), ("Back", ContentKind.BACK_TEXT)],
    )


@pytest.fixture
def session(work_dir) -> SessionState:
    return SessionState(
        working_dir=work_dir,
        screenshot_path=work_dir / "screenshot_20240101_120000.png",
        page_number=42,
        source_filename="calculus.pdf",
    )


@pytest.fixture
def data_dir(tmp_path, monkeypatch) -> Path:
    d = tmp_path / "data"
    monkeypatch.setenv("BOOKMINER_DATA_DIR", str(d))
    return d


@pytest.fixture
def term() -> ScriptedTerminal:
    return ScriptedTerminal()


@pytest.fixture
def client() -> FakeAnkiClient:
    return FakeAnkiClient()
