"""Blocking terminal interactions.

Each widget is a small state object: `render()` builds a rich renderable and
`handle_key()` either returns the final result or `PENDING`. `run_widget`
drives the render / wait-for-key / handle cycle until a result is produced.
"""

from __future__ import annotations

from typing import Any, Iterable, Protocol, Sequence

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from .errors import Cancelled
from .terminal import (
    KEY_BACKSPACE,
    KEY_DOWN,
    KEY_ENTER,
    KEY_ESC,
    KEY_LEFT,
    KEY_RIGHT,
    KEY_UP,
)

PENDING: Any = object()

_HIGHLIGHT = "bold black on yellow"


class Screen(Protocol):
    def draw(self, renderable: RenderableType) -> None: ...

    def read_key(self) -> str: ...


def run_widget(term: Screen, widget: Any) -> Any:
    while True:
        term.draw(widget.render())
        result = widget.handle_key(term.read_key())
        if result is not PENDING:
            return result


def _is_text_key(key: str) -> bool:
    return len(key) == 1 and key.isprintable()


class SingleChoice:
    def __init__(self, title: str, options: Sequence[str]):
        if not options:
            raise ValueError("SingleChoice needs at least one option")
        self.title = title
        self.options = [str(o) for o in options]
        self.index = 0

    def render(self) -> RenderableType:
        lines = Text()
        for i, option in enumerate(self.options):
            if i:
                lines.append("\n")
            if i == self.index:
                lines.append(f"> {option}", style=_HIGHLIGHT)
            else:
                lines.append(f"  {option}")
        return Panel(lines, title=self.title, subtitle="j/k: move, Enter: choose, Esc: back")

    def handle_key(self, key: str) -> Any:
        n = len(self.options)
        if key in (KEY_DOWN, "j"):
            self.index = (self.index + 1) % n
        elif key in (KEY_UP, "k"):
            self.index = (self.index - 1) % n
        elif key == KEY_ENTER:
            return self.index
        elif key in (KEY_ESC, "q"):
            raise Cancelled(self.title)
        return PENDING


class TagPicker:
    """Multi-select list with an inline "new tag" entry.

    `tags` is edited in place: additions and deletions are visible to the
    caller, which persists the whole list.
    """

    def __init__(self, tags: list[str], preselected: Iterable[str] = ()):
        chosen = set(preselected)
        self.tags = tags
        self.selected = [t in chosen for t in tags]
        self.index: int | None = 0 if tags else None
        self.input_mode = False
        self.buffer = ""

    def selected_tags(self) -> list[str]:
        return [t for t, on in zip(self.tags, self.selected) if on]

    def render(self) -> RenderableType:
        if self.input_mode:
            help_text = "Esc: stop editing, Enter: record tag"
        else:
            help_text = "i: add tag, Space: toggle, d: delete, g/G: first/last, Enter: confirm"

        rows = Text()
        for i, (tag, on) in enumerate(zip(self.tags, self.selected)):
            if i:
                rows.append("\n")
            line = f"{'[x]' if on else '[ ]'} {tag}"
            if i == self.index and not self.input_mode:
                rows.append(line, style=_HIGHLIGHT)
            else:
                rows.append(line)
        if not self.tags:
            rows.append("(no tags yet)", style="dim")

        entry = Panel(
            Text(self.buffer, style="yellow" if self.input_mode else ""),
            title="New Tag",
        )
        return Group(
            Text(help_text, style="bright_black", justify="center"),
            Panel(rows, title="Tags"),
            entry,
        )

    def handle_key(self, key: str) -> Any:
        if self.input_mode:
            self._handle_input_key(key)
            return PENDING

        n = len(self.tags)
        if key == KEY_ENTER:
            return self.selected_tags()
        if key == "i":
            self.input_mode = True
        elif self.index is None:
            return PENDING
        elif key in (KEY_DOWN, "j"):
            self.index = (self.index + 1) % n
        elif key in (KEY_UP, "k"):
            self.index = (self.index - 1) % n
        elif key == " ":
            self.selected[self.index] = not self.selected[self.index]
            self.index = (self.index + 1) % n
        elif key == "d":
            del self.tags[self.index]
            del self.selected[self.index]
            self.index = min(self.index, len(self.tags) - 1) if self.tags else None
        elif key == "g":
            self.index = 0
        elif key == "G":
            self.index = n - 1
        return PENDING

    def _handle_input_key(self, key: str) -> None:
        if key == KEY_ESC:
            self.buffer = ""
            self.input_mode = False
        elif key == KEY_ENTER:
            if self.buffer:
                self.tags.append(self.buffer)
                self.selected.append(True)
                if self.index is None:
                    self.index = 0
            self.buffer = ""
            self.input_mode = False
        elif key == KEY_BACKSPACE:
            self.buffer = self.buffer[:-1]
        elif _is_text_key(key):
            self.buffer += key


class Confirmation:
    def __init__(self, message: str, title: str = "Confirmation"):
        self.message = message
        self.title = title
        self.choice = True

    def render(self) -> RenderableType:
        options = Text()
        options.append("Yes", style="bold green" if self.choice else "")
        options.append(" / ")
        options.append("No", style="bold red" if not self.choice else "")
        return Panel(Group(Text(self.message), Text(), options), title=self.title, width=60)

    def handle_key(self, key: str) -> Any:
        if key in (KEY_LEFT, KEY_RIGHT):
            self.choice = not self.choice
        elif key in ("y", "Y"):
            return True
        elif key in ("n", "N", KEY_ESC):
            return False
        elif key == KEY_ENTER:
            return self.choice
        return PENDING


class MessageBox:
    def __init__(self, title: str, message: str):
        self.title = title
        self.message = message

    def render(self) -> RenderableType:
        return Panel(
            Group(Text(self.message), Text(), Text("Press any key to continue", style="bright_black")),
            title=self.title,
            border_style="red",
        )

    def handle_key(self, key: str) -> Any:
        return None


def select_one(term: Screen, title: str, options: Sequence[str]) -> int:
    """Return the index of the chosen option. Raises Cancelled on Esc/q."""
    return run_widget(term, SingleChoice(title, options))


def pick_tags(term: Screen, tags: list[str], preselected: Iterable[str] = ()) -> list[str]:
    return run_widget(term, TagPicker(tags, preselected))


def confirm(term: Screen, message: str) -> bool:
    return run_widget(term, Confirmation(message))


def show_message(term: Screen, title: str, message: str) -> None:
    run_widget(term, MessageBox(title, message))
