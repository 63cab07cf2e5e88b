"""Terminal ownership for the interactive phase.

The terminal is a scoped resource: `with Terminal() as term:` switches stdin
to cbreak mode and the console to the alternate screen, and always restores
both on the way out. External processes (the editor) run inside
`term.suspended()`, which hands the terminal back and reacquires it after.
"""

from __future__ import annotations

import codecs
import logging
import os
import select
import sys
import termios
import tty
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator

from rich.console import Console, RenderableType

from .editor import edit_file
from .errors import TerminalError

logger = logging.getLogger(__name__)

KEY_UP = "up"
KEY_DOWN = "down"
KEY_LEFT = "left"
KEY_RIGHT = "right"
KEY_ENTER = "enter"
KEY_ESC = "esc"
KEY_BACKSPACE = "backspace"
KEY_TAB = "tab"
KEY_UNKNOWN = ""

_ESCAPE_SEQUENCES = {
    "\x1b[A": KEY_UP,
    "\x1b[B": KEY_DOWN,
    "\x1b[C": KEY_RIGHT,
    "\x1b[D": KEY_LEFT,
    "\x1bOA": KEY_UP,
    "\x1bOB": KEY_DOWN,
    "\x1bOC": KEY_RIGHT,
    "\x1bOD": KEY_LEFT,
    "\x1b": KEY_ESC,
}

# Seconds to wait for the rest of an escape sequence after a lone ESC byte.
_ESC_SEQUENCE_WAIT = 0.03


def decode_key(seq: str) -> str:
    """Map raw terminal input to a key name, or return the printable character."""
    if seq in _ESCAPE_SEQUENCES:
        return _ESCAPE_SEQUENCES[seq]
    if seq in ("\r", "\n"):
        return KEY_ENTER
    if seq in ("\x7f", "\x08"):
        return KEY_BACKSPACE
    if seq == "\t":
        return KEY_TAB
    if seq.startswith("\x1b") or (len(seq) == 1 and not seq.isprintable()):
        return KEY_UNKNOWN
    return seq


class Terminal:
    def __init__(self, console: Console | None = None, stdin: IO[str] | None = None):
        self.console = console or Console(stderr=True)
        self._stdin = stdin or sys.stdin
        self._saved_attrs: list | None = None
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    @property
    def active(self) -> bool:
        return self._saved_attrs is not None

    def enter(self) -> None:
        if self.active:
            return
        try:
            fd = self._stdin.fileno()
            attrs = termios.tcgetattr(fd)
        except (termios.error, OSError, ValueError) as e:
            raise TerminalError(f"stdin is not an interactive terminal: {e}") from e
        self._saved_attrs = attrs
        try:
            tty.setcbreak(fd)
        except termios.error as e:
            self._saved_attrs = None
            raise TerminalError(f"cannot switch terminal to cbreak mode: {e}") from e
        self.console.set_alt_screen(True)
        self.console.show_cursor(False)
        logger.debug("Terminal acquired")

    def exit(self) -> None:
        if not self.active:
            return
        attrs, self._saved_attrs = self._saved_attrs, None
        try:
            self.console.show_cursor(True)
            self.console.set_alt_screen(False)
        finally:
            try:
                termios.tcsetattr(self._stdin.fileno(), termios.TCSADRAIN, attrs)
            except (termios.error, OSError, ValueError) as e:
                raise TerminalError(f"cannot restore terminal mode: {e}") from e
            logger.debug("Terminal released")

    def __enter__(self) -> Terminal:
        self.enter()
        return self

    def __exit__(self, *exc_info) -> None:
        self.exit()

    @contextmanager
    def suspended(self) -> Iterator[None]:
        was_active = self.active
        self.exit()
        try:
            yield
        finally:
            if was_active:
                self.enter()

    def edit_file(self, path: str | Path, editor: str) -> None:
        with self.suspended():
            edit_file(path, editor)

    def draw(self, renderable: RenderableType) -> None:
        self.console.clear()
        self.console.print(renderable)

    def _read_char(self) -> str:
        fd = self._stdin.fileno()
        while True:
            data = os.read(fd, 1)
            if not data:
                raise EOFError("stdin closed")
            ch = self._decoder.decode(data)
            if ch:
                return ch

    def read_key(self) -> str:
        """Block until the next key press and return its decoded name.

        A closed or hung-up stdin raises TerminalError.
        """
        try:
            seq = self._read_char()
            if seq == "\x1b":
                fd = self._stdin.fileno()
                while select.select([fd], [], [], _ESC_SEQUENCE_WAIT)[0]:
                    seq += self._read_char()
                    if len(seq) >= 3 and (seq[-1].isalpha() or seq[-1] == "~"):
                        break
        except (EOFError, OSError, ValueError) as e:
            raise TerminalError(f"cannot read from terminal: {e}") from e
        return decode_key(seq)
