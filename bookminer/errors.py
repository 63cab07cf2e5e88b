from __future__ import annotations

from pathlib import Path


class BookminerError(Exception):
    """Base class for errors surfaced to the user."""


class AnkiConnectError(BookminerError):
    """Failure talking to AnkiConnect."""


class ServiceUnreachable(AnkiConnectError):
    """Nothing is listening on the AnkiConnect endpoint (Anki is not running)."""


class ApplicationRejected(AnkiConnectError):
    """AnkiConnect answered with a non-null error field."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TransportError(AnkiConnectError):
    """Any other network or response parsing failure."""


class InvalidInput(BookminerError):
    """Malformed local data, e.g. an unusable attachment filename."""


class LocalIOError(BookminerError):
    def __init__(self, path: str | Path, operation: str, cause: BaseException | None = None):
        self.path = Path(path)
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{operation} failed for {self.path}{detail}")


class ConfigError(BookminerError):
    """Required configuration (editor, terminal) is missing."""


class TerminalError(BookminerError):
    """The controlling terminal is unusable: stdin closed or not a tty."""


class Cancelled(Exception):
    """The user backed out of an interaction. Control flow, not a failure."""
