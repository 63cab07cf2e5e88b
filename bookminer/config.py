from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ConfigError
from .utils import load_json

DEFAULT_ANKI_URL = "http://localhost:8765"
DEFAULT_ANKI_TIMEOUT = 10.0


@dataclass(frozen=True)
class AppConfig:
    anki_url: str = DEFAULT_ANKI_URL
    anki_timeout: float = DEFAULT_ANKI_TIMEOUT
    editor: str | None = None
    terminal: str | None = None
    terminal_args: list[str] = field(default_factory=list)

    def require_editor(self) -> str:
        if not self.editor:
            raise ConfigError(
                "The EDITOR environment variable is not set.\n"
                "You can set it e.g. by running: export EDITOR=vim\n"
                "Or for a single run: EDITOR=vim bookminer ..."
            )
        return self.editor

    def require_terminal(self) -> str:
        if not self.terminal:
            raise ConfigError(
                "The TERMINAL environment variable is not set.\n"
                "You can set it e.g. by running: export TERMINAL=xterm\n"
                "Or for a single run: TERMINAL=xterm bookminer ..."
            )
        return self.terminal


def _parse_terminal_args(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return shlex.split(value)
    if isinstance(value, list):
        return [str(v) for v in value]
    raise ConfigError(f"terminal_args must be a string or a list, got {type(value).__name__}")


def load_config(config_path: str | Path | None = None, env: dict[str, str] | None = None) -> AppConfig:
    """Build the runtime config.

    Priority (lowest first): defaults, JSON file (if it exists), environment.
    """
    env = dict(os.environ) if env is None else env

    data: dict[str, Any] = {}
    if config_path is not None and Path(config_path).exists():
        loaded = load_json(config_path)
        if not isinstance(loaded, dict):
            raise ConfigError(f"{config_path}: expected a JSON object")
        data = loaded

    try:
        timeout = float(data.get("anki_timeout", DEFAULT_ANKI_TIMEOUT))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"anki_timeout must be a number: {e}") from e

    return AppConfig(
        anki_url=env.get("BOOKMINER_ANKI_URL") or data.get("anki_url") or DEFAULT_ANKI_URL,
        anki_timeout=timeout,
        editor=env.get("EDITOR") or data.get("editor"),
        terminal=env.get("TERMINAL") or data.get("terminal"),
        terminal_args=_parse_terminal_args(env.get("TERMINAL_ARGS", data.get("terminal_args"))),
    )
