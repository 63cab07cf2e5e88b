from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .errors import LocalIOError


def ensure_dir(path: str | Path) -> Path:
    p = Path(path)
    try:
        p.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise LocalIOError(p, "creating directory", e) from e
    return p


def read_text(path: str | Path) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise LocalIOError(path, "reading", e) from e


def write_text(path: str | Path, text: str) -> None:
    ensure_dir(Path(path).parent)
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
    except OSError as e:
        raise LocalIOError(path, "writing", e) from e


def read_bytes(path: str | Path) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise LocalIOError(path, "reading", e) from e


def write_json(path: str | Path, data: Any) -> None:
    write_text(path, json.dumps(data, ensure_ascii=False, indent=2))


def load_json(path: str | Path) -> Any:
    text = read_text(path)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise LocalIOError(path, "parsing JSON", e) from e
