from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path

from .errors import LocalIOError

logger = logging.getLogger(__name__)


def edit_file(path: str | Path, editor: str) -> None:
    """Open `path` in `editor` and block until the editor exits.

    The file is created first if it does not exist. The editor's exit status
    is ignored; only the process exiting matters.
    """
    path = Path(path)
    try:
        path.touch(exist_ok=True)
    except OSError as e:
        raise LocalIOError(path, "creating scratch file", e) from e

    cmd = [*shlex.split(editor), str(path)]
    logger.info("Editing %s with %s", path, cmd[0])
    try:
        proc = subprocess.run(cmd)
    except OSError as e:
        raise LocalIOError(path, f"launching editor {cmd[0]!r}", e) from e
    logger.debug("Editor exited with status %s", proc.returncode)
