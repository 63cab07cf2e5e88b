from __future__ import annotations

import argparse
import logging
import subprocess
import sys
import tempfile
from pathlib import Path

from .ankiconnect import AnkiConnectClient
from .config import AppConfig, load_config
from .errors import BookminerError, Cancelled, ConfigError
from .paths import get_log_file, get_note_config_file, get_settings_file, get_tags_file
from .screenshot import capture_screenshot, save_image, unique_screenshot_filename
from .session import SessionState
from .terminal import Terminal
from .workflow import Workflow

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="bookminer")
    p.add_argument("--verbose", action="store_true", help="Debug logging")
    p.add_argument("--config", default=None, help="Config JSON path (default: <data dir>/config.json)")
    sub = p.add_subparsers(dest="command", required=True)

    cap = sub.add_parser("capture", help="Take a screenshot and open a card session in a new terminal")
    cap.add_argument("--page-number", type=int, default=None, help="Page the screenshot was taken from")
    cap.add_argument("--book-filename", default=None, help="Name of the document being read")
    cap.add_argument("--no-screenshot", action="store_true", help="Skip the screen capture")

    ses = sub.add_parser("session", help="Run the card session in the current terminal")
    ses.add_argument("--tmp-dir", required=True, help="Scratch directory for front/back fragments")
    ses.add_argument("--screenshot-path", default=None, help="Screenshot to attach")
    ses.add_argument("--page-number", type=int, default=None)
    ses.add_argument("--book-filename", default=None)

    return p


def setup_logging(verbose: bool) -> None:
    # stdout/stderr belong to the UI, so log to a file.
    logging.basicConfig(
        filename=str(get_log_file()),
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
    )


def build_session_command(
    cfg: AppConfig,
    tmp_dir: Path,
    screenshot_path: Path | None,
    *,
    page_number: int | None = None,
    book_filename: str | None = None,
    verbose: bool = False,
    config_path: str | None = None,
) -> list[str]:
    cmd = [cfg.require_terminal(), *cfg.terminal_args, "-e", sys.executable, "-m", "bookminer"]
    if verbose:
        cmd.append("--verbose")
    if config_path:
        cmd += ["--config", config_path]
    cmd += ["session", "--tmp-dir", str(tmp_dir)]
    if screenshot_path is not None:
        cmd += ["--screenshot-path", str(screenshot_path)]
    if page_number is not None:
        cmd += ["--page-number", str(page_number)]
    if book_filename:
        cmd += ["--book-filename", book_filename]
    return cmd


def cmd_capture(args: argparse.Namespace, cfg: AppConfig) -> int:
    cfg.require_terminal()
    image = None if args.no_screenshot else capture_screenshot()

    # The scratch directory must outlive the spawned terminal.
    with tempfile.TemporaryDirectory(prefix="bookmining") as tmp:
        tmp_dir = Path(tmp)
        screenshot_path = tmp_dir / unique_screenshot_filename() if image is not None else None
        cmd = build_session_command(
            cfg,
            tmp_dir,
            screenshot_path,
            page_number=args.page_number,
            book_filename=args.book_filename,
            verbose=args.verbose,
            config_path=args.config,
        )
        logger.info("Spawning session terminal: %s", cmd[0])
        try:
            proc = subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except OSError as e:
            raise ConfigError(f"Cannot launch terminal {cmd[0]!r}: {e}") from e

        if image is not None:
            save_image(image, screenshot_path)
        rc = proc.wait()
        logger.info("Session terminal exited with status %s", rc)
    return 0


def cmd_session(args: argparse.Namespace, cfg: AppConfig) -> int:
    editor = cfg.require_editor()
    tmp_dir = Path(args.tmp_dir)
    if not tmp_dir.is_dir():
        print(f"missing tmp dir: {tmp_dir}", file=sys.stderr)
        return 1

    session = SessionState(
        working_dir=tmp_dir,
        screenshot_path=Path(args.screenshot_path) if args.screenshot_path else None,
        page_number=args.page_number,
        source_filename=args.book_filename,
    )
    client = AnkiConnectClient(url=cfg.anki_url, timeout=cfg.anki_timeout)
    workflow = Workflow(
        session,
        client,
        Terminal(),
        editor=editor,
        tags_file=get_tags_file(),
        config_file=get_note_config_file(),
    )
    workflow.run()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        setup_logging(args.verbose)
        cfg = load_config(args.config or get_settings_file())

        if args.command == "capture":
            return cmd_capture(args, cfg)
        return cmd_session(args, cfg)
    except Cancelled:
        print("Cancelled.", file=sys.stderr)
        return 0
    except KeyboardInterrupt:
        logger.info("Interrupted")
        print("Interrupted.", file=sys.stderr)
        return 130
    except BookminerError as e:
        logger.error("bookminer failed: %s", e, exc_info=True)
        print(f"bookminer: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
