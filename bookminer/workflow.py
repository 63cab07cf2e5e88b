"""Interactive session: edit, tag, configure, then the main menu loop.

States run in order: editing (front, back), tagging, configuring (only when
no cached note configuration exists), and the menu loop, which repeats until
an action that ends the session completes or the menu itself is cancelled.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from .ankiconnect import AnkiConnectClient
from .content import ContentKind, resolve_fields
from .errors import Cancelled, InvalidInput, LocalIOError, ServiceUnreachable, TerminalError
from .session import SessionState
from .store import NoteConfig, load_note_config, load_tags, save_note_config, save_tags
from .terminal import Terminal
from .widgets import confirm, pick_tags, select_one, show_message

logger = logging.getLogger(__name__)

RETRY_MESSAGE = "Anki is not running. Do you want to retry?"
SETTINGS_MENU = ["deck", "note type", "mapping", "cancel"]


class MenuAction(Enum):
    SEND_CARD = "Send Card"
    EDIT_FRONT = "Edit Front"
    EDIT_BACK = "Edit Back"
    EDIT_ANKI_SETTINGS = "Edit Anki Settings"
    EDIT_TAGS = "Edit Tags"
    CANCEL = "Cancel"

    @property
    def label(self) -> str:
        return self.value

    @property
    def should_terminate(self) -> bool:
        return self in (MenuAction.SEND_CARD, MenuAction.CANCEL)


class Workflow:
    def __init__(
        self,
        session: SessionState,
        client: AnkiConnectClient,
        term: Terminal,
        *,
        editor: str,
        tags_file: Path,
        config_file: Path,
    ):
        self.session = session
        self.client = client
        self.term = term
        self.editor = editor
        self.tags_file = Path(tags_file)
        self.config_file = Path(config_file)

    def run(self) -> None:
        with self.term:
            self.edit_front()
            self.edit_back()
            self.choose_tags()
            self.ensure_note_config()
            self.menu_loop()

    # -- menu loop -------------------------------------------------------

    def menu_loop(self) -> None:
        actions = list(MenuAction)
        labels = [a.label for a in actions]
        while True:
            try:
                action = actions[select_one(self.term, "Menu", labels)]
            except Cancelled:
                logger.info("Main menu cancelled")
                return

            logger.info("Menu action: %s", action.label)
            try:
                self.perform(action)
            except (LocalIOError, InvalidInput) as e:
                logger.warning("%s failed: %s", action.label, e)
                show_message(self.term, "Error", f"{action.label} failed:\n{e}")
                continue
            except Cancelled:
                continue

            if action.should_terminate:
                return

    def perform(self, action: MenuAction) -> None:
        if action is MenuAction.SEND_CARD:
            self.send_card()
        elif action is MenuAction.EDIT_FRONT:
            self.edit_front()
        elif action is MenuAction.EDIT_BACK:
            self.edit_back()
        elif action is MenuAction.EDIT_ANKI_SETTINGS:
            self.edit_anki_settings()
        elif action is MenuAction.EDIT_TAGS:
            self.choose_tags()
        elif action is MenuAction.CANCEL:
            pass
        else:  # pragma: no cover
            raise ValueError(f"Unknown menu action: {action!r}")

    # -- retry protocol --------------------------------------------------

    def _with_retry(self, func: Callable[..., Any], *args: Any) -> Any:
        """Call `func`, asking the user to retry while AnkiConnect is unreachable.

        Each retry calls `func` again from scratch.
        """
        while True:
            try:
                return func(*args)
            except ServiceUnreachable as e:
                self._ask_retry(e)

    def _ask_retry(self, error: ServiceUnreachable) -> None:
        logger.warning("AnkiConnect unreachable: %s", error)
        try:
            retry = confirm(self.term, RETRY_MESSAGE)
        except (OSError, EOFError, TerminalError) as dialog_error:
            raise error from dialog_error
        if not retry:
            logger.info("Retry declined, exiting")
            raise SystemExit(1)
        logger.info("Retrying after unreachable AnkiConnect")

    # -- actions ---------------------------------------------------------

    def send_card(self) -> Any:
        config = self._require_config()

        def attempt() -> Any:
            fields = resolve_fields(self.session)
            return self.client.submit_note(
                config.deck_name,
                config.note_type,
                fields,
                self.session.selected_tags,
                self.session.attachments,
            )

        note_id = self._with_retry(attempt)
        logger.info("Card sent, note id %s", note_id)
        return note_id

    def edit_front(self) -> None:
        self.term.edit_file(self.session.front_path, self.editor)

    def edit_back(self) -> None:
        self.term.edit_file(self.session.back_path, self.editor)

    def choose_tags(self) -> None:
        universe = load_tags(self.tags_file)
        for tag in self.session.selected_tags:
            if tag not in universe:
                universe.append(tag)

        selected = pick_tags(self.term, universe, preselected=self.session.selected_tags)
        self.session.set_tags(selected)
        save_tags(self.tags_file, universe)
        logger.info("Selected tags: %s", ", ".join(self.session.selected_tags) or "(none)")

    def edit_anki_settings(self) -> None:
        config = self._require_config()
        while True:
            try:
                choice = select_one(self.term, "Choose the setting to change", SETTINGS_MENU)
            except Cancelled:
                return
            if SETTINGS_MENU[choice] == "cancel":
                return

            try:
                if choice == 0:
                    config.deck_name = self.select_deck()
                elif choice == 1:
                    self._change_note_type(config)
                else:
                    config.field_mapping = self.select_field_mapping(config.note_type)
            except Cancelled:
                continue
            save_note_config(self.config_file, config)

    def _change_note_type(self, config: NoteConfig) -> None:
        note_type = self.select_note_type()
        if note_type == config.note_type:
            return
        mapping = self.select_field_mapping(note_type)
        config.note_type = note_type
        config.field_mapping = mapping

    # -- configuration ---------------------------------------------------

    def ensure_note_config(self) -> NoteConfig:
        config = load_note_config(self.config_file)
        if config is None:
            logger.info("No cached note configuration, asking")
            deck = self.select_deck()
            note_type = self.select_note_type()
            mapping = self.select_field_mapping(note_type)
            config = NoteConfig(deck_name=deck, note_type=note_type, field_mapping=mapping)
            save_note_config(self.config_file, config)
        self.session.note_config = config
        return config

    def _require_config(self) -> NoteConfig:
        if self.session.note_config is None:
            raise InvalidInput("No Anki note configuration loaded")
        return self.session.note_config

    def select_deck(self) -> str:
        decks = self._with_retry(self.client.list_decks)
        if not decks:
            raise InvalidInput("AnkiConnect returned no decks")
        return decks[select_one(self.term, "Select Anki Deck", decks)]

    def select_note_type(self) -> str:
        note_types = self._with_retry(self.client.list_note_types)
        if not note_types:
            raise InvalidInput("AnkiConnect returned no note types")
        return note_types[select_one(self.term, "Select Anki Note Type", note_types)]

    def select_field_mapping(self, note_type: str) -> list[tuple[str, ContentKind]]:
        field_names = self._with_retry(self.client.list_fields, note_type)
        kinds = ContentKind.choices()
        labels = [k.label for k in kinds]

        mapping: list[tuple[str, ContentKind]] = []
        for name in field_names:
            index = select_one(self.term, f"Choose the contents for the field {name}", labels)
            mapping.append((name, kinds[index]))
        return mapping
