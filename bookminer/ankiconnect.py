"""Thin AnkiConnect client.

Every call is one POST of {"action", "version", "params"} to the local
endpoint. The response carries either "result" or a non-null "error".
"""

from __future__ import annotations

import base64
import logging
from pathlib import Path
from typing import Any, Iterable

import requests

from .config import DEFAULT_ANKI_TIMEOUT, DEFAULT_ANKI_URL
from .errors import ApplicationRejected, InvalidInput, ServiceUnreachable, TransportError
from .utils import read_bytes

logger = logging.getLogger(__name__)

ANKICONNECT_VERSION = 6


class AnkiConnectClient:
    def __init__(
        self,
        url: str = DEFAULT_ANKI_URL,
        timeout: float = DEFAULT_ANKI_TIMEOUT,
        session: requests.Session | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def invoke(self, action: str, **params: Any) -> Any:
        payload = {"action": action, "version": ANKICONNECT_VERSION, "params": params}
        logger.debug("AnkiConnect request: %s", action)
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.ConnectionError as e:
            raise ServiceUnreachable(f"AnkiConnect is not reachable at {self.url}") from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"HTTP error during {action}: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON in response to {action}: {e}") from e

        if not isinstance(data, dict) or "result" not in data or "error" not in data:
            raise TransportError(f"Unexpected response shape for {action}: {data!r}")

        error = data.get("error")
        if error is not None:
            logger.warning("AnkiConnect rejected %s: %s", action, error)
            raise ApplicationRejected(str(error))
        return data.get("result")

    def _invoke_str_list(self, action: str, **params: Any) -> list[str]:
        result = self.invoke(action, **params)
        if not isinstance(result, list):
            raise TransportError(f"Invalid response format for {action}: expected a list")
        return [v for v in result if isinstance(v, str)]

    def list_decks(self) -> list[str]:
        return self._invoke_str_list("deckNames")

    def list_note_types(self) -> list[str]:
        return self._invoke_str_list("modelNames")

    def list_fields(self, note_type: str) -> list[str]:
        return self._invoke_str_list("modelFieldNames", modelName=note_type)

    def store_media_file(self, path: str | Path) -> str:
        path = Path(path)
        filename = path.name
        if not filename or filename in (".", ".."):
            raise InvalidInput(f"Invalid attachment filename: {path}")

        data = base64.b64encode(read_bytes(path)).decode("ascii")
        result = self.invoke("storeMediaFile", filename=filename, data=data)
        return result if isinstance(result, str) else filename

    def submit_note(
        self,
        deck: str,
        note_type: str,
        field_values: dict[str, str],
        tags: Iterable[str],
        attachments: Iterable[str | Path] = (),
    ) -> Any:
        """Upload attachments, then add the note. Returns the new note id.

        Attachments are uploaded one by one before addNote; the first failing
        upload aborts the whole submission.
        """
        for attachment in attachments:
            stored = self.store_media_file(attachment)
            logger.info("Stored media file %s", stored)

        note = {
            "deckName": deck,
            "modelName": note_type,
            "fields": dict(field_values),
            "tags": list(tags),
            "options": {
                "allowDuplicate": False,
                "duplicateScope": "deck",
            },
        }
        note_id = self.invoke("addNote", note=note)
        logger.info("Added note %s to deck %s", note_id, deck)
        return note_id
