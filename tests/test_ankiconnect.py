"""Tests for the AnkiConnect client, with the HTTP session faked out."""
from __future__ import annotations

import base64

import pytest
import requests

from bookminer.ankiconnect import ANKICONNECT_VERSION, AnkiConnectClient
from bookminer.errors import (
    ApplicationRejected,
    InvalidInput,
    LocalIOError,
    ServiceUnreachable,
    TransportError,
)


class FakeResponse:
    def __init__(self, body=None, status=200, invalid_json=False):
        self.body = body
        self.status_code = status
        self.invalid_json = invalid_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")

    def json(self):
        if self.invalid_json:
            raise ValueError("Expecting value")
        return self.body


class FakeSession:
    """Answers each POST with the next scripted response (or raises it)."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[dict] = []

    def post(self, url, json=None, timeout=None):
        self.requests.append({"url": url, "json": json, "timeout": timeout})
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    @property
    def actions(self) -> list[str]:
        return [r["json"]["action"] for r in self.requests]


def ok(result):
    return FakeResponse({"result": result, "error": None})


def make_client(*responses) -> tuple[AnkiConnectClient, FakeSession]:
    http = FakeSession(*responses)
    return AnkiConnectClient(url="http://anki.test:8765", timeout=3.0, session=http), http


class TestInvoke:
    def test_payload_shape(self):
        client, http = make_client(ok(["Default"]))
        assert client.list_decks() == ["Default"]
        req = http.requests[0]
        assert req["url"] == "http://anki.test:8765"
        assert req["timeout"] == 3.0
        assert req["json"] == {"action": "deckNames", "version": ANKICONNECT_VERSION, "params": {}}
        assert ANKICONNECT_VERSION == 6

    def test_connection_refused_is_unreachable(self):
        client, _ = make_client(requests.exceptions.ConnectionError("refused"))
        with pytest.raises(ServiceUnreachable):
            client.list_decks()

    def test_timeout_is_transport_error(self):
        client, _ = make_client(requests.exceptions.Timeout("slow"))
        with pytest.raises(TransportError):
            client.list_decks()

    def test_http_error_status_is_transport_error(self):
        client, _ = make_client(FakeResponse(status=500))
        with pytest.raises(TransportError):
            client.list_decks()

    def test_non_null_error_is_rejected(self):
        client, _ = make_client(FakeResponse({"result": None, "error": "model was not found: Nope"}))
        with pytest.raises(ApplicationRejected) as exc:
            client.list_fields("Nope")
        assert exc.value.message == "model was not found: Nope"

    @pytest.mark.parametrize(
        "response",
        [
            FakeResponse(invalid_json=True),
            FakeResponse(["not", "an", "object"]),
            FakeResponse({"result": []}),
            ok("not a list"),
        ],
    )
    def test_malformed_responses_are_transport_errors(self, response):
        client, _ = make_client(response)
        with pytest.raises(TransportError):
            client.list_note_types()

    def test_list_fields_passes_model_name(self):
        client, http = make_client(ok(["Front", "Back"]))
        assert client.list_fields("Basic") == ["Front", "Back"]
        assert http.requests[0]["json"]["action"] == "modelFieldNames"
        assert http.requests[0]["json"]["params"] == {"modelName": "Basic"}


class TestStoreMediaFile:
    def test_uploads_basename_and_base64_data(self, tmp_path):
        image = tmp_path / "screenshot_20240101_120000.png"
        image.write_bytes(b"\x89PNG fake")
        client, http = make_client(ok("screenshot_20240101_120000.png"))

        assert client.store_media_file(image) == "screenshot_20240101_120000.png"
        params = http.requests[0]["json"]["params"]
        assert params["filename"] == "screenshot_20240101_120000.png"
        assert base64.b64decode(params["data"]) == b"\x89PNG fake"

    def test_invalid_filename(self):
        client, http = make_client()
        with pytest.raises(InvalidInput):
            client.store_media_file("/")
        assert http.requests == []

    def test_missing_file_is_local_error(self, tmp_path):
        client, http = make_client()
        with pytest.raises(LocalIOError):
            client.store_media_file(tmp_path / "gone.png")
        assert http.requests == []


class TestSubmitNote:
    def test_uploads_then_adds_note(self, tmp_path):
        image = tmp_path / "shot.png"
        image.write_bytes(b"png")
        client, http = make_client(ok("shot.png"), ok(1496198395707))

        note_id = client.submit_note("Books", "Basic", {"Front": "a", "Back": "b"}, ["math"], [image])

        assert note_id == 1496198395707
        assert http.actions == ["storeMediaFile", "addNote"]
        note = http.requests[1]["json"]["params"]["note"]
        assert note == {
            "deckName": "Books",
            "modelName": "Basic",
            "fields": {"Front": "a", "Back": "b"},
            "tags": ["math"],
            "options": {"allowDuplicate": False, "duplicateScope": "deck"},
        }

    def test_failed_upload_skips_add_note(self, tmp_path):
        image = tmp_path / "shot.png"
        image.write_bytes(b"png")
        client, http = make_client(requests.exceptions.ConnectionError("refused"))

        with pytest.raises(ServiceUnreachable):
            client.submit_note("Books", "Basic", {"Front": "a"}, [], [image])
        assert http.actions == ["storeMediaFile"]

    def test_without_attachments(self):
        client, http = make_client(ok(7))
        assert client.submit_note("Books", "Basic", {"Front": "a"}, []) == 7
        assert http.actions == ["addNote"]

    def test_duplicate_is_rejected(self):
        client, _ = make_client(
            FakeResponse({"result": None, "error": "cannot create note because it is a duplicate"})
        )
        with pytest.raises(ApplicationRejected):
            client.submit_note("Books", "Basic", {"Front": "a"}, [])
