"""Tests for the ``POST /api/log`` NDJSON client log sink."""

from __future__ import annotations

import io
import json

import pytest
from fastapi.testclient import TestClient

VALID_RECORD = {
    "ts": "2024-05-01T12:00:00.000Z",
    "level": "info",
    "event": "export_clicked",
    "userAnonId": "anon-123",
    "payload": {"format": "zip", "count": 3},
}


def test_valid_record_is_written_as_one_ndjson_line(
    client: TestClient, log_stream: io.StringIO
) -> None:
    """Emit exactly one line with the canonical key order."""
    response = client.post("/api/log", json=VALID_RECORD)

    assert response.status_code == 200
    assert response.json() == {
        "ok": True,
        "message": "Log entry recorded successfully",
    }

    lines = log_stream.getvalue().splitlines()
    assert len(lines) == 1
    entry = json.loads(lines[0])
    assert list(entry) == ["ts", "level", "event", "userAnonId", "payload"]
    assert entry == VALID_RECORD


def test_missing_payload_defaults_to_empty_object(
    client: TestClient, log_stream: io.StringIO
) -> None:
    """Write ``payload: {}`` when the client omits it."""
    record = {key: value for key, value in VALID_RECORD.items() if key != "payload"}

    response = client.post("/api/log", json=record)

    assert response.status_code == 200
    assert json.loads(log_stream.getvalue())["payload"] == {}


@pytest.mark.parametrize(
    ("overrides", "code", "message"),
    [
        (
            {"ts": None},
            "INVALID_TS",
            "Missing or invalid required field: ts (must be ISO timestamp string)",
        ),
        ({"ts": "yesterday"}, "INVALID_TS", "ts field must be a valid ISO timestamp string"),
        (
            {"level": 3},
            "INVALID_LEVEL",
            "Missing or invalid required field: level (must be a string)",
        ),
        (
            {"level": "verbose"},
            "INVALID_LEVEL",
            "level must be one of: debug, info, warn, error",
        ),
        (
            {"event": ""},
            "INVALID_EVENT",
            "Missing or invalid required field: event (must be a string)",
        ),
        (
            {"event": "e" * 101},
            "FIELD_TOO_LONG",
            "event field is too long (max 100 characters)",
        ),
        (
            {"userAnonId": None},
            "INVALID_USER_ANON_ID",
            "Missing or invalid required field: userAnonId (must be a string)",
        ),
        (
            {"userAnonId": "u" * 101},
            "FIELD_TOO_LONG",
            "userAnonId field is too long (max 100 characters)",
        ),
        ({"payload": "text"}, "INVALID_PAYLOAD", "payload field must be an object"),
    ],
)
def test_invalid_records_report_field_codes(
    client: TestClient,
    log_stream: io.StringIO,
    overrides: dict,
    code: str,
    message: str,
) -> None:
    """Reject invalid records with their field-specific code and write nothing."""
    response = client.post("/api/log", json={**VALID_RECORD, **overrides})

    assert response.status_code == 400
    body = response.json()
    assert body["ok"] is False
    assert body["code"] == code
    assert body["message"] == message
    assert log_stream.getvalue() == ""


@pytest.mark.parametrize(
    ("overrides", "code"),
    [
        ({"ts": "not-a-date", "level": 5}, "INVALID_LEVEL"),
        ({"ts": "not-a-date", "payload": "str"}, "INVALID_PAYLOAD"),
        ({"level": "verbose", "userAnonId": ""}, "INVALID_USER_ANON_ID"),
        ({"ts": "not-a-date", "level": "verbose"}, "INVALID_TS"),
        ({"level": "verbose", "event": "e" * 101}, "INVALID_LEVEL"),
        ({"event": "e" * 101, "userAnonId": "u" * 101}, "FIELD_TOO_LONG"),
    ],
)
def test_presence_checks_run_before_format_checks(
    client: TestClient, log_stream: io.StringIO, overrides: dict, code: str
) -> None:
    """Report missing or mistyped fields before any format or length fault."""
    response = client.post("/api/log", json={**VALID_RECORD, **overrides})

    assert response.status_code == 400
    assert response.json()["code"] == code
    assert log_stream.getvalue() == ""


@pytest.mark.parametrize(
    ("payload", "written"),
    [([1, 2], [1, 2]), (None, {}), (0, {}), ("", {}), (False, {})],
)
def test_array_and_empty_payloads_are_accepted(
    client: TestClient, log_stream: io.StringIO, payload: object, written: object
) -> None:
    """Write arrays verbatim and empty values as an empty object."""
    response = client.post("/api/log", json={**VALID_RECORD, "payload": payload})

    assert response.status_code == 200
    assert json.loads(log_stream.getvalue())["payload"] == written


def test_event_at_limit_is_accepted(client: TestClient) -> None:
    """Accept an event of exactly 100 characters."""
    response = client.post("/api/log", json={**VALID_RECORD, "event": "e" * 100})

    assert response.status_code == 200


def test_empty_body_fails_on_timestamp_first(client: TestClient) -> None:
    """Check fields in order so an empty record reports INVALID_TS."""
    response = client.post("/api/log", json={})

    assert response.json()["code"] == "INVALID_TS"


def test_non_json_body_is_treated_as_empty(client: TestClient) -> None:
    """Treat non-JSON content types as an empty record."""
    response = client.post(
        "/api/log", content=b"hello", headers={"Content-Type": "text/plain"}
    )

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_TS"


def test_malformed_json_is_rejected(client: TestClient) -> None:
    """Report INVALID_JSON for unparsable JSON bodies."""
    response = client.post(
        "/api/log", content=b"{nope", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_JSON"


def test_legacy_name_meta_shape_is_not_accepted(client: TestClient) -> None:
    """Reject the old ``name``/``meta`` record shape."""
    response = client.post(
        "/api/log",
        json={"ts": VALID_RECORD["ts"], "level": "info", "name": "x", "meta": {}},
    )

    assert response.json()["code"] == "INVALID_EVENT"
