"""Tests for request validation primitives and request models."""

from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic_core import PydanticCustomError

from forge_server.api.models import CaptionsRequest, ClientLogRecord, ExportZipRequest
from forge_server.core import errors
from forge_server.core.errors import (
    ContentTypeError,
    InvalidJsonError,
    PayloadTooLargeError,
    RequestValidationFailed,
)
from forge_server.core.validation import (
    check_integer,
    json_type_name,
    parse_iso_timestamp,
    parse_json_body,
    require_json_content_type,
    validate_payload,
)


class TestContentTypeGate:
    """Test require_json_content_type."""

    @pytest.mark.parametrize(
        "content_type",
        [
            "application/json",
            "application/json; charset=utf-8",
            "Application/JSON",
            "application/merge-patch+json",
        ],
    )
    def test_json_media_types_pass(self, content_type: str) -> None:
        """Accept JSON media types with or without parameters."""
        require_json_content_type(content_type)

    @pytest.mark.parametrize(
        "content_type", [None, "", "text/plain", "multipart/form-data; boundary=x"]
    )
    def test_other_media_types_fail(self, content_type: str | None) -> None:
        """Reject anything that is not JSON."""
        with pytest.raises(ContentTypeError) as exc_info:
            require_json_content_type(content_type)

        assert exc_info.value.code == errors.INVALID_CONTENT_TYPE
        assert exc_info.value.message == "Content-Type must be application/json"


class TestParseJsonBody:
    """Test parse_json_body."""

    def test_empty_body_is_empty_object(self) -> None:
        """Decode an empty or blank body to ``{}``."""
        assert parse_json_body(b"", 100) == {}
        assert parse_json_body(b"  \n", 100) == {}

    def test_valid_document_is_decoded(self) -> None:
        """Return the decoded document unchanged."""
        assert parse_json_body(b'{"a": [1, 2]}', 100) == {"a": [1, 2]}

    @pytest.mark.parametrize("raw", [b"{", b"nope", b"\xff\xfe{"])
    def test_malformed_body_raises_invalid_json(self, raw: bytes) -> None:
        """Raise INVALID_JSON for unparsable bytes."""
        with pytest.raises(InvalidJsonError):
            parse_json_body(raw, 100)

    def test_size_is_checked_before_parsing(self) -> None:
        """Raise PAYLOAD_TOO_LARGE before looking at the content."""
        with pytest.raises(PayloadTooLargeError) as exc_info:
            parse_json_body(b"{" * 11, 10)

        assert exc_info.value.status_code == 413


class TestCheckInteger:
    """Test check_integer."""

    def test_integral_float_is_converted(self) -> None:
        """Accept 50.0 as 50."""
        assert check_integer(50.0, field="maxLen", minimum=10, maximum=500) == 50

    @pytest.mark.parametrize(
        ("value", "message"),
        [
            ("50", "Expected number, received string"),
            (None, "Expected number, received null"),
            (False, "Expected number, received boolean"),
            ([50], "Expected number, received array"),
            (float("nan"), "maxLen must be an integer"),
            (12.5, "maxLen must be an integer"),
            (9, "maxLen must be at least 10"),
            (501, "maxLen must be at most 500"),
        ],
    )
    def test_rules_report_messages(self, value, message: str) -> None:
        """Report the first violated rule."""
        with pytest.raises(PydanticCustomError) as exc_info:
            check_integer(value, field="maxLen", minimum=10, maximum=500)

        assert exc_info.value.message() == message
        assert exc_info.value.type == errors.VALIDATION_ERROR


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, "null"),
        (True, "boolean"),
        (1.5, "number"),
        ("x", "string"),
        ([], "array"),
        ({}, "object"),
    ],
)
def test_json_type_name(value, expected: str) -> None:
    """Name decoded values by their JSON type."""
    assert json_type_name(value) == expected


class TestParseIsoTimestamp:
    """Test parse_iso_timestamp."""

    @pytest.mark.parametrize(
        ("value", "microsecond"),
        [
            ("2024-05-01T12:00:00.1Z", 100000),
            ("2024-05-01T12:00:00.123Z", 123000),
            ("2024-05-01T12:00:00.1234567+00:00", 123456),
            ("2024-05-01T12:00:00Z", 0),
        ],
    )
    def test_fractional_seconds_are_normalised(
        self, value: str, microsecond: int
    ) -> None:
        """Accept any fractional precision and a Z suffix."""
        parsed = parse_iso_timestamp(value)

        assert parsed.microsecond == microsecond
        assert parsed.utcoffset() == timedelta(0)

    @pytest.mark.parametrize("value", ["yesterday", "2024-13-01", "2024-05-01T25:00:00"])
    def test_invalid_strings_raise(self, value: str) -> None:
        """Raise ValueError for non-ISO strings."""
        with pytest.raises(ValueError):
            parse_iso_timestamp(value)


class TestValidatePayload:
    """Test validate_payload against the request models."""

    def test_defaults_are_applied(self) -> None:
        """Fill in tone and maxLen defaults."""
        request = validate_payload(CaptionsRequest, {"transcript": "hello"})

        assert request.tone == "default"
        assert request.max_len == 120

    @pytest.mark.parametrize(
        ("payload", "field", "message"),
        [
            (
                {"transcript": "hello", "tone": None},
                "tone",
                "tone must be one of: default, professional, casual, funny",
            ),
            (
                {"transcript": "hello", "maxLen": None},
                "maxLen",
                "Expected number, received null",
            ),
        ],
    )
    def test_explicit_null_is_not_a_default(
        self, payload: dict, field: str, message: str
    ) -> None:
        """Reject null for fields that only default when omitted."""
        with pytest.raises(RequestValidationFailed) as exc_info:
            validate_payload(CaptionsRequest, payload)

        assert exc_info.value.field == field
        assert exc_info.value.message == message
        assert exc_info.value.code == errors.VALIDATION_ERROR

    def test_non_object_body_is_rejected(self) -> None:
        """Require a JSON object at the top level."""
        with pytest.raises(RequestValidationFailed) as exc_info:
            validate_payload(CaptionsRequest, [1, 2])

        assert exc_info.value.message == "Request body must be a JSON object"
        assert exc_info.value.field == ""

    def test_first_error_carries_alias_path(self) -> None:
        """Report the wire name of the failing field."""
        with pytest.raises(RequestValidationFailed) as exc_info:
            validate_payload(CaptionsRequest, {"transcript": "hi", "maxLen": 1000})

        assert exc_info.value.field == "maxLen"
        assert exc_info.value.code == errors.VALIDATION_ERROR

    def test_composite_rule_reports_transcript_field(self) -> None:
        """Attribute the export content rule to ``transcript``."""
        with pytest.raises(RequestValidationFailed) as exc_info:
            validate_payload(ExportZipRequest, {"captions": {}})

        assert exc_info.value.field == "transcript"
        assert exc_info.value.message == "At least one content field is required"

    def test_log_record_keeps_specific_codes(self) -> None:
        """Surface field-specific codes for the log sink."""
        with pytest.raises(RequestValidationFailed) as exc_info:
            validate_payload(
                ClientLogRecord,
                {
                    "ts": "2024-01-01T00:00:00Z",
                    "level": "loud",
                    "event": "e",
                    "userAnonId": "u",
                },
            )

        assert exc_info.value.code == errors.INVALID_LEVEL
        assert exc_info.value.field == "level"

    def test_log_record_presence_fault_names_its_field(self) -> None:
        """Carry the wire name of a missing field raised before field parsing."""
        with pytest.raises(RequestValidationFailed) as exc_info:
            validate_payload(
                ClientLogRecord,
                {"ts": "later", "level": "info", "event": "e", "payload": "x"},
            )

        assert exc_info.value.code == errors.INVALID_USER_ANON_ID
        assert exc_info.value.field == "userAnonId"


class TestExportZipRequest:
    """Test ExportZipRequest.named_contents."""

    def test_fixed_fields_precede_captions(self) -> None:
        """Order entries transcript, tweet, instagram, youtube, then captions."""
        request = ExportZipRequest.model_validate(
            {
                "captions": {"z": "zed", "a": "ay"},
                "youtube": "yt",
                "transcript": "tr",
                "tweet": "tw",
            }
        )

        assert request.named_contents() == [
            ("transcript", "tr"),
            ("tweet", "tw"),
            ("youtube", "yt"),
            ("z", "zed"),
            ("a", "ay"),
        ]

    def test_unknown_fields_are_ignored(self) -> None:
        """Drop fields the model does not know."""
        request = ExportZipRequest.model_validate({"tweet": "t", "extra": 1})

        assert request.named_contents() == [("tweet", "t")]


class TestClientLogRecord:
    """Test ClientLogRecord timestamp handling."""

    @pytest.mark.parametrize(
        "ts",
        [
            "2024-05-01T12:00:00Z",
            "2024-05-01T12:00:00.123Z",
            "2024-05-01T12:00:00.1Z",
            "2024-05-01T12:00:00.1234567Z",
            "2024-05-01T12:00:00+02:00",
            "2024-05-01",
        ],
    )
    def test_iso_timestamps_are_accepted(self, ts: str) -> None:
        """Accept ISO-8601 dates and datetimes, including the Z suffix."""
        record = ClientLogRecord.model_validate(
            {"ts": ts, "level": "warn", "event": "e", "userAnonId": "u"}
        )

        assert record.ts == ts

    def test_entry_preserves_field_order(self) -> None:
        """Emit wire names in sink order."""
        record = ClientLogRecord.model_validate(
            {
                "payload": {"k": 1},
                "userAnonId": "u",
                "event": "e",
                "level": "debug",
                "ts": "2024-05-01T12:00:00Z",
            }
        )

        assert list(record.to_ndjson_entry()) == [
            "ts",
            "level",
            "event",
            "userAnonId",
            "payload",
        ]
