"""Data models for the Forge API.

This module contains the Pydantic models for request bodies. Field validators
delegate to :mod:`forge_server.core.validation` so that every field applies its
rules in the same order and reports client-facing messages verbatim.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from forge_server.core import errors
from forge_server.core.validation import (
    check_choice,
    check_integer,
    check_optional_string,
    check_string,
    fail,
    json_type_name,
    parse_iso_timestamp,
)
from forge_server.utils import constants


class CaptionsRequest(BaseModel):
    """Body of ``POST /api/captions``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    transcript: str = Field(
        default=None,
        validate_default=True,
        description="Transcript to derive captions from",
    )
    tone: str = Field(
        default="default",
        validate_default=True,
        description="Caption tone (default, professional, casual, funny)",
    )
    max_len: int = Field(
        default=constants.CAPTIONS_MAX_LEN_DEFAULT,
        alias="maxLen",
        validate_default=True,
        description="Requested caption length",
    )

    @field_validator("transcript", mode="before")
    @classmethod
    def _check_transcript(cls, value: Any) -> str:
        return check_string(
            value,
            missing_message="transcript is required and must be a non-empty string",
            reject_blank=True,
            blank_message="transcript cannot be empty or only whitespace",
            max_chars=constants.CAPTIONS_TRANSCRIPT_MAX_CHARS,
            too_long_message="transcript is too long (max 10,000 characters)",
        )

    @field_validator("tone", mode="before")
    @classmethod
    def _check_tone(cls, value: Any) -> str:
        return check_choice(
            value,
            constants.CAPTION_TONES,
            f"tone must be one of: {', '.join(constants.CAPTION_TONES)}",
        )

    @field_validator("max_len", mode="before")
    @classmethod
    def _check_max_len(cls, value: Any) -> int:
        return check_integer(
            value,
            field="maxLen",
            minimum=constants.CAPTIONS_MAX_LEN_MIN,
            maximum=constants.CAPTIONS_MAX_LEN_MAX,
        )


class ExportZipRequest(BaseModel):
    """Body of ``POST /api/exportZip``.

    Every field is optional, but at least one must carry non-empty content.
    """

    model_config = ConfigDict(extra="ignore")

    composite_field: ClassVar[str] = "transcript"

    transcript: str | None = None
    tweet: str | None = None
    instagram: str | None = None
    youtube: str | None = None
    captions: dict[str, str] | None = None

    @field_validator("transcript", mode="before")
    @classmethod
    def _check_transcript(cls, value: Any) -> str | None:
        return check_optional_string(
            value,
            max_chars=constants.EXPORT_TRANSCRIPT_MAX_CHARS,
            too_long_message="transcript is too long (max 50,000 characters)",
        )

    @field_validator("tweet", "instagram", "youtube", mode="before")
    @classmethod
    def _check_caption_field(cls, value: Any, info: ValidationInfo) -> str | None:
        return check_optional_string(
            value,
            max_chars=constants.EXPORT_CAPTION_MAX_CHARS,
            too_long_message=f"{info.field_name} is too long (max 10,000 characters)",
        )

    @field_validator("captions", mode="before")
    @classmethod
    def _check_captions(cls, value: Any) -> dict[str, str] | None:
        if value is None:
            return None
        if not isinstance(value, dict):
            raise fail(f"Expected object, received {json_type_name(value)}")
        for item in value.values():
            if item is None:
                raise fail("Expected string, received null")
            check_optional_string(
                item,
                max_chars=constants.EXPORT_CAPTION_MAX_CHARS,
                too_long_message="caption value is too long (max 10,000 characters)",
            )
        return value

    @model_validator(mode="after")
    def _require_content(self) -> ExportZipRequest:
        if not self.named_contents():
            raise fail("At least one content field is required")
        return self

    def named_contents(self) -> list[tuple[str, str]]:
        """Return ``(stem, text)`` pairs for every non-empty content field.

        Fixed fields come first in a stable order, followed by the free-form
        captions in their submitted order.

        Returns:
            list[tuple[str, str]]: Entry stems and their text.
        """
        contents = [
            (name, text)
            for name, text in (
                ("transcript", self.transcript),
                ("tweet", self.tweet),
                ("instagram", self.instagram),
                ("youtube", self.youtube),
            )
            if text
        ]
        contents.extend((key, text) for key, text in (self.captions or {}).items() if text)
        return contents


class ClientLogRecord(BaseModel):
    """Body of ``POST /api/log``.

    Each field reports its own error code rather than ``VALIDATION_ERROR``.
    Presence and type of every field are checked first, in wire order; the
    timestamp format, level name and field lengths are checked afterwards.
    """

    model_config = ConfigDict(extra="ignore")

    required_fields: ClassVar[tuple[tuple[str, str, str], ...]] = (
        (
            "ts",
            errors.INVALID_TS,
            "Missing or invalid required field: ts (must be ISO timestamp string)",
        ),
        (
            "level",
            errors.INVALID_LEVEL,
            "Missing or invalid required field: level (must be a string)",
        ),
        (
            "event",
            errors.INVALID_EVENT,
            "Missing or invalid required field: event (must be a string)",
        ),
        (
            "userAnonId",
            errors.INVALID_USER_ANON_ID,
            "Missing or invalid required field: userAnonId (must be a string)",
        ),
    )

    ts: str
    level: str
    event: str
    user_anon_id: str = Field(alias="userAnonId")
    payload: dict[str, Any] | list[Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _check_required_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        for name, code, message in cls.required_fields:
            value = data.get(name)
            if not isinstance(value, str) or not value:
                raise fail(message, code, field=name)
        payload = data.get("payload")
        if payload and not isinstance(payload, (dict, list)):
            raise fail(
                "payload field must be an object", errors.INVALID_PAYLOAD, field="payload"
            )
        return data

    @field_validator("ts")
    @classmethod
    def _check_ts(cls, value: str) -> str:
        try:
            parse_iso_timestamp(value)
        except ValueError:
            raise fail(
                "ts field must be a valid ISO timestamp string", errors.INVALID_TS
            ) from None
        return value

    @field_validator("level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        if value not in constants.CLIENT_LOG_LEVELS:
            raise fail(
                f"level must be one of: {', '.join(constants.CLIENT_LOG_LEVELS)}",
                errors.INVALID_LEVEL,
            )
        return value

    @field_validator("event", "user_anon_id")
    @classmethod
    def _check_length(cls, value: str, info: ValidationInfo) -> str:
        if len(value) > constants.LOG_FIELD_MAX_CHARS:
            name = cls.model_fields[info.field_name].alias or info.field_name
            limit = constants.LOG_FIELD_MAX_CHARS
            raise fail(
                f"{name} field is too long (max {limit} characters)",
                errors.FIELD_TOO_LONG,
            )
        return value

    @field_validator("payload", mode="before")
    @classmethod
    def _default_empty_payload(cls, value: Any) -> Any:
        return value or {}

    def to_ndjson_entry(self) -> dict[str, Any]:
        """Return the record with its wire field names in sink order.

        Returns:
            dict[str, Any]: ``ts, level, event, userAnonId, payload``.
        """
        return {
            "ts": self.ts,
            "level": self.level,
            "event": self.event,
            "userAnonId": self.user_anon_id,
            "payload": self.payload,
        }
