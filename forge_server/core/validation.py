"""Request validation primitives.

The validator runs in three stages, each failing fast with an
:class:`~forge_server.core.errors.ApiError`:

1. Content-type gate for JSON endpoints (``INVALID_CONTENT_TYPE``).
2. Body decoding (``INVALID_JSON`` / ``PAYLOAD_TOO_LARGE``).
3. Schema validation through a pydantic model; only the first violated rule
   is reported.

The ``check_*`` helpers are used inside model field validators so that each
field applies its rules in a fixed order: required/type, whitespace, length,
then enum or range membership.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Iterable
from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError
from pydantic_core import PydanticCustomError

from forge_server.core.errors import (
    FIELD_ERROR_CODES,
    VALIDATION_ERROR,
    ContentTypeError,
    InvalidJsonError,
    PayloadTooLargeError,
    RequestValidationFailed,
)

ModelT = TypeVar("ModelT", bound=BaseModel)

JSON_MEDIA_TYPE = "application/json"

_FRACTION_PATTERN = re.compile(r"\.(\d+)")


def json_type_name(value: Any) -> str:
    """Return the JSON type name of a decoded value.

    Args:
        value: A value produced by ``json.loads``.

    Returns:
        str: One of ``null``, ``boolean``, ``number``, ``string``, ``array``
        or ``object``.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def fail(
    message: str, code: str = VALIDATION_ERROR, *, field: str | None = None
) -> PydanticCustomError:
    """Build a field error whose pydantic type is the stable error code.

    Args:
        message: Message reported to the client.
        code: Error code carried as the pydantic error type.
        field: Wire name of the offending field, for errors raised by model
            validators where pydantic has no location.

    Returns:
        PydanticCustomError: Error to raise from a field validator.
    """
    if field is None:
        return PydanticCustomError(code, message)
    return PydanticCustomError(code, message, {"field": field})


def check_string(
    value: Any,
    *,
    missing_message: str,
    max_chars: int | None = None,
    too_long_message: str | None = None,
    reject_blank: bool = False,
    blank_message: str | None = None,
    missing_code: str = VALIDATION_ERROR,
    too_long_code: str = VALIDATION_ERROR,
) -> str:
    """Validate a required, non-empty string field.

    Args:
        value: Raw decoded value.
        missing_message: Message when the value is absent, empty or not a string.
        max_chars: Optional inclusive upper bound on length.
        too_long_message: Message when ``max_chars`` is exceeded.
        reject_blank: Whether whitespace-only strings are rejected.
        blank_message: Message for whitespace-only strings.
        missing_code: Error code for the required/type rule.
        too_long_code: Error code for the length rule.

    Returns:
        str: The unmodified string.

    Raises:
        PydanticCustomError: On the first violated rule.
    """
    if not isinstance(value, str) or not value:
        raise fail(missing_message, missing_code)
    if reject_blank and not value.strip():
        raise fail(blank_message or missing_message, missing_code)
    if max_chars is not None and len(value) > max_chars:
        raise fail(too_long_message or missing_message, too_long_code)
    return value


def check_optional_string(
    value: Any, *, max_chars: int, too_long_message: str
) -> str | None:
    """Validate an optional string field with an upper length bound.

    Args:
        value: Raw decoded value, ``None`` when absent.
        max_chars: Inclusive upper bound on length.
        too_long_message: Message when ``max_chars`` is exceeded.

    Returns:
        str | None: The string, or ``None`` when absent.

    Raises:
        PydanticCustomError: If the value is not a string or is too long.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise fail(f"Expected string, received {json_type_name(value)}")
    if len(value) > max_chars:
        raise fail(too_long_message)
    return value


def check_choice(value: Any, choices: Iterable[str], message: str) -> str:
    """Validate enum membership.

    Args:
        value: Raw decoded value.
        choices: Allowed values.
        message: Message when the value is not allowed.

    Returns:
        str: The accepted value.

    Raises:
        PydanticCustomError: If the value is not one of ``choices``.
    """
    if not isinstance(value, str) or value not in tuple(choices):
        raise fail(message)
    return value


def check_integer(value: Any, *, field: str, minimum: int, maximum: int) -> int:
    """Validate a JSON number that must be an integer within a range.

    Numeric strings and booleans are rejected; integral floats such as
    ``50.0`` are accepted.

    Args:
        value: Raw decoded value.
        field: Field name used in messages.
        minimum: Inclusive lower bound.
        maximum: Inclusive upper bound.

    Returns:
        int: The validated integer.

    Raises:
        PydanticCustomError: On the first violated rule.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise fail(f"Expected number, received {json_type_name(value)}")
    if isinstance(value, float) and (not math.isfinite(value) or not value.is_integer()):
        raise fail(f"{field} must be an integer")
    if value < minimum:
        raise fail(f"{field} must be at least {minimum}")
    if value > maximum:
        raise fail(f"{field} must be at most {maximum}")
    return int(value)


def parse_iso_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 date or date-time string.

    A trailing ``Z`` means UTC. Fractional seconds of any precision are padded
    or truncated to microseconds, since ``datetime.fromisoformat`` only takes
    three or six digits before Python 3.11.

    Args:
        value: Timestamp string such as ``2024-05-01T12:00:00.1Z``.

    Returns:
        datetime: The parsed value.

    Raises:
        ValueError: If the string is not an ISO-8601 date or date-time.
    """
    candidate = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    candidate = _FRACTION_PATTERN.sub(
        lambda match: "." + match.group(1)[:6].ljust(6, "0"), candidate, count=1
    )
    return datetime.fromisoformat(candidate)


def require_json_content_type(content_type: str | None) -> None:
    """Reject requests whose media type is not JSON.

    Args:
        content_type: Raw ``Content-Type`` header value.

    Raises:
        ContentTypeError: If the media type is not ``application/json`` or a
            ``+json`` structured suffix.
    """
    media_type = (content_type or "").split(";", 1)[0].strip().lower()
    if media_type == JSON_MEDIA_TYPE:
        return
    if media_type.startswith("application/") and media_type.endswith("+json"):
        return
    raise ContentTypeError("Content-Type must be application/json")


def parse_json_body(raw: bytes, max_bytes: int) -> Any:
    """Decode a JSON request body.

    Args:
        raw: Raw body bytes.
        max_bytes: Maximum accepted body size.

    Returns:
        Any: The decoded document, or an empty dict for an empty body.

    Raises:
        PayloadTooLargeError: If the body exceeds ``max_bytes``.
        InvalidJsonError: If the body is not valid UTF-8 JSON.
    """
    if len(raw) > max_bytes:
        raise PayloadTooLargeError(
            f"Request body is too large (max {max_bytes} bytes)"
        )
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise InvalidJsonError("Invalid JSON format") from exc


def validate_payload(model: type[ModelT], data: Any) -> ModelT:
    """Validate decoded JSON against a request model.

    Args:
        model: Pydantic model class describing the request body.
        data: Decoded JSON document.

    Returns:
        ModelT: The validated, defaulted model instance.

    Raises:
        RequestValidationFailed: With the first error's message, field path
            and code.
    """
    if not isinstance(data, dict):
        raise RequestValidationFailed("Request body must be a JSON object")
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        loc = ".".join(str(part) for part in first.get("loc", ()))
        context = first.get("ctx") or {}
        field = loc or context.get("field") or getattr(model, "composite_field", "")
        code = first["type"] if first["type"] in FIELD_ERROR_CODES else VALIDATION_ERROR
        raise RequestValidationFailed(first["msg"], field=field, code=code) from exc
