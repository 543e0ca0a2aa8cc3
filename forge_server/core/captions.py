"""Caption generation.

The mock generator derives every caption from the same normalised slice of the
transcript, prefixed with the ``MOCK: `` watermark. Tone only selects the
template set; it never changes the slice.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Protocol

from forge_server.utils.constants import (
    CAPTION_SLICE_MAX,
    CAPTION_SLICE_MIN,
    WATERMARK_PREFIX,
)

_WHITESPACE_RE = re.compile(r"\s+")

# tone -> (tweet, instagram, youtube); each template embeds the watermarked core.
CAPTION_TEMPLATES: dict[str, tuple[str, str, str]] = {
    "default": (
        "{core}.",
        "{core} #forge #creators",
        "{core} - generated with Forge",
    ),
    "professional": (
        "{core}. Full breakdown in the thread.",
        "{core} #forge #insights",
        "{core} - a Forge production",
    ),
    "casual": (
        "{core} :)",
        "{core} #forge #vibes",
        "{core} - made chill with Forge",
    ),
    "funny": (
        "{core} (no, really)",
        "{core} #forge #lol",
        "{core} - Forge made us do it",
    ),
}


@dataclass(frozen=True)
class CaptionSet:
    """Platform-specific captions for one transcript."""

    tweet: str
    instagram: str
    youtube: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class CaptionGenerator(Protocol):
    """Interface for caption generators."""

    def generate(self, transcript: str, tone: str, max_len: int) -> CaptionSet:
        """Generate captions for a validated transcript."""
        ...


def effective_slice_length(max_len: int) -> int:
    """Clamp the requested caption length into ``[20, 180]``.

    The accepted ``maxLen`` range is wider (``[10, 500]``); the clamp still
    applies to every request.

    Args:
        max_len: Validated ``maxLen`` from the request.

    Returns:
        int: Number of characters of the transcript used for captions.
    """
    return max(CAPTION_SLICE_MIN, min(max_len, CAPTION_SLICE_MAX))


def transcript_slice(transcript: str, max_len: int) -> str:
    """Return the normalised transcript slice embedded in every caption.

    Whitespace runs collapse to a single space and the ends are trimmed before
    truncation.

    Args:
        transcript: Validated transcript text.
        max_len: Validated ``maxLen`` from the request.

    Returns:
        str: The slice, at most ``effective_slice_length(max_len)`` characters.
    """
    normalised = _WHITESPACE_RE.sub(" ", transcript).strip()
    return normalised[: effective_slice_length(max_len)]


class MockCaptionGenerator:
    """Caption generator built from fixed templates."""

    def __init__(
        self,
        templates: dict[str, tuple[str, str, str]] | None = None,
        watermark: str = WATERMARK_PREFIX,
    ) -> None:
        self.templates = templates or CAPTION_TEMPLATES
        self.watermark = watermark

    def generate(self, transcript: str, tone: str, max_len: int) -> CaptionSet:
        """Generate watermarked captions.

        Args:
            transcript: Validated transcript text.
            tone: Validated tone; unknown tones fall back to ``default``.
            max_len: Validated ``maxLen``.

        Returns:
            CaptionSet: Tweet, Instagram and YouTube captions.
        """
        core = f"{self.watermark}{transcript_slice(transcript, max_len)}"
        tweet, instagram, youtube = self.templates.get(tone, self.templates["default"])
        return CaptionSet(
            tweet=tweet.format(core=core),
            instagram=instagram.format(core=core),
            youtube=youtube.format(core=core),
        )
