"""Transcription backends.

Only the mock backend exists; it never decodes the upload. A real backend
implements :class:`Transcriber` and is injected through
``forge_server.api.dependencies.get_transcriber``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from forge_server.core.uploads import UploadedMedia
from forge_server.utils.constants import (
    MOCK_TRANSCRIPT_LANGUAGE,
    MOCK_TRANSCRIPT_TEXT,
)


@dataclass(frozen=True)
class TranscriptionResult:
    """Outcome of transcribing one upload."""

    text: str
    language: str
    mock: bool = False


class Transcriber(Protocol):
    """Interface for anything that turns an upload into text."""

    def transcribe(self, media: UploadedMedia) -> TranscriptionResult:
        """Transcribe an accepted upload."""
        ...


class MockTranscriber:
    """Transcriber that returns a fixed transcript for every upload."""

    def __init__(
        self,
        text: str = MOCK_TRANSCRIPT_TEXT,
        language: str = MOCK_TRANSCRIPT_LANGUAGE,
    ) -> None:
        self.text = text
        self.language = language

    def transcribe(self, media: UploadedMedia) -> TranscriptionResult:
        return TranscriptionResult(text=self.text, language=self.language, mock=True)
