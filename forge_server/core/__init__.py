"""Core subpackage public exports.

Framework-independent building blocks: validation, error taxonomy, rate
limiting and the pluggable mock backends.
"""

from forge_server.core.captions import CaptionGenerator, CaptionSet, MockCaptionGenerator
from forge_server.core.errors import ApiError
from forge_server.core.export import ExportArchive, ExportZipBuilder, build_export_archive
from forge_server.core.log_sink import NdjsonLogSink
from forge_server.core.rate_limit import InMemoryRateLimitStore, RateLimiter, RateLimitStore
from forge_server.core.transcription import MockTranscriber, Transcriber, TranscriptionResult

__all__ = [
    "ApiError",
    "CaptionGenerator",
    "CaptionSet",
    "ExportArchive",
    "ExportZipBuilder",
    "InMemoryRateLimitStore",
    "MockCaptionGenerator",
    "MockTranscriber",
    "NdjsonLogSink",
    "RateLimitStore",
    "RateLimiter",
    "Transcriber",
    "TranscriptionResult",
    "build_export_archive",
]
