"""ZIP export of generated text artifacts.

This module implements the Builder Pattern for assembling an in-memory ZIP
archive with one UTF-8 ``.txt`` entry per named text blob.
"""

from __future__ import annotations

import base64
import io
import logging
import re
import unicodedata
import zipfile
from collections.abc import Iterable
from dataclasses import dataclass, field
from types import TracebackType

logger = logging.getLogger(__name__)

ZIP_MEDIA_TYPE = "application/zip"


@dataclass
class ZipConfiguration:
    """Configuration for export archive creation."""

    compression_method: int = zipfile.ZIP_DEFLATED
    compression_level: int | None = 9
    entry_extension: str = ".txt"
    max_stem_length: int = 100


@dataclass
class ZipStats:
    """Statistics for one archive build."""

    files_added: int = 0
    total_size_bytes: int = 0
    compressed_size_bytes: int = 0
    renamed: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ExportArchive:
    """A finished export archive."""

    content: bytes
    files: list[str]
    filename: str

    @property
    def content_disposition(self) -> str:
        return f'attachment; filename="{self.filename}"'

    def to_base64(self) -> str:
        """Return the archive bytes base64-encoded for JSON transport."""
        return base64.b64encode(self.content).decode("ascii")


class ExportZipBuilder:
    """Builder for in-memory export archives.

    Entry names are derived from stems: ``transcript`` becomes
    ``transcript.txt``. Unsafe characters in stems are replaced and duplicate
    names receive a numeric suffix, so every added blob yields exactly one
    entry.
    """

    def __init__(self, config: ZipConfiguration | None = None) -> None:
        """Initialize the export builder.

        Args:
            config: Archive configuration options.
        """
        self.config = config or ZipConfiguration()
        self.stats = ZipStats()

        self._buffer: io.BytesIO | None = None
        self._zipfile: zipfile.ZipFile | None = None
        self._files: list[str] = []

    @property
    def is_open(self) -> bool:
        return self._zipfile is not None

    def create(self) -> ExportZipBuilder:
        """Open a new in-memory archive.

        Returns:
            ExportZipBuilder: Self for method chaining.

        Raises:
            RuntimeError: If an archive is already open.
        """
        if self.is_open:
            raise RuntimeError("ZIP archive is already open")

        self._buffer = io.BytesIO()
        self._zipfile = zipfile.ZipFile(
            self._buffer,
            "w",
            compression=self.config.compression_method,
            compresslevel=self.config.compression_level,
        )
        self._files = []
        self.stats = ZipStats()
        return self

    def add_text(self, stem: str, text: str) -> ExportZipBuilder:
        """Add one UTF-8 text entry.

        Args:
            stem: Entry name without extension.
            text: Entry content.

        Returns:
            ExportZipBuilder: Self for method chaining.

        Raises:
            RuntimeError: If the archive is not open.
        """
        if self._zipfile is None:
            raise RuntimeError("ZIP archive is not open")

        archive_name = self._unique_name(self.safe_stem(stem))
        if archive_name != f"{stem}{self.config.entry_extension}":
            self.stats.renamed.append(archive_name)

        payload = text.encode("utf-8")
        self._zipfile.writestr(archive_name, payload)
        self._files.append(archive_name)
        self.stats.files_added += 1
        self.stats.total_size_bytes += len(payload)
        return self

    def add_many(self, contents: Iterable[tuple[str, str]]) -> ExportZipBuilder:
        """Add several ``(stem, text)`` entries in order.

        Args:
            contents: Pairs of entry stem and text.

        Returns:
            ExportZipBuilder: Self for method chaining.
        """
        for stem, text in contents:
            self.add_text(stem, text)
        return self

    def build(self, filename: str) -> ExportArchive:
        """Finalize the archive.

        Args:
            filename: Download name advertised to clients.

        Returns:
            ExportArchive: The archive bytes and entry names.

        Raises:
            RuntimeError: If the archive is not open.
        """
        if self._zipfile is None or self._buffer is None:
            raise RuntimeError("ZIP archive is not open")

        try:
            self.stats.compressed_size_bytes = sum(
                info.compress_size for info in self._zipfile.infolist()
            )
            self._zipfile.close()
            archive = ExportArchive(
                content=self._buffer.getvalue(),
                files=list(self._files),
                filename=filename,
            )
        finally:
            self._zipfile = None
            self._buffer = None

        logger.info(
            "Built export archive %s (%d files, %d bytes)",
            filename,
            self.stats.files_added,
            len(archive.content),
        )
        return archive

    def safe_stem(self, stem: str) -> str:
        """Return a stem safe for use as a flat archive entry name.

        Args:
            stem: Client-supplied entry stem.

        Returns:
            str: Sanitised stem; ``caption`` if nothing usable remains.
        """
        normalized = unicodedata.normalize("NFC", stem)
        # Path separators and Windows-reserved characters would create folders
        # or unreadable names on extraction.
        safe = re.sub(r'[\\/<>:"|?*\x00-\x1f]', "_", normalized).strip().strip(".")
        if not safe:
            safe = "caption"
        if len(safe) > self.config.max_stem_length:
            safe = safe[: self.config.max_stem_length].strip(" .")
        return safe

    def _unique_name(self, stem: str) -> str:
        ext = self.config.entry_extension
        candidate = f"{stem}{ext}"
        counter = 2
        while candidate in self._files:
            candidate = f"{stem}_{counter}{ext}"
            counter += 1
        return candidate

    def __enter__(self) -> ExportZipBuilder:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._zipfile is not None:
            try:
                self._zipfile.close()
            except OSError as e:
                logger.error("Error closing ZIP file: %s", str(e))
            finally:
                self._zipfile = None
                self._buffer = None


def build_export_archive(
    contents: Iterable[tuple[str, str]],
    filename: str,
    config: ZipConfiguration | None = None,
) -> ExportArchive:
    """Build an export archive from ``(stem, text)`` pairs.

    Args:
        contents: Entry stems and their text, in archive order.
        filename: Download name advertised to clients.
        config: Optional archive configuration.

    Returns:
        ExportArchive: The finished archive.
    """
    with ExportZipBuilder(config) as builder:
        return builder.create().add_many(contents).build(filename)
