"""NDJSON sink for client log records."""

from __future__ import annotations

import json
import sys
from typing import Any, TextIO


class NdjsonLogSink:
    """Write one JSON object per line to a text stream.

    The sink bypasses the ``logging`` configuration so that the output stays
    machine-readable regardless of handlers and formatters.

    Args:
        stream: Target stream; ``sys.stdout`` at write time when omitted.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def write(self, entry: dict[str, Any]) -> str:
        """Serialize and emit one entry.

        Args:
            entry: JSON-serializable mapping; key order is preserved.

        Returns:
            str: The emitted line without its trailing newline.
        """
        line = json.dumps(entry, ensure_ascii=False, default=str)
        self.stream.write(line + "\n")
        self.stream.flush()
        return line
