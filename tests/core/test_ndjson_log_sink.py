"""Tests for the NDJSON client log sink."""

from __future__ import annotations

import io
import json

import pytest

from forge_server.core.log_sink import NdjsonLogSink


def test_write_emits_one_line_per_entry() -> None:
    """Append a newline-terminated JSON object per call."""
    stream = io.StringIO()
    sink = NdjsonLogSink(stream)

    sink.write({"ts": "t1", "level": "info"})
    sink.write({"ts": "t2", "level": "warn"})

    lines = stream.getvalue().split("\n")
    assert lines[-1] == ""
    assert [json.loads(line)["ts"] for line in lines[:-1]] == ["t1", "t2"]


def test_key_order_and_unicode_are_preserved() -> None:
    """Keep insertion order and write non-ASCII characters verbatim."""
    stream = io.StringIO()

    line = NdjsonLogSink(stream).write({"b": "ü", "a": 1})

    assert line == '{"b": "ü", "a": 1}'
    assert stream.getvalue() == line + "\n"


def test_default_stream_is_stdout(capsys: pytest.CaptureFixture[str]) -> None:
    """Write to the current ``sys.stdout`` when no stream is given."""
    NdjsonLogSink().write({"event": "x"})

    assert capsys.readouterr().out == '{"event": "x"}\n'
