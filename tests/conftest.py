"""Pytest configuration and fixtures."""

from __future__ import annotations

import io
from collections.abc import Callable, Iterator
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from forge_server.api.app import create_app
from forge_server.core.log_sink import NdjsonLogSink


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide a clock that only moves when told to."""
    return FakeClock()


@pytest.fixture
def log_stream() -> io.StringIO:
    """Provide an in-memory stream capturing NDJSON sink output."""
    return io.StringIO()


@pytest.fixture
def make_app(log_stream: io.StringIO) -> Callable[..., FastAPI]:
    """Return a factory building apps with rate limiting off by default.

    Keyword arguments are forwarded to ``create_app``.
    """

    def _make(**overrides: Any) -> FastAPI:
        options: dict[str, Any] = {
            "rate_limit_enabled": False,
            "log_sink": NdjsonLogSink(log_stream),
            "environment": "test",
        }
        options.update(overrides)
        return create_app(**options)

    return _make


@pytest.fixture
def app(make_app: Callable[..., FastAPI]) -> FastAPI:
    """Provide a default application instance."""
    return make_app()


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """Create a TestClient for the default application.

    Yields:
        TestClient: Client bound to ``app``.
    """
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides = {}
