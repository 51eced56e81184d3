from __future__ import annotations

from typing import Callable

import httpx
import pytest

_RealAsyncClient = httpx.AsyncClient


@pytest.fixture
def mock_http(monkeypatch):
    """Route every ``httpx.AsyncClient`` through a handler.

    Usage::

        requests = mock_http(lambda request: httpx.Response(200, json={...}))

    Returns the list of requests seen, in order.
    """

    def _install(handler: Callable[[httpx.Request], httpx.Response]) -> list[httpx.Request]:
        seen: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        def _client(*args, **kwargs):
            kwargs["transport"] = httpx.MockTransport(_record)
            return _RealAsyncClient(*args, **kwargs)

        monkeypatch.setattr(httpx, "AsyncClient", _client)
        return seen

    return _install


@pytest.fixture
def nasa_key(monkeypatch):
    monkeypatch.setenv("NASA_API_KEY", "test-nasa-key")
    return "test-nasa-key"


@pytest.fixture
def gemini_key(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-gemini-key")
    monkeypatch.delenv("GEMINI_MODEL", raising=False)
    return "test-gemini-key"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in ("NASA_API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY", "SOURCE_FAILURE_POLICY"):
        monkeypatch.delenv(var, raising=False)
