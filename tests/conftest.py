"""Pytest configuration and fixtures."""

from typing import Awaitable, Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from clob_proxy.app import create_app
from clob_proxy.config import Settings

UPSTREAM = "https://upstream.test"

Handler = Callable[[httpx.Request], Awaitable[httpx.Response]]


class RecordingUpstream:
    """Upstream double that records every request it receives."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.handler: Handler | None = None

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.handler is not None:
            return await self.handler(request)
        if request.method == "HEAD":
            return httpx.Response(200)
        return httpx.Response(
            200,
            json={
                "method": request.method,
                "path": request.url.raw_path.decode("ascii"),
            },
        )

    @property
    def calls(self) -> int:
        return len(self.requests)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch, tmp_path):
    """Keep the developer's environment and .env file out of the tests."""
    for name in ("CLOB_TARGET", "API_KEY", "PORT", "LISTEN_HOST", "UPSTREAM_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def upstream():
    """Recording upstream double."""
    return RecordingUpstream()


@pytest.fixture
def make_settings():
    """Build settings pointed at the upstream double."""

    def _make(**overrides) -> Settings:
        values = {"clob_target": UPSTREAM, "upstream_timeout": 2.0}
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def make_client(upstream, make_settings):
    """Start proxy apps wired to the upstream double."""
    clients = []

    def _make(**overrides) -> TestClient:
        app = create_app(make_settings(**overrides), transport=upstream.transport)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    """Proxy test client without a shared secret."""
    return make_client()


@pytest.fixture
def secured_client(make_client):
    """Proxy test client requiring X-Proxy-Key on writes."""
    return make_client(api_key="s3cret")
