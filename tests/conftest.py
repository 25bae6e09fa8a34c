"""Pytest configuration and shared fixtures"""

import json
import os
from itertools import count

import httpx
import pytest

from dep_mcp.client import DEPClient
from dep_mcp.config import Config
from dep_mcp.service import DEPService
from dep_mcp.store import MemoryCredentialStore

# Configure pytest-asyncio
pytest_plugins = ("pytest_asyncio",)

BASE_URL = "https://dep.test"

ACME_TOKENS = {
    "consumer_key": "CK_acme",
    "consumer_secret": "CS_acme",
    "access_token": "AT_acme",
    "access_secret": "AS_acme",
    "access_token_expiry": "2030-01-01T00:00:00Z",
}


class FakeDEP:
    """Loopback DEP server double for httpx.MockTransport.

    /session hands out session-1, session-2, ... unless ``session_reply`` is
    set. Other routes answer from per-(method, path) queues; the last queued
    reply repeats. Every request is recorded.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], list] = {}
        self.session_reply: dict | None = None
        self._tokens = (f"session-{i}" for i in count(1))

    def route(self, method: str, path: str, *replies) -> None:
        """Queue replies: dicts of httpx.Response kwargs, or callables."""
        self.routes[(method, path)] = list(replies)

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/session":
            if self.session_reply is not None:
                return httpx.Response(**self.session_reply)
            return httpx.Response(200, json={"auth_session_token": next(self._tokens)})

        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, text="NOT_FOUND")
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(reply):
            return reply(request)
        return httpx.Response(**reply)


def echo(request: httpx.Request) -> httpx.Response:
    """Reply with the request body, for round-trip tests."""
    return httpx.Response(200, content=request.content)


def body_of(request: httpx.Request):
    return json.loads(request.content) if request.content else None


@pytest.fixture
def clean_env():
    """Fixture that temporarily clears DEPMCP_* environment variables.

    This ensures Config tests see the true defaults without interference
    from environment variables that might be set in the user's shell.
    """
    depmcp_vars = {
        key: value for key, value in os.environ.items() if key.startswith("DEPMCP_")
    }

    for key in depmcp_vars:
        os.environ.pop(key, None)

    try:
        yield
    finally:
        for key, value in depmcp_vars.items():
            os.environ[key] = value


@pytest.fixture
def clean_config(clean_env):
    """Config instance with clean environment and default values."""
    return Config()


@pytest.fixture
def config(clean_env, tmp_path):
    """Config pointing at the fake DEP server"""
    return Config(
        base_url=BASE_URL,
        store_dir=str(tmp_path / "store"),
        log_level="DEBUG",
    )


@pytest.fixture
def store():
    """Memory store holding credentials for 'acme' and 'globex'"""
    return MemoryCredentialStore(
        {
            "acme": dict(ACME_TOKENS),
            "globex": {**ACME_TOKENS, "consumer_key": "CK_globex"},
        }
    )


@pytest.fixture
def fake_dep():
    return FakeDEP()


@pytest.fixture
async def http_client(fake_dep):
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake_dep.handler))
    yield client
    await client.aclose()


@pytest.fixture
def client(config, store, http_client):
    """DEPClient wired to the fake DEP server"""
    return DEPClient(config, store=store, http_client=http_client)


@pytest.fixture
def service(client):
    return DEPService(client)
