"""
Pytest configuration and fixtures for saasclients tests.
"""

import sys
from pathlib import Path

import httpx
import pytest

# Add the repository root to path for imports
# This allows `from saasclients.core import ...` to work
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))


class RecordingHandler:
    """MockTransport handler that remembers every request it answered."""

    def __init__(self, handler):
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def mock_http():
    """
    Build an httpx.AsyncClient whose responses come from a handler.

    Usage:
        http, calls = mock_http(lambda request: httpx.Response(200, json={}))
        client = GitHubClient(config, http_client=http)
        ...
        assert calls.last.url.path == "/repos/octocat/hello-world"
    """

    def factory(handler):
        recorder = RecordingHandler(handler)
        return httpx.AsyncClient(transport=httpx.MockTransport(recorder)), recorder

    return factory


@pytest.fixture
def clean_env(monkeypatch):
    """Clear cached provider settings around tests that touch the environment."""
    from saasclients.config import load_provider_settings

    load_provider_settings.cache_clear()
    yield monkeypatch
    load_provider_settings.cache_clear()
