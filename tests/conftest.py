"""
Pytest configuration and shared fakes for the resolver tests.

The default provider adapter and the server listing are external
collaborators; the fakes below record their calls and return canned data.
"""

import pytest

from stream_resolver.providers.base import BaseProviderAdapter, BaseServerListing


def pytest_configure(config):
    """Configure pytest-asyncio mode."""
    config.addinivalue_line("markers", "asyncio: mark test as async")


class FakeAdapter(BaseProviderAdapter):
    def __init__(self, results=None, error=None):
        self.results = results or {}
        self.error = error
        self.calls = []

    async def extract(self, selection, episode_ref):
        self.calls.append((selection, episode_ref))
        if self.error and selection.type in self.error:
            raise self.error[selection.type]
        return self.results.get(selection.type)


class FakeServerListing(BaseServerListing):
    def __init__(self, servers=None, error=None):
        self.servers = servers or {"sub": [], "dub": []}
        self.error = error
        self.calls = []

    async def get_servers(self, content_ref):
        self.calls.append(content_ref)
        if self.error:
            raise self.error
        return self.servers


@pytest.fixture
def fake_adapter():
    return FakeAdapter


@pytest.fixture
def fake_listing():
    return FakeServerListing


@pytest.fixture
def caption_tracks():
    return [
        {"file": "https://cdn.example/en.vtt", "label": "English", "kind": "captions", "default": True},
        {"file": "https://cdn.example/es.vtt", "label": "Spanish", "kind": "captions"},
    ]
