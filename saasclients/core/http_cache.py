"""
ETag cache for GET requests.

GitHub (and any API that sends ETag headers) answers a conditional GET with
304 Not Modified, and those responses do not count against the rate limit.
When a client has a cache configured:

    1. GET requests send If-None-Match with the stored ETag
    2. A 304 response is served from the cached body and next link
    3. A 2xx response with an ETag replaces the cached entry

Failing to cache is never fatal: the client logs and carries on.

Usage:
    cache = InMemoryHttpCache(max_entries=500)
    client = GitHubClient(GitHubConfig(token="..."), http_cache=cache)
"""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True, slots=True)
class CachedResponse:
    """A stored response body and the metadata needed to replay it."""

    etag: str
    body: bytes
    next_link: str | None = None
    stored_at: float = field(default_factory=time.time)


class HttpCache(Protocol):
    """Storage for conditional GET responses."""

    def lookup(self, url: str) -> CachedResponse | None:
        """Return the cached response for url, if any."""
        ...

    def store(self, url: str, etag: str, body: bytes, next_link: str | None = None) -> None:
        """Cache a response body under url."""
        ...


class NoopHttpCache:
    """Cache that never stores anything."""

    def lookup(self, url: str) -> CachedResponse | None:
        return None

    def store(self, url: str, etag: str, body: bytes, next_link: str | None = None) -> None:
        return None


@dataclass
class InMemoryHttpCache:
    """
    Process-local LRU cache of GET responses.

    Each worker process keeps its own entries.
    """

    max_entries: int = 1000
    _entries: OrderedDict[str, CachedResponse] = field(default_factory=OrderedDict)

    def lookup(self, url: str) -> CachedResponse | None:
        entry = self._entries.get(url)
        if entry is not None:
            self._entries.move_to_end(url)
        return entry

    def store(self, url: str, etag: str, body: bytes, next_link: str | None = None) -> None:
        self._entries[url] = CachedResponse(etag=etag, body=body, next_link=next_link)
        self._entries.move_to_end(url)

        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        """Drop all cached entries."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
