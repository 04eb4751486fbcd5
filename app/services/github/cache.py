"""
TTL caching for computed GitHub responses.

Timelines, commit listings and stats are memoized under deterministic
string keys with a per-range time-to-live. Short ranges expire sooner
because recent activity changes more often relative to its total volume:
- 7d: 1 minute
- 30d: 3 minutes
- 6m: 10 minutes
- 12m: 30 minutes

Per-repository data and single commits do not depend on the range and use
fixed TTLs from constants.py.

The cache is best-effort: a store that fails on read or write is logged and
treated as a miss, and the producer runs as if nothing was cached.
"""

import json
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

from cachetools import TLRUCache  # type: ignore[import-untyped]

from app.services.github.constants import CACHE_KEY_PREFIX, CACHE_TTL
from app.services.github.types import RepoRef, TimeRange

logger = logging.getLogger(__name__)

T = TypeVar("T")


class KeyValueStore(Protocol):
    """Key-value store with per-entry TTL."""

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None: ...


@dataclass(frozen=True)
class _Entry:
    payload: str  # JSON text, so cached values cannot be mutated by callers
    ttl_seconds: float


def _time_to_use(_key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl_seconds


class MemoryKeyValueStore:
    """In-process KeyValueStore backed by a cachetools TLRUCache."""

    def __init__(self, maxsize: int = 512, timer: Callable[[], float] = time.monotonic) -> None:
        self._cache: TLRUCache[str, _Entry] = TLRUCache(
            maxsize=maxsize, ttu=_time_to_use, timer=timer
        )

    async def get(self, key: str) -> Any | None:
        entry = self._cache.get(key)
        if entry is None:
            return None
        return json.loads(entry.payload)

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        self._cache[key] = _Entry(payload=json.dumps(value), ttl_seconds=ttl_seconds)

    def stats(self) -> dict[str, int]:
        """Current size for monitoring."""
        self._cache.expire()
        return {"size": len(self._cache), "maxsize": self._cache.maxsize}


@dataclass
class CacheResult(Generic[T]):
    """Value returned by with_cache, with its hit/miss signal."""

    data: T
    from_cache: bool


async def with_cache(
    store: KeyValueStore,
    key: str,
    ttl_seconds: int,
    producer: Callable[[], Awaitable[T]],
) -> CacheResult[T]:
    """
    Return the live cached value for key, or compute, store and return it.

    On a hit the producer is not called. On a miss the producer's result is
    stored with expiry now + ttl_seconds. If the producer raises, nothing is
    written and the error propagates, so the next request retries.

    Concurrent misses on the same key each run the producer; the last write wins.
    """
    try:
        cached = await store.get(key)
    except Exception as e:
        logger.warning(f"Cache read failed for {key}, computing fresh value: {e}")
        cached = None

    if cached is not None:
        logger.debug(f"Cache HIT: {key}")
        return CacheResult(data=cached, from_cache=True)

    logger.debug(f"Cache MISS: {key}")
    data = await producer()

    try:
        await store.set(key, data, ttl_seconds)
    except Exception as e:
        logger.warning(f"Cache write failed for {key}: {e}")

    return CacheResult(data=data, from_cache=False)


def ttl_for_range(time_range: TimeRange) -> int:
    """Cache TTL in seconds for a time range."""
    return CACHE_TTL[time_range]


def _repo_set(repos: Iterable[RepoRef]) -> str:
    return ",".join(sorted(r.key for r in repos))


def timeline_cache_key(repos: Iterable[RepoRef], time_range: TimeRange, locale: str) -> str:
    """
    Deterministic cache key for a multi-repo timeline request.

    Repository keys are sorted, so the same set in any order maps to one entry.
    """
    return f"{CACHE_KEY_PREFIX}multi-timeline:{_repo_set(repos)}:{time_range}:{locale}"


def commits_cache_key(repos: Iterable[RepoRef], time_range: TimeRange, query: str) -> str:
    """Cache key for a multi-repo commit listing (search is case-insensitive)."""
    return f"{CACHE_KEY_PREFIX}multi-commits:{_repo_set(repos)}:{time_range}:{query.lower()}"


def stats_cache_key(repos: Iterable[RepoRef], time_range: TimeRange, locale: str) -> str:
    """Cache key for a multi-repo stats response."""
    return f"{CACHE_KEY_PREFIX}multi-stats:{_repo_set(repos)}:{time_range}:{locale}"


def repo_data_cache_key(ref: RepoRef) -> str:
    """Cache key for one repository's metadata, languages and code totals."""
    return f"{CACHE_KEY_PREFIX}repo-data:{ref.key}"


def contributors_cache_key(ref: RepoRef) -> str:
    return f"{CACHE_KEY_PREFIX}contributors:{ref.key}"


def commit_detail_cache_key(ref: RepoRef, sha: str) -> str:
    return f"{CACHE_KEY_PREFIX}{ref.key}:commit:{sha.lower()}"

