"""Root conftest: test infrastructure for all tests.

Provides:
- Settings isolated from the environment and .env
- A fresh application per test built by create_app() with injected fakes
- Fake commit source and GitHub reader for the commit and stats endpoints
- API client over ASGITransport (no network, no database)
- Autouse reset of the shared GitHub HTTP client
"""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.rate_limit import FixedWindowRateLimiter, RateLimitConfig
from app.services.github.cache import MemoryKeyValueStore
from app.services.github.types import LanguageStat, RepoCommits

from tests.helpers.mock_factories import (
    FakeClock,
    FakeCommitSource,
    FakeGitHubReader,
    FakeTimelineSource,
    make_commit,
    make_contributor,
    make_settings,
    make_timeline,
)

# ─────────────────────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def test_settings():
    return make_settings()


# ─────────────────────────────────────────────────────────────────────────────
# Shared GitHub HTTP client
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _reset_github_client():
    """Never share the module-level HTTP client between tests."""
    import app.services.github.http_client as http_client

    original = http_client._client
    http_client._client = None
    yield
    http_client._client = original


# ─────────────────────────────────────────────────────────────────────────────
# Application fakes
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def fake_source() -> FakeTimelineSource:
    """Source returning one timeline per allow-listed repository."""
    return FakeTimelineSource(
        timelines=[
            make_timeline("portfolio", [("2024-01-01", 3), ("2024-01-02", 0)], "Portfolio"),
            make_timeline(
                "Web-Security", [("2024-01-01", 0), ("2024-01-02", 2)], "Web Security", "#8b5cf6"
            ),
        ]
    )


@pytest.fixture
def fake_commit_source() -> FakeCommitSource:
    """Commit source listing one commit per allow-listed repository."""
    return FakeCommitSource(
        listings=[
            RepoCommits(
                repo_name="portfolio",
                display_name="Portfolio",
                commits=[make_commit("a" * 40, date="2024-01-01T09:00:00Z")],
            ),
            RepoCommits(
                repo_name="Web-Security",
                display_name="Web Security",
                commits=[
                    make_commit("b" * 40, date="2024-01-02T09:00:00Z", repo_name="Web-Security")
                ],
            ),
        ]
    )


@pytest.fixture
def fake_reader() -> FakeGitHubReader:
    """GitHub reader describing both allow-listed repositories."""
    reader = FakeGitHubReader()
    reader.languages = {
        "portfolio": [LanguageStat("TypeScript", 300, 100.0, "#3178c6")],
        "Web-Security": [LanguageStat("Python", 100, 100.0, "#3572A5")],
    }
    reader.contributors = {"portfolio": [make_contributor("paul", 4)]}
    return reader


@pytest.fixture
def cache_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_store(cache_clock: FakeClock) -> MemoryKeyValueStore:
    return MemoryKeyValueStore(maxsize=64, timer=cache_clock)


@pytest.fixture
def limiter_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_limiter(limiter_clock: FakeClock) -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(RateLimitConfig(requests=5, window_seconds=60), limiter_clock)


# ─────────────────────────────────────────────────────────────────────────────
# API Client
# ─────────────────────────────────────────────────────────────────────────────


async def _client_for(application) -> AsyncClient:
    transport = ASGITransport(app=application, raise_app_exceptions=False)
    return AsyncClient(transport=transport, base_url="http://test")


@pytest.fixture
async def api_client(
    test_settings, fake_source, fake_commit_source, fake_reader, cache_store, rate_limiter
):
    """HTTP client for a development-mode app with fake sources, reader, store and limiter."""
    from app.main import create_app

    application = create_app(
        test_settings,
        source=fake_source,
        store=cache_store,
        rate_limiter=rate_limiter,
        commit_source=fake_commit_source,
        reader=fake_reader,
    )
    async with await _client_for(application) as client:
        yield client


@pytest.fixture
async def production_client(fake_source, cache_store, rate_limiter):
    """HTTP client for a production-mode app allowing only https://example.com."""
    from app.main import create_app

    application = create_app(
        make_settings(environment="production", allowed_origins=["https://example.com"]),
        source=fake_source,
        store=cache_store,
        rate_limiter=rate_limiter,
    )
    async with await _client_for(application) as client:
        yield client
