"""Unit tests for timeline sources and source selection."""

from __future__ import annotations

import asyncio
from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from app.services.github.exceptions import GitHubAPIError
from app.services.github.sources import (
    DatabaseTimelineSource,
    GitHubTimelineSource,
    select_timeline_source,
)
from app.services.github.types import RepoRef

from tests.helpers.mock_factories import (
    FakeTimelineSource,
    daily,
    make_session_maker,
    make_settings,
    make_timeline,
)

TODAY = date(2024, 1, 2)
PORTFOLIO = RepoRef("5061756c2e56", "portfolio")
WEB_SECURITY = RepoRef("5061756c2e56", "Web-Security")


def _today() -> date:
    return TODAY


# ═══════════════════════════════════════════════════════════════════════════
# GitHubTimelineSource
# ═══════════════════════════════════════════════════════════════════════════


class TestGitHubTimelineSource:
    """Tests for the live API source."""

    def setup_method(self):
        self.reader = MagicMock()
        self.source = GitHubTimelineSource(self.reader, today=_today)

    @pytest.mark.asyncio
    async def test_builds_one_timeline_per_repo(self):
        self.reader.get_commit_activity = AsyncMock(
            return_value=daily(("2024-01-01", 3), ("2024-01-02", 0))
        )

        timelines = await self.source.fetch_timelines([PORTFOLIO], "7d", "fr")

        assert len(timelines) == 1
        timeline = timelines[0]
        assert timeline.repo_name == "portfolio"
        assert timeline.repo_display_name == "Portfolio"
        assert timeline.color == "#3b82f6"
        assert len(timeline.data) == 7
        assert timeline.total_commits == 3
        self.reader.get_commit_activity.assert_awaited_once_with("5061756c2e56", "portfolio")

    @pytest.mark.asyncio
    async def test_partial_failure_yields_empty_series(self):
        async def fetch(owner, repo):
            if repo == "portfolio":
                raise GitHubAPIError("boom", 500)
            return daily(("2024-01-02", 5))

        self.reader.get_commit_activity = AsyncMock(side_effect=fetch)

        timelines = await self.source.fetch_timelines([PORTFOLIO, WEB_SECURITY], "7d", "en")

        assert [t.repo_name for t in timelines] == ["portfolio", "Web-Security"]
        assert timelines[0].total_commits == 0
        assert len(timelines[0].data) == 7
        assert timelines[1].total_commits == 5

    @pytest.mark.asyncio
    async def test_results_follow_request_order_not_completion_order(self):
        async def fetch(owner, repo):
            # The first repository finishes last
            await asyncio.sleep(0.02 if repo == "portfolio" else 0)
            return daily(("2024-01-02", 1 if repo == "portfolio" else 2))

        self.reader.get_commit_activity = AsyncMock(side_effect=fetch)

        timelines = await self.source.fetch_timelines([PORTFOLIO, WEB_SECURITY], "7d", "fr")

        assert [t.repo_name for t in timelines] == ["portfolio", "Web-Security"]
        assert [t.total_commits for t in timelines] == [1, 2]
        assert [t.color for t in timelines] == ["#3b82f6", "#8b5cf6"]

    @pytest.mark.asyncio
    async def test_fetches_run_concurrently(self):
        in_flight = 0
        peak = 0

        async def fetch(owner, repo):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return []

        self.reader.get_commit_activity = AsyncMock(side_effect=fetch)

        await self.source.fetch_timelines([PORTFOLIO, WEB_SECURITY], "7d", "fr")

        assert peak == 2


# ═══════════════════════════════════════════════════════════════════════════
# DatabaseTimelineSource
# ═══════════════════════════════════════════════════════════════════════════


class TestDatabaseTimelineSource:
    """Tests for the aggregate-query source and its fallback."""

    def setup_method(self):
        self.session = AsyncMock()
        self.fallback = FakeTimelineSource(timelines=[make_timeline("portfolio", [])])
        self.source = DatabaseTimelineSource(
            make_session_maker(self.session), fallback=self.fallback, today=_today
        )

    @pytest.mark.asyncio
    @patch("app.services.github.sources.commit_ops")
    async def test_builds_timelines_from_counts(self, mock_ops):
        mock_ops.get_daily_counts = AsyncMock(
            return_value={"5061756c2e56/web-security": daily(("2024-01-01", 4))}
        )

        timelines = await self.source.fetch_timelines([PORTFOLIO, WEB_SECURITY], "7d", "fr")

        assert [t.repo_name for t in timelines] == ["portfolio", "Web-Security"]
        assert timelines[0].total_commits == 0
        assert timelines[1].total_commits == 4
        assert timelines[1].repo_display_name == "Web Security"
        assert self.fallback.calls == []

    @pytest.mark.asyncio
    @patch("app.services.github.sources.commit_ops")
    async def test_query_starts_at_first_bucket(self, mock_ops):
        mock_ops.get_daily_counts = AsyncMock(return_value={})

        await self.source.fetch_timelines([PORTFOLIO], "12m", "fr")

        _, repos, since = mock_ops.get_daily_counts.await_args.args
        assert repos == [PORTFOLIO]
        assert since == date(2023, 1, 1)

    @pytest.mark.asyncio
    @patch("app.services.github.sources.commit_ops")
    async def test_database_error_falls_back(self, mock_ops):
        mock_ops.get_daily_counts = AsyncMock(
            side_effect=OperationalError("SELECT", {}, Exception("connection refused"))
        )

        timelines = await self.source.fetch_timelines([PORTFOLIO], "30d", "en")

        assert timelines == self.fallback.timelines
        assert self.fallback.calls == [([PORTFOLIO], "30d", "en")]


# ═══════════════════════════════════════════════════════════════════════════
# select_timeline_source
# ═══════════════════════════════════════════════════════════════════════════


class TestSelectTimelineSource:
    """Tests for choosing the source at startup."""

    def test_github_without_database(self):
        source = select_timeline_source(make_settings(), reader=MagicMock())
        assert isinstance(source, GitHubTimelineSource)
        assert source.name == "github"

    def test_database_when_configured(self):
        settings = make_settings(database_url="postgresql+asyncpg://localhost/db")
        source = select_timeline_source(settings, reader=MagicMock(), session_maker=MagicMock())

        assert isinstance(source, DatabaseTimelineSource)
        assert isinstance(source.fallback, GitHubTimelineSource)

    def test_use_github_api_overrides_database(self):
        settings = make_settings(
            database_url="postgresql+asyncpg://localhost/db", use_github_api=True
        )
        source = select_timeline_source(settings, reader=MagicMock(), session_maker=MagicMock())
        assert isinstance(source, GitHubTimelineSource)

    def test_no_session_maker_means_github(self):
        settings = make_settings(database_url="postgresql+asyncpg://localhost/db")
        source = select_timeline_source(settings, reader=MagicMock())
        assert isinstance(source, GitHubTimelineSource)
