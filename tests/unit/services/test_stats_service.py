"""Unit tests for StatsService: timelines, reader, store and database faked."""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from app.services.github.cache import MemoryKeyValueStore
from app.services.github.exceptions import GitHubAPIError
from app.services.github.service import TimelineService
from app.services.github.stats_service import StatsService
from app.services.github.types import LanguageStat, RepoRef

from tests.helpers.mock_factories import (
    FakeClock,
    FakeGitHubReader,
    FakeTimelineSource,
    make_contributor,
    make_repo_info,
    make_session_maker,
    make_timeline,
)

NOW = datetime(2024, 1, 31, 12, 0, tzinfo=UTC)
PORTFOLIO = RepoRef("5061756c2e56", "portfolio")
WEB_SECURITY = RepoRef("5061756c2e56", "Web-Security")


def _now() -> datetime:
    return NOW


class TestGetMultiStats:
    """Tests for combining per-repository GitHub data."""

    def setup_method(self):
        self.clock = FakeClock()
        self.store = MemoryKeyValueStore(timer=self.clock)
        self.source = FakeTimelineSource(
            timelines=[
                make_timeline("portfolio", [("2024-01-01", 2)], "Portfolio"),
                make_timeline("Web-Security", [("2024-01-01", 1)], "Web Security", "#8b5cf6"),
            ]
        )
        self.reader = FakeGitHubReader()
        self.reader.info = {
            "portfolio": make_repo_info(stars=3),
            "Web-Security": make_repo_info(stars=5, pushed_at="2024-02-01T00:00:00Z"),
        }
        self.reader.languages = {
            "portfolio": [LanguageStat("TypeScript", 750, 100.0, "#3178c6")],
            "Web-Security": [LanguageStat("Python", 250, 100.0, "#3572A5")],
        }
        self.reader.code_frequency = {"portfolio": [[1700000000, 40, -10]]}
        self.reader.contributors = {
            "portfolio": [make_contributor("paul", 6)],
            "Web-Security": [make_contributor("paul", 2), make_contributor("ana", 3)],
        }
        self.timelines = TimelineService(self.source, self.store)
        self.service = StatsService(self.timelines, self.reader, self.store, now=_now)

    @pytest.mark.asyncio
    async def test_payload_shape(self):
        result = await self.service.get_multi_stats([PORTFOLIO, WEB_SECURITY], "12m", "en")

        payload = result.payload
        assert payload["stats"] == {
            "stars": 8,
            "forks": 2,
            "issues": 4,
            "size": 2048,
            "lastPush": "2024-02-01T00:00:00Z",
            "defaultBranch": "main",
            "totalCommits": 11,
            "totalAdditions": 40,
            "totalDeletions": 10,
        }
        assert payload["languages"] == [
            {"name": "TypeScript", "bytes": 750, "percentage": 75.0, "color": "#3178c6"},
            {"name": "Python", "bytes": 250, "percentage": 25.0, "color": "#3572A5"},
        ]
        assert payload["contributors"][0] == {
            "username": "paul",
            "avatar": "https://avatars.example.com/paul",
            "commits": 8,
            "profileUrl": "https://github.com/paul",
        }
        assert [t["repoName"] for t in payload["timelines"]] == ["portfolio", "Web-Security"]
        assert payload["combinedTimeline"][0]["portfolio"] == 2
        assert payload["defaultPeriod"] == "7d"
        assert result.data_source == "github"
        assert self.source.calls == [([PORTFOLIO, WEB_SECURITY], "12m", "en")]

    @pytest.mark.asyncio
    async def test_failing_repository_is_left_out(self):
        self.reader.failing = {"Web-Security"}

        result = await self.service.get_multi_stats([PORTFOLIO, WEB_SECURITY], "30d", "fr")

        assert result.payload["stats"]["stars"] == 3
        assert [lang["name"] for lang in result.payload["languages"]] == ["TypeScript"]

    @pytest.mark.asyncio
    async def test_every_repository_failing_is_unavailable(self):
        self.reader.failing = {"portfolio", "Web-Security"}

        with pytest.raises(GitHubAPIError) as exc_info:
            await self.service.get_multi_stats([PORTFOLIO, WEB_SECURITY], "30d", "fr")

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_repository_data_reused_across_combinations(self):
        await self.service.get_multi_stats([PORTFOLIO, WEB_SECURITY], "12m", "fr")
        result = await self.service.get_multi_stats([PORTFOLIO], "12m", "fr")

        assert result.from_cache is False
        # info, languages, code frequency and contributors fetched once each
        assert self.reader.calls == {"portfolio": 4, "Web-Security": 4}

    @pytest.mark.asyncio
    async def test_locale_is_part_of_the_cache_key(self):
        await self.service.get_multi_stats([PORTFOLIO], "7d", "fr")
        hit = await self.service.get_multi_stats([PORTFOLIO], "7d", "fr")
        other = await self.service.get_multi_stats([PORTFOLIO], "7d", "en")

        assert hit.from_cache is True
        assert other.from_cache is False


class TestDatabaseCounts:
    """Tests for persisted commit totals overriding GitHub's all-time figures."""

    def setup_method(self):
        self.store = MemoryKeyValueStore()
        self.reader = FakeGitHubReader()
        self.reader.contributors = {"portfolio": [make_contributor("paul", 40)]}
        self.timelines = TimelineService(FakeTimelineSource(), self.store)
        self.service = StatsService(
            self.timelines,
            self.reader,
            self.store,
            session_maker=make_session_maker(AsyncMock()),
            now=_now,
        )

    @pytest.mark.asyncio
    @patch("app.services.github.stats_service.commit_ops")
    async def test_totals_and_contributors_from_database(self, mock_ops):
        mock_ops.get_commit_totals = AsyncMock(return_value=(9, 120, 30))
        mock_ops.get_contributor_counts = AsyncMock(return_value={"paul": 5, "zoe": 4})

        result = await self.service.get_multi_stats([PORTFOLIO], "30d", "fr")

        stats = result.payload["stats"]
        assert (stats["totalCommits"], stats["totalAdditions"], stats["totalDeletions"]) == (
            9,
            120,
            30,
        )
        assert [(c["username"], c["commits"]) for c in result.payload["contributors"]] == [
            ("paul", 5),
            ("zoe", 4),
        ]
        assert result.data_source == "database"
        _, repos, since = mock_ops.get_commit_totals.await_args.args
        assert repos == [PORTFOLIO]
        assert since == datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    @pytest.mark.asyncio
    @patch("app.services.github.stats_service.commit_ops")
    async def test_database_error_keeps_github_figures(self, mock_ops):
        mock_ops.get_commit_totals = AsyncMock(
            side_effect=OperationalError("SELECT", {}, Exception("connection refused"))
        )

        result = await self.service.get_multi_stats([PORTFOLIO], "30d", "fr")

        assert result.payload["stats"]["totalCommits"] == 40
        assert result.payload["contributors"][0]["commits"] == 40
        assert result.data_source == "github"
