"""
Timeline and commit sources.

A TimelineSource turns a list of repositories into one bucketed timeline per
repository, in request order. A CommitSource lists the commits of those
repositories. Each has two implementations:
- GitHub*Source: live GitHub API, one call (or page walk) per repository
- Database*Source: queries over persisted commits, falling back to the live
  API when the database fails

Sources are chosen once at startup by select_timeline_source() and
select_commit_source().
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from typing import Protocol

from sqlalchemy.orm import sessionmaker

from app.config import Settings
from app.domain.commit_operations import commit_ops
from app.services.github.constants import (
    FULL_HISTORY_RANGES,
    FULL_HISTORY_SINCE,
    MAX_COMMIT_PAGES,
    PERIOD_CONFIGS,
    find_allowed_repository,
    repo_color,
)
from app.services.github.read_operations import GitHubReadOperations
from app.services.github.transform import bucket_start, transform_activity, utc_today
from app.services.github.types import (
    CommitItem,
    DailyCount,
    RepoCommits,
    RepoRef,
    RepoTimeline,
    TimeRange,
)

logger = logging.getLogger(__name__)

SOURCE_GITHUB = "github"
SOURCE_DATABASE = "database"


class ActivityReader(Protocol):
    """Anything that can fetch a repository's daily commit series."""

    async def get_commit_activity(self, owner: str, repo: str) -> list[DailyCount]: ...


class TimelineSource(Protocol):
    """Strategy producing per-repository timelines."""

    name: str

    async def fetch_timelines(
        self, repos: list[RepoRef], time_range: TimeRange, locale: str
    ) -> list[RepoTimeline]: ...


def display_name(ref: RepoRef) -> str:
    """Allow-list display name, or the bare repository name."""
    allowed = find_allowed_repository(ref.owner, ref.name)
    return allowed.display_name if allowed else ref.name


def build_timeline(
    ref: RepoRef,
    index: int,
    daily: list[DailyCount],
    time_range: TimeRange,
    locale: str,
    today: date,
) -> RepoTimeline:
    """Bucket one repository's daily series into a RepoTimeline."""
    return RepoTimeline(
        repo_name=ref.name,
        repo_display_name=display_name(ref),
        color=repo_color(index),
        data=transform_activity(daily, time_range, locale, today),
    )


class GitHubTimelineSource:
    """Fetches every repository from the GitHub API in parallel."""

    name = SOURCE_GITHUB

    def __init__(
        self,
        reader: ActivityReader,
        today: Callable[[], date] = utc_today,
    ):
        self.reader = reader
        self._today = today

    async def _fetch_one(self, ref: RepoRef) -> list[DailyCount]:
        try:
            return await self.reader.get_commit_activity(ref.owner, ref.name)
        except Exception as e:
            logger.warning(f"Commit activity unavailable for {ref.full_name}: {e}")
            return []

    async def fetch_timelines(
        self, repos: list[RepoRef], time_range: TimeRange, locale: str
    ) -> list[RepoTimeline]:
        """
        Fetch and bucket all repositories concurrently.

        A repository whose fetch fails contributes an all-zero timeline; the
        others are unaffected. Output order matches repos regardless of which
        fetch completes first.
        """
        today = self._today()
        results = await asyncio.gather(*[self._fetch_one(ref) for ref in repos])
        return [
            build_timeline(ref, index, daily, time_range, locale, today)
            for index, (ref, daily) in enumerate(zip(repos, results, strict=True))
        ]


class DatabaseTimelineSource:
    """Reads timelines from persisted commits with one aggregate query."""

    name = SOURCE_DATABASE

    def __init__(
        self,
        session_maker: sessionmaker,
        fallback: TimelineSource,
        today: Callable[[], date] = utc_today,
    ):
        self.session_maker = session_maker
        self.fallback = fallback
        self._today = today

    async def fetch_timelines(
        self, repos: list[RepoRef], time_range: TimeRange, locale: str
    ) -> list[RepoTimeline]:
        """
        Count commits per repository and day over the range window.

        Any database error is logged and the request is served by the
        fallback source instead.
        """
        today = self._today()
        config = PERIOD_CONFIGS[time_range]
        since = bucket_start(today - timedelta(days=config.days - 1), config.granularity, locale)

        try:
            async with self.session_maker() as session:
                counts = await commit_ops.get_daily_counts(session, repos, since)
        except Exception as e:
            logger.warning(f"Database timeline query failed, using {self.fallback.name}: {e}")
            return await self.fallback.fetch_timelines(repos, time_range, locale)

        return [
            build_timeline(
                ref, index, counts.get(ref.full_name.lower(), []), time_range, locale, today
            )
            for index, ref in enumerate(repos)
        ]


def select_timeline_source(
    settings: Settings,
    reader: ActivityReader | None = None,
    session_maker: sessionmaker | None = None,
) -> TimelineSource:
    """
    Pick the timeline source for this process.

    The database source is used only when a database is configured, not
    overridden by use_github_api, and a session factory is available.
    """
    github_source = GitHubTimelineSource(
        reader or GitHubReadOperations(settings.github_token, settings.github_api_base)
    )
    if settings.database_enabled and session_maker is not None:
        logger.info("Timeline source: database (GitHub API fallback)")
        return DatabaseTimelineSource(session_maker, fallback=github_source)

    logger.info("Timeline source: GitHub API")
    return github_source


# ─────────────────────────────────────────────────────────────────────────────
# Commit listings
# ─────────────────────────────────────────────────────────────────────────────


class CommitReader(Protocol):
    """Anything that can page through a repository's commits."""

    async def list_commits(
        self, owner: str, repo: str, since: datetime | None = None, page: int = 1
    ) -> tuple[list[CommitItem], bool]: ...


class CommitSource(Protocol):
    """Strategy listing the commits of several repositories."""

    name: str

    async def fetch_commits(
        self, repos: list[RepoRef], time_range: TimeRange, sha_prefix: str
    ) -> list[RepoCommits]: ...


def utc_now() -> datetime:
    return datetime.now(UTC)


def commit_list_since(time_range: TimeRange, now: datetime) -> datetime:
    """
    Earliest commit time listed for a range.

    Weekly and monthly ranges list the whole history; daily ranges list the
    window of the range.
    """
    if time_range in FULL_HISTORY_RANGES:
        return FULL_HISTORY_SINCE
    return now - timedelta(days=PERIOD_CONFIGS[time_range].days)


def matches_sha_prefix(commit: CommitItem, sha_prefix: str) -> bool:
    return commit.sha.lower().startswith(sha_prefix.lower())


class GitHubCommitSource:
    """Pages through every repository's commits on the GitHub API in parallel."""

    name = SOURCE_GITHUB

    def __init__(
        self,
        reader: CommitReader,
        now: Callable[[], datetime] = utc_now,
        max_pages: int = MAX_COMMIT_PAGES,
    ):
        self.reader = reader
        self._now = now
        self.max_pages = max_pages

    async def _fetch_all(self, ref: RepoRef, since: datetime) -> list[CommitItem]:
        """Walk pages until one is short or empty; a failing page ends the walk."""
        commits: list[CommitItem] = []
        for page in range(1, self.max_pages + 1):
            try:
                items, has_more = await self.reader.list_commits(ref.owner, ref.name, since, page)
            except Exception as e:
                logger.warning(f"Commit page {page} unavailable for {ref.full_name}: {e}")
                break
            if not items:
                break
            commits.extend(items)
            if not has_more:
                break
        return commits

    async def fetch_commits(
        self, repos: list[RepoRef], time_range: TimeRange, sha_prefix: str
    ) -> list[RepoCommits]:
        """
        List commits of all repositories concurrently, in request order.

        A repository whose first page fails contributes no commits.
        """
        since = commit_list_since(time_range, self._now())
        results = await asyncio.gather(*[self._fetch_all(ref, since) for ref in repos])

        listings = []
        for ref, commits in zip(repos, results, strict=True):
            if sha_prefix:
                commits = [c for c in commits if matches_sha_prefix(c, sha_prefix)]
            listings.append(
                RepoCommits(repo_name=ref.name, display_name=display_name(ref), commits=commits)
            )
        return listings


class DatabaseCommitSource:
    """Lists persisted commits with one query."""

    name = SOURCE_DATABASE

    def __init__(
        self,
        session_maker: sessionmaker,
        fallback: CommitSource,
        now: Callable[[], datetime] = utc_now,
    ):
        self.session_maker = session_maker
        self.fallback = fallback
        self._now = now

    async def fetch_commits(
        self, repos: list[RepoRef], time_range: TimeRange, sha_prefix: str
    ) -> list[RepoCommits]:
        """
        List persisted commits, grouped by repository in request order.

        Any database error is logged and the request is served by the
        fallback source instead.
        """
        since = commit_list_since(time_range, self._now())

        try:
            async with self.session_maker() as session:
                commits = await commit_ops.list_commits(session, repos, since, sha_prefix)
        except Exception as e:
            logger.warning(f"Database commit query failed, using {self.fallback.name}: {e}")
            return await self.fallback.fetch_commits(repos, time_range, sha_prefix)

        by_repo: dict[str, list[CommitItem]] = {}
        for commit in commits:
            key = f"{commit.repo_owner}/{commit.repo_name}".lower()
            by_repo.setdefault(key, []).append(commit)

        return [
            RepoCommits(
                repo_name=ref.name,
                display_name=display_name(ref),
                commits=by_repo.get(ref.full_name.lower(), []),
            )
            for ref in repos
        ]


def select_commit_source(
    settings: Settings,
    reader: CommitReader | None = None,
    session_maker: sessionmaker | None = None,
) -> CommitSource:
    """Pick the commit source for this process (same rules as timelines)."""
    github_source = GitHubCommitSource(
        reader or GitHubReadOperations(settings.github_token, settings.github_api_base)
    )
    if settings.database_enabled and session_maker is not None:
        return DatabaseCommitSource(session_maker, fallback=github_source)
    return github_source
