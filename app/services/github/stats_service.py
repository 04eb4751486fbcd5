"""
Multi-repository stats service.

Combines, for a set of repositories: metadata totals, a merged language
breakdown, the top contributors and the commit timelines. Per-repository
GitHub data is cached separately from the combined response, so a new
repository combination reuses what other requests already fetched.

When a database is available, commit totals and contributor counts for the
range come from persisted commits instead of GitHub's all-time figures.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import asdict
from datetime import datetime, timedelta
from typing import Any, Protocol

from sqlalchemy.orm import sessionmaker

from app.domain.commit_operations import commit_ops
from app.schemas.stats import (
    AggregatedStatsSchema,
    ContributorSchema,
    LanguageSchema,
    MultiStatsResponse,
)
from app.schemas.timeline import CombinedPointSchema, RepoTimelineSchema
from app.services.github.aggregate import (
    aggregate_stats,
    code_frequency_totals,
    merge_contributors,
    merge_languages,
    reconcile_contributors,
)
from app.services.github.cache import (
    KeyValueStore,
    contributors_cache_key,
    repo_data_cache_key,
    stats_cache_key,
    ttl_for_range,
    with_cache,
)
from app.services.github.constants import (
    CONTRIBUTORS_TTL,
    DEFAULT_TIME_RANGE,
    PERIOD_CONFIGS,
    REPO_DATA_TTL,
    VALID_TIME_RANGES,
)
from app.services.github.exceptions import GitHubAPIError
from app.services.github.merge import merge_timelines
from app.services.github.service import PayloadResult, TimelineService
from app.services.github.sources import SOURCE_DATABASE, utc_now
from app.services.github.types import (
    ContributorInfo,
    LanguageStat,
    RepoInfo,
    RepoRef,
    RepoSnapshot,
    TimeRange,
)

logger = logging.getLogger(__name__)


class StatsReader(Protocol):
    """GitHub calls needed to describe one repository."""

    async def get_repo_info(self, owner: str, repo: str) -> RepoInfo: ...

    async def get_languages(self, owner: str, repo: str) -> list[LanguageStat]: ...

    async def get_code_frequency(self, owner: str, repo: str) -> list[list[int]]: ...

    async def get_contributors(self, owner: str, repo: str) -> list[ContributorInfo]: ...


class StatsService:
    """Serves combined repository stats through the response cache."""

    def __init__(
        self,
        timelines: TimelineService,
        reader: StatsReader,
        store: KeyValueStore,
        session_maker: sessionmaker | None = None,
        now: Callable[[], datetime] = utc_now,
    ):
        self.timelines = timelines
        self.reader = reader
        self.store = store
        self.session_maker = session_maker
        self._now = now

    async def _contributors(self, ref: RepoRef) -> list[ContributorInfo]:
        async def produce() -> list[dict[str, Any]]:
            contributors = await self.reader.get_contributors(ref.owner, ref.name)
            return [asdict(c) for c in contributors]

        result = await with_cache(
            self.store, contributors_cache_key(ref), CONTRIBUTORS_TTL, produce
        )
        return [ContributorInfo(**c) for c in result.data]

    async def _repo_data(self, ref: RepoRef) -> dict[str, Any]:
        async def produce() -> dict[str, Any]:
            info, languages, weeks = await asyncio.gather(
                self.reader.get_repo_info(ref.owner, ref.name),
                self.reader.get_languages(ref.owner, ref.name),
                self.reader.get_code_frequency(ref.owner, ref.name),
            )
            additions, deletions = code_frequency_totals(weeks)
            return {
                "info": asdict(info),
                "languages": [asdict(lang) for lang in languages],
                "additions": additions,
                "deletions": deletions,
            }

        result = await with_cache(self.store, repo_data_cache_key(ref), REPO_DATA_TTL, produce)
        return result.data

    async def _fetch_repo(self, ref: RepoRef) -> RepoSnapshot | None:
        """One repository's snapshot, or None when GitHub cannot describe it."""
        try:
            data, contributors = await asyncio.gather(
                self._repo_data(ref), self._contributors(ref)
            )
        except Exception as e:
            logger.warning(f"Stats unavailable for {ref.full_name}: {e}")
            return None

        return RepoSnapshot(
            repo_name=ref.name,
            info=RepoInfo(**data["info"]),
            languages=[LanguageStat(**lang) for lang in data["languages"]],
            contributors=contributors,
            additions=data["additions"],
            deletions=data["deletions"],
        )

    async def _apply_database_counts(
        self,
        stats: dict[str, Any],
        contributors: list[ContributorInfo],
        repos: list[RepoRef],
        time_range: TimeRange,
    ) -> tuple[list[ContributorInfo], bool]:
        """
        Overwrite commit totals and contributor counts with persisted data.

        Returns the contributors to report and whether the database was used.
        """
        if self.session_maker is None:
            return contributors, False

        since = self._now() - timedelta(days=PERIOD_CONFIGS[time_range].days)
        try:
            async with self.session_maker() as session:
                count, additions, deletions = await commit_ops.get_commit_totals(
                    session, repos, since
                )
                counts = await commit_ops.get_contributor_counts(session, repos, since)
        except Exception as e:
            logger.warning(f"Database stats query failed, keeping GitHub totals: {e}")
            return contributors, False

        stats["total_commits"] = count
        stats["total_additions"] = additions
        stats["total_deletions"] = deletions
        return reconcile_contributors(contributors, counts), True

    async def _build(
        self, repos: list[RepoRef], time_range: TimeRange, locale: str
    ) -> dict[str, Any]:
        snapshots = await asyncio.gather(*[self._fetch_repo(ref) for ref in repos])
        available = [s for s in snapshots if s is not None]
        if not available:
            raise GitHubAPIError("No repository stats available", 503)

        stats = aggregate_stats(available)
        contributors, from_database = await self._apply_database_counts(
            stats, merge_contributors(available), repos, time_range
        )

        timelines = await self.timelines.source.fetch_timelines(repos, time_range, locale)
        combined = merge_timelines(timelines)

        response = MultiStatsResponse(
            stats=AggregatedStatsSchema(**stats),
            languages=[LanguageSchema(**asdict(lang)) for lang in merge_languages(available)],
            contributors=[
                ContributorSchema(
                    username=c.login,
                    avatar=c.avatar_url,
                    commits=c.contributions,
                    profile_url=c.profile_url,
                )
                for c in contributors
            ],
            timelines=[RepoTimelineSchema.from_timeline(t) for t in timelines],
            combined_timeline=[CombinedPointSchema.from_point(p) for p in combined],
            available_periods=list(VALID_TIME_RANGES),
            default_period=DEFAULT_TIME_RANGE,
        )
        data_source = SOURCE_DATABASE if from_database else self.timelines.source.name
        logger.info(
            f"Built {time_range} stats for {len(available)}/{len(repos)} repos "
            f"(source={data_source})"
        )
        return {
            "data_source": data_source,
            "payload": response.model_dump(by_alias=True, mode="json"),
        }

    async def get_multi_stats(
        self, repos: list[RepoRef], time_range: TimeRange, locale: str
    ) -> PayloadResult:
        """
        Return combined stats for repos, from cache when still live.

        A repository GitHub cannot describe is left out of the totals.

        Raises:
            GitHubAPIError: 503 when no repository could be described
        """
        ttl = ttl_for_range(time_range)
        key = stats_cache_key(repos, time_range, locale)

        async def produce() -> dict[str, Any]:
            return await self._build(repos, time_range, locale)

        result = await with_cache(self.store, key, ttl, produce)
        return PayloadResult(
            payload=result.data["payload"],
            data_source=result.data["data_source"],
            from_cache=result.from_cache,
            ttl_seconds=ttl,
        )
