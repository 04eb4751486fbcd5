"""
Commit listing and commit detail service.

Listings go through the response cache like timelines: the cached value
records which source produced it. Commit detail always comes from the
GitHub API and is cached for an hour, since a commit never changes.
"""

import logging
from datetime import datetime
from typing import Any, Protocol

from app.schemas.commits import (
    CommitDetailSchema,
    CommitItemSchema,
    MultiCommitsResponse,
    RepoCommitsSchema,
)
from app.services.github.cache import (
    KeyValueStore,
    commit_detail_cache_key,
    commits_cache_key,
    ttl_for_range,
    with_cache,
)
from app.services.github.constants import (
    COMMIT_DETAIL_MAX_AGE,
    COMMIT_DETAIL_TTL,
    MAX_LISTED_COMMITS,
)
from app.services.github.service import PayloadResult
from app.services.github.sources import SOURCE_GITHUB, CommitSource
from app.services.github.types import CommitDetail, RepoRef, TimeRange

logger = logging.getLogger(__name__)


class CommitDetailReader(Protocol):
    async def get_commit_detail(self, owner: str, repo: str, sha: str) -> CommitDetail: ...


def _dump(model: Any) -> dict[str, Any]:
    return model.model_dump(by_alias=True, mode="json", exclude_none=True)


class CommitService:
    """Serves commit listings and single commits through the response cache."""

    def __init__(self, source: CommitSource, reader: CommitDetailReader, store: KeyValueStore):
        self.source = source
        self.reader = reader
        self.store = store

    async def _build(
        self, repos: list[RepoRef], time_range: TimeRange, sha_prefix: str
    ) -> dict[str, Any]:
        listings = await self.source.fetch_commits(repos, time_range, sha_prefix)

        all_commits = [c for listing in listings for c in listing.commits]
        all_commits.sort(key=lambda c: datetime.fromisoformat(c.date), reverse=True)

        response = MultiCommitsResponse(
            commits_by_repo={
                listing.repo_name: RepoCommitsSchema.from_listing(listing) for listing in listings
            },
            all_commits=[CommitItemSchema.from_commit(c) for c in all_commits[:MAX_LISTED_COMMITS]],
            total=len(all_commits),
        )
        logger.info(
            f"Listed {len(all_commits)} commits for {len(repos)} repos "
            f"({time_range}, source={self.source.name})"
        )
        return {"data_source": self.source.name, "payload": _dump(response)}

    async def get_multi_commits(
        self, repos: list[RepoRef], time_range: TimeRange, sha_prefix: str = ""
    ) -> PayloadResult:
        """
        Return commits of repos, newest first, from cache when still live.

        Args:
            repos: Validated, allow-listed repositories
            time_range: Requested time range
            sha_prefix: Optional case-insensitive SHA prefix filter

        Returns:
            PayloadResult; allCommits holds at most the newest 100 commits while
            commitsByRepo and total cover every listed commit
        """
        ttl = ttl_for_range(time_range)
        key = commits_cache_key(repos, time_range, sha_prefix)

        async def produce() -> dict[str, Any]:
            return await self._build(repos, time_range, sha_prefix)

        result = await with_cache(self.store, key, ttl, produce)
        return PayloadResult(
            payload=result.data["payload"],
            data_source=result.data["data_source"],
            from_cache=result.from_cache,
            ttl_seconds=ttl,
        )

    async def get_commit_detail(self, ref: RepoRef, sha: str) -> PayloadResult:
        """
        Return one commit with its diff statistics.

        Raises:
            GitHubAPIError: From the GitHub API (404 for an unknown commit)
        """

        async def produce() -> dict[str, Any]:
            detail = await self.reader.get_commit_detail(ref.owner, ref.name, sha)
            return _dump(CommitDetailSchema.from_detail(detail))

        result = await with_cache(
            self.store, commit_detail_cache_key(ref, sha), COMMIT_DETAIL_TTL, produce
        )
        return PayloadResult(
            payload=result.data,
            data_source=SOURCE_GITHUB,
            from_cache=result.from_cache,
            ttl_seconds=COMMIT_DETAIL_MAX_AGE,
        )
