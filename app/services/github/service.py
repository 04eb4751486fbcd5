"""
Multi-repository timeline service.

Orchestrates one timeline request: cache lookup, source fetch on a miss,
merge, and payload shaping. The cached value records which source produced
it, so a cache hit reports the same X-Data-Source as the original miss.
"""

import logging
from dataclasses import dataclass
from typing import Any

from app.schemas.timeline import CombinedPointSchema, MultiTimelineResponse, RepoTimelineSchema
from app.services.github.cache import (
    KeyValueStore,
    timeline_cache_key,
    ttl_for_range,
    with_cache,
)
from app.services.github.constants import DEFAULT_TIME_RANGE, VALID_TIME_RANGES
from app.services.github.merge import merge_timelines
from app.services.github.sources import TimelineSource
from app.services.github.types import RepoRef, TimeRange

logger = logging.getLogger(__name__)


@dataclass
class PayloadResult:
    """A JSON payload plus the metadata the endpoint turns into headers."""

    payload: dict[str, Any]
    data_source: str
    from_cache: bool
    ttl_seconds: int


class TimelineService:
    """Serves merged commit timelines through the response cache."""

    def __init__(self, source: TimelineSource, store: KeyValueStore):
        self.source = source
        self.store = store

    async def _build(
        self, repos: list[RepoRef], time_range: TimeRange, locale: str
    ) -> dict[str, Any]:
        timelines = await self.source.fetch_timelines(repos, time_range, locale)
        combined = merge_timelines(timelines)

        response = MultiTimelineResponse(
            timelines=[RepoTimelineSchema.from_timeline(t) for t in timelines],
            combined_timeline=[CombinedPointSchema.from_point(p) for p in combined],
            available_periods=list(VALID_TIME_RANGES),
            default_period=DEFAULT_TIME_RANGE,
        )
        total = sum(t.total_commits for t in timelines)
        logger.info(
            f"Built {time_range} timeline for {len(repos)} repos "
            f"({total} commits, source={self.source.name})"
        )
        return {
            "data_source": self.source.name,
            "payload": response.model_dump(by_alias=True, mode="json"),
        }

    async def get_multi_timeline(
        self, repos: list[RepoRef], time_range: TimeRange, locale: str
    ) -> PayloadResult:
        """
        Return the merged timeline for repos, from cache when still live.

        Args:
            repos: Validated, allow-listed repositories in display order
            time_range: Requested time range
            locale: Label locale

        Returns:
            PayloadResult with the JSON payload and cache metadata
        """
        ttl = ttl_for_range(time_range)
        key = timeline_cache_key(repos, time_range, locale)

        async def produce() -> dict[str, Any]:
            return await self._build(repos, time_range, locale)

        result = await with_cache(self.store, key, ttl, produce)
        return PayloadResult(
            payload=result.data["payload"],
            data_source=result.data["data_source"],
            from_cache=result.from_cache,
            ttl_seconds=ttl,
        )
