"""
GitHub activity package.

Module structure:
- read_operations.py: GitHub statistics, commit and repository API calls
- http_client.py: Shared pooled HTTP client
- helpers.py: Rate limit handling and error utilities
- transform.py: Daily series -> bucketed, labeled timeline
- merge.py: Per-repository timelines -> combined timeline
- aggregate.py: Per-repository stats -> combined totals, languages, contributors
- cache.py: TTL response cache
- sources.py: Live API and database timeline and commit sources
- service.py: Timeline orchestration (cache, source, merge)
- commit_service.py: Commit listings and single commits
- stats_service.py: Combined repository stats
- types.py: Data types
- exceptions.py: Custom exceptions
- constants.py: Allow-list, ranges and configuration

sources.py and the service modules depend on app.domain and are imported
by their full module path.
"""

from app.services.github.aggregate import merge_contributors, merge_languages
from app.services.github.cache import MemoryKeyValueStore, with_cache
from app.services.github.exceptions import GitHubAPIError, RepositoryNotAllowedError
from app.services.github.helpers import RateLimitInfo, handle_error_response
from app.services.github.http_client import close_github_client, get_github_client
from app.services.github.merge import merge_timelines
from app.services.github.read_operations import GitHubReadOperations
from app.services.github.transform import transform_activity
from app.services.github.types import (
    CommitDetail,
    CommitItem,
    ContributorInfo,
    DailyCount,
    LanguageStat,
    MultiRepoTimelinePoint,
    RepoRef,
    RepoTimeline,
    TimelinePoint,
    TimeRange,
)

__all__ = [
    # Operation classes
    "GitHubReadOperations",
    # HTTP client lifecycle
    "close_github_client",
    "get_github_client",
    # Timeline building
    "transform_activity",
    "merge_timelines",
    # Stats aggregation
    "merge_contributors",
    "merge_languages",
    # Cache
    "MemoryKeyValueStore",
    "with_cache",
    # Utilities
    "handle_error_response",
    "RateLimitInfo",
    # Exceptions
    "GitHubAPIError",
    "RepositoryNotAllowedError",
    # Types
    "CommitDetail",
    "CommitItem",
    "ContributorInfo",
    "DailyCount",
    "LanguageStat",
    "MultiRepoTimelinePoint",
    "RepoRef",
    "RepoTimeline",
    "TimelinePoint",
    "TimeRange",
]
