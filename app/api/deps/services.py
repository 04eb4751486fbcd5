"""Dependencies resolving the per-application components built by create_app()."""

from typing import Annotated

from fastapi import Depends, Request

from app.core.security import GuardResult, RequestGuard
from app.services.github.commit_service import CommitService
from app.services.github.service import TimelineService
from app.services.github.stats_service import StatsService


def get_request_guard(request: Request) -> RequestGuard:
    """The application's request guard (shared rate-limit state)."""
    return request.app.state.request_guard


def get_timeline_service(request: Request) -> TimelineService:
    """The application's timeline service."""
    return request.app.state.timeline_service


def get_commit_service(request: Request) -> CommitService:
    """The application's commit listing and detail service."""
    return request.app.state.commit_service


def get_stats_service(request: Request) -> StatsService:
    return request.app.state.stats_service


def guard_request(
    request: Request,
    guard: RequestGuard = Depends(get_request_guard),
) -> GuardResult:
    """
    Admit the request or raise 429/403.

    Declared first on GitHub activity routes so it runs before parameter
    validation and any cache or upstream work. The remaining count is kept on
    request.state so error responses raised later still report it.
    """
    result = guard.check(request)
    request.state.rate_limit_remaining = result.remaining
    return result


# Type aliases for cleaner dependency injection
Guarded = Annotated[GuardResult, Depends(guard_request)]
Timelines = Annotated[TimelineService, Depends(get_timeline_service)]
Commits = Annotated[CommitService, Depends(get_commit_service)]
Stats = Annotated[StatsService, Depends(get_stats_service)]
