"""API dependencies - re-exports from submodules."""

from .services import (
    Commits,
    Guarded,
    Stats,
    Timelines,
    get_commit_service,
    get_request_guard,
    get_stats_service,
    get_timeline_service,
    guard_request,
)

__all__ = [
    "Commits",
    "Guarded",
    "Stats",
    "Timelines",
    "get_commit_service",
    "get_request_guard",
    "get_stats_service",
    "get_timeline_service",
    "guard_request",
]
