"""Commit listing endpoint."""

import logging

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from app.api.deps import Commits, Guarded
from app.api.v1.github.errors import github_api_error
from app.api.v1.github.params import parse_repos, parse_search, parse_time_range
from app.core.exceptions import APIError
from app.core.security import apply_security_headers
from app.services.github.constants import DEFAULT_LISTING_RANGE
from app.services.github.exceptions import GitHubAPIError
from app.services.github.sources import SOURCE_DATABASE

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/commits")
async def get_commits(
    guard: Guarded,
    service: Commits,
    repos: str | None = Query(None, description="JSON array of {owner, name} objects"),
    time_range: str | None = Query(None, alias="range", description="7d, 30d, 6m or 12m"),
    q: str | None = Query(None, description="Commit SHA prefix"),
) -> JSONResponse:
    """
    Commits of allow-listed repositories, newest first.

    allCommits holds the newest 100 across all repositories; commitsByRepo
    holds every listed commit per repository.
    """
    parsed_range = parse_time_range(time_range, default=DEFAULT_LISTING_RANGE)
    repo_refs = parse_repos(repos)
    search = parse_search(q)

    try:
        result = await service.get_multi_commits(repo_refs, parsed_range, search)
    except GitHubAPIError as e:
        logger.warning(f"Commit listing failed upstream ({parsed_range}): {e}")
        raise github_api_error(e) from e
    except Exception as e:
        logger.exception(f"Commit listing failed ({parsed_range}, {len(repo_refs)} repos): {e}")
        raise APIError("SERVER_ERROR") from e

    if result.data_source == SOURCE_DATABASE:
        cache_control = "no-store, no-cache, must-revalidate"
    else:
        cache_control = f"public, s-maxage={result.ttl_seconds}, stale-while-revalidate"

    response = JSONResponse(
        content=result.payload,
        headers={
            "Cache-Control": cache_control,
            "X-Cache": "HIT" if result.from_cache else "MISS",
            "X-Data-Source": result.data_source,
        },
    )
    apply_security_headers(response, guard.remaining)
    return response
