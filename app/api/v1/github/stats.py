"""Combined repository stats endpoint."""

import logging

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from app.api.deps import Guarded, Stats
from app.api.v1.github.errors import github_api_error
from app.api.v1.github.params import parse_locale, parse_repos, parse_time_range
from app.core.exceptions import APIError
from app.core.security import apply_security_headers
from app.services.github.constants import DEFAULT_LISTING_RANGE
from app.services.github.exceptions import GitHubAPIError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/stats")
async def get_stats(
    guard: Guarded,
    service: Stats,
    repos: str | None = Query(None, description="JSON array of {owner, name} objects"),
    time_range: str | None = Query(None, alias="range", description="7d, 30d, 6m or 12m"),
    locale: str | None = Query(None, description="Label locale (fr or en)"),
) -> JSONResponse:
    """Totals, languages, contributors and timelines over allow-listed repositories."""
    parsed_range = parse_time_range(time_range, default=DEFAULT_LISTING_RANGE)
    parsed_locale = parse_locale(locale)
    repo_refs = parse_repos(repos)

    try:
        result = await service.get_multi_stats(repo_refs, parsed_range, parsed_locale)
    except GitHubAPIError as e:
        logger.warning(f"Stats failed upstream ({parsed_range}): {e}")
        raise github_api_error(e) from e
    except Exception as e:
        logger.exception(f"Stats request failed ({parsed_range}, {len(repo_refs)} repos): {e}")
        raise APIError("SERVER_ERROR") from e

    response = JSONResponse(
        content=result.payload,
        headers={
            "Cache-Control": f"public, s-maxage={result.ttl_seconds}, stale-while-revalidate",
            "X-Cache": "HIT" if result.from_cache else "MISS",
            "X-Data-Source": result.data_source,
        },
    )
    apply_security_headers(response, guard.remaining)
    return response
