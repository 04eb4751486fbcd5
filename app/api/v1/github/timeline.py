"""Commit activity timeline endpoint."""

import logging

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from app.api.deps import Guarded, Timelines
from app.api.v1.github.params import parse_locale, parse_repos, parse_time_range
from app.core.exceptions import APIError
from app.core.security import apply_security_headers

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/timeline")
async def get_timeline(
    guard: Guarded,
    service: Timelines,
    repos: str | None = Query(None, description="JSON array of {owner, name} objects"),
    time_range: str | None = Query(None, alias="range", description="7d, 30d, 6m or 12m"),
    locale: str | None = Query(None, description="Label locale (fr or en)"),
) -> JSONResponse:
    """
    Per-repository and combined commit timelines for allow-listed repositories.

    Omitting repos selects every allow-listed repository.
    """
    parsed_range = parse_time_range(time_range)
    parsed_locale = parse_locale(locale)
    repo_refs = parse_repos(repos)

    try:
        result = await service.get_multi_timeline(repo_refs, parsed_range, parsed_locale)
    except Exception as e:
        logger.exception(f"Timeline request failed ({parsed_range}, {len(repo_refs)} repos): {e}")
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
