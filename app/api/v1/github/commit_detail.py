"""Single commit endpoint."""

import logging

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from app.api.deps import Commits, Guarded
from app.api.v1.github.errors import github_api_error
from app.api.v1.github.params import parse_repository, parse_sha
from app.core.exceptions import APIError
from app.core.security import apply_security_headers
from app.services.github.exceptions import GitHubAPIError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/commit/{sha}")
async def get_commit(
    sha: str,
    guard: Guarded,
    service: Commits,
    owner: str | None = Query(None, description="Repository owner"),
    repo: str | None = Query(None, description="Repository name"),
) -> JSONResponse:
    """One commit with its changed files; owner/repo default to the main repository."""
    ref = parse_repository(owner, repo)
    parse_sha(sha)

    try:
        result = await service.get_commit_detail(ref, sha)
    except GitHubAPIError as e:
        logger.warning(f"Commit {sha} of {ref.full_name} unavailable: {e}")
        raise github_api_error(e, not_found="Commit not found") from e
    except Exception as e:
        logger.exception(f"Commit request failed ({ref.full_name}@{sha}): {e}")
        raise APIError("SERVER_ERROR") from e

    response = JSONResponse(
        content=result.payload,
        headers={
            "Cache-Control": f"public, s-maxage={result.ttl_seconds}, stale-while-revalidate",
            "X-Cache": "HIT" if result.from_cache else "MISS",
        },
    )
    apply_security_headers(response, guard.remaining)
    return response
