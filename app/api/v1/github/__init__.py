"""GitHub activity endpoints."""

from fastapi import APIRouter

from app.api.v1.github import commit_detail, commits, stats, timeline

router = APIRouter(prefix="/github", tags=["github"])

router.include_router(timeline.router)
router.include_router(commits.router)
router.include_router(stats.router)
router.include_router(commit_detail.router)

__all__ = ["router"]
