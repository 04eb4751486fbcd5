"""Pydantic schemas for the multi-repository stats endpoint."""

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.timeline import CombinedPointSchema, RepoTimelineSchema
from app.services.github.types import TimeRange


class AggregatedStatsSchema(BaseModel):
    """Totals over every requested repository."""

    model_config = ConfigDict(populate_by_name=True)

    stars: int
    forks: int
    issues: int
    size: int
    last_push: str = Field(alias="lastPush")
    default_branch: str = Field(alias="defaultBranch")
    total_commits: int = Field(alias="totalCommits")
    total_additions: int = Field(alias="totalAdditions")
    total_deletions: int = Field(alias="totalDeletions")


class LanguageSchema(BaseModel):
    name: str
    bytes: int
    percentage: float
    color: str


class ContributorSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str
    avatar: str
    commits: int
    profile_url: str = Field(alias="profileUrl")


class MultiStatsResponse(BaseModel):
    """Response for GET /github/stats."""

    model_config = ConfigDict(populate_by_name=True)

    stats: AggregatedStatsSchema
    languages: list[LanguageSchema]
    contributors: list[ContributorSchema]
    timelines: list[RepoTimelineSchema]
    combined_timeline: list[CombinedPointSchema] = Field(alias="combinedTimeline")
    available_periods: list[TimeRange] = Field(alias="availablePeriods")
    default_period: TimeRange = Field(alias="defaultPeriod")
