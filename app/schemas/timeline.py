"""Pydantic schemas for the commit activity timeline endpoint."""

from pydantic import BaseModel, ConfigDict, Field

from app.services.github.types import MultiRepoTimelinePoint, RepoTimeline, TimeRange


class TimelinePointSchema(BaseModel):
    """One bucket of a repository timeline."""

    date: str
    label: str
    commits: int


class RepoTimelineSchema(BaseModel):
    """Bucketed timeline for a single repository."""

    model_config = ConfigDict(populate_by_name=True)

    repo_name: str = Field(alias="repoName")
    repo_display_name: str = Field(alias="repoDisplayName")
    color: str
    data: list[TimelinePointSchema]
    total_commits: int = Field(alias="totalCommits")

    @classmethod
    def from_timeline(cls, timeline: RepoTimeline) -> "RepoTimelineSchema":
        return cls(
            repo_name=timeline.repo_name,
            repo_display_name=timeline.repo_display_name,
            color=timeline.color,
            data=[
                TimelinePointSchema(date=p.date, label=p.label, commits=p.commits)
                for p in timeline.data
            ],
            total_commits=timeline.total_commits,
        )


class CombinedPointSchema(BaseModel):
    """Merged bucket; each repository's count is an extra top-level key."""

    model_config = ConfigDict(extra="allow")

    date: str
    label: str

    @classmethod
    def from_point(cls, point: MultiRepoTimelinePoint) -> "CombinedPointSchema":
        return cls(date=point.date, label=point.label, **point.values)


class MultiTimelineResponse(BaseModel):
    """Response for GET /github/timeline."""

    model_config = ConfigDict(populate_by_name=True)

    timelines: list[RepoTimelineSchema]
    combined_timeline: list[CombinedPointSchema] = Field(alias="combinedTimeline")
    available_periods: list[TimeRange] = Field(alias="availablePeriods")
    default_period: TimeRange = Field(alias="defaultPeriod")


class HealthResponse(BaseModel):
    """Response for GET /health."""

    status: str
    source: str
    cache: dict[str, int] | None = None
