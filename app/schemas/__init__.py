from app.schemas.commits import (
    CommitDetailSchema,
    CommitItemSchema,
    FileChangeSchema,
    MultiCommitsResponse,
    RepoCommitsSchema,
)
from app.schemas.stats import (
    AggregatedStatsSchema,
    ContributorSchema,
    LanguageSchema,
    MultiStatsResponse,
)
from app.schemas.timeline import (
    CombinedPointSchema,
    HealthResponse,
    MultiTimelineResponse,
    RepoTimelineSchema,
    TimelinePointSchema,
)

__all__ = [
    "AggregatedStatsSchema",
    "CombinedPointSchema",
    "CommitDetailSchema",
    "CommitItemSchema",
    "ContributorSchema",
    "FileChangeSchema",
    "HealthResponse",
    "LanguageSchema",
    "MultiCommitsResponse",
    "MultiStatsResponse",
    "RepoCommitsSchema",
    "RepoTimelineSchema",
    "TimelinePointSchema",
]
