"""Data types for commit timelines, listings and repository stats."""

from dataclasses import dataclass, field
from typing import Literal

TimeRange = Literal["7d", "30d", "6m", "12m"]
Granularity = Literal["daily", "weekly", "monthly"]


@dataclass(frozen=True)
class RepoRef:
    """Owner/name pair identifying a GitHub repository."""

    owner: str
    name: str

    @property
    def key(self) -> str:
        """Cache-key form: "owner:name"."""
        return f"{self.owner}:{self.name}"

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class AllowedRepository:
    """Allow-listed repository with its display name."""

    owner: str
    name: str
    display_name: str

    @property
    def ref(self) -> RepoRef:
        return RepoRef(self.owner, self.name)


@dataclass(frozen=True)
class PeriodConfig:
    """Window length and bucket granularity for a time range."""

    range: TimeRange
    days: int
    granularity: Granularity


@dataclass
class DailyCount:
    """Raw commit count for one calendar day (ISO date)."""

    date: str
    commits: int


@dataclass
class TimelinePoint:
    """One bucket of a repository timeline."""

    date: str  # ISO date (YYYY-MM-DD) of the bucket start
    label: str  # Localized display string
    commits: int


@dataclass
class RepoTimeline:
    """Bucketed commit timeline for a single repository."""

    repo_name: str
    repo_display_name: str
    color: str
    data: list[TimelinePoint] = field(default_factory=list)

    @property
    def total_commits(self) -> int:
        return sum(p.commits for p in self.data)


@dataclass
class MultiRepoTimelinePoint:
    """A combined bucket with one commit count per participating repository.

    values is ordered by repository key and always holds every repository.
    """

    date: str
    label: str
    values: dict[str, int] = field(default_factory=dict)


@dataclass
class CommitItem:
    """A commit as listed by the commits endpoint.

    The size fields are only known for persisted commits; the GitHub list
    endpoint does not return them.
    """

    sha: str
    message: str
    date: str  # ISO 8601 timestamp
    author: str
    repo_owner: str
    repo_name: str
    repo_display_name: str
    author_avatar: str | None = None
    additions: int | None = None
    deletions: int | None = None
    files_changed: int | None = None
    is_merge_commit: bool | None = None

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @property
    def message_title(self) -> str:
        return self.message.split("\n", 1)[0]


@dataclass
class RepoCommits:
    """Commits of one repository, newest first."""

    repo_name: str
    display_name: str
    commits: list[CommitItem] = field(default_factory=list)


@dataclass
class FileChange:
    """One file touched by a commit."""

    filename: str
    status: str  # added, modified, removed, renamed
    additions: int
    deletions: int


@dataclass
class CommitDetail:
    """Single commit with its diff statistics."""

    sha: str
    message: str
    date: str
    author: str
    author_avatar: str | None
    additions: int
    deletions: int
    changes: int
    files: list[FileChange]
    html_url: str

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @property
    def message_title(self) -> str:
        return self.message.split("\n", 1)[0]


@dataclass
class LanguageStat:
    """Language statistics for a repository."""

    name: str
    bytes: int
    percentage: float
    color: str  # Hex color for display


@dataclass
class ContributorInfo:
    """Contributor information."""

    login: str
    avatar_url: str
    contributions: int  # Number of commits
    profile_url: str


@dataclass
class RepoInfo:
    """Repository metadata used by the stats endpoint."""

    stars: int
    forks: int
    open_issues: int
    size: int  # KB, as reported by GitHub
    pushed_at: str
    default_branch: str


@dataclass
class RepoSnapshot:
    """Metadata of one repository gathered for the stats endpoint."""

    repo_name: str
    info: RepoInfo
    languages: list[LanguageStat]
    contributors: list[ContributorInfo]
    additions: int
    deletions: int
