"""Domain operations for persisted commits."""

from collections import defaultdict
from datetime import UTC, date, datetime, time

from sqlalchemy import and_, func, literal_column, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from app.models.commit import Commit
from app.models.repository import Repository
from app.services.github.constants import find_allowed_repository
from app.services.github.types import CommitItem, DailyCount, RepoRef


def _repo_filter(repos: list[RepoRef]) -> ColumnElement[bool]:
    """Match any of repos by owner and name, ignoring case."""
    return or_(
        *[
            and_(
                func.lower(Repository.owner) == ref.owner.lower(),
                func.lower(Repository.name) == ref.name.lower(),
            )
            for ref in repos
        ]
    )


def _iso_utc(value: datetime) -> str:
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def _display_name(owner: str, name: str, stored: str | None) -> str:
    if stored:
        return stored
    allowed = find_allowed_repository(owner, name)
    return allowed.display_name if allowed else name


class CommitOperations:
    """
    Read-only queries over the commits table.

    Note: Commits are written by an external sync process, so there are
    no create/update operations here.
    """

    def __init__(self) -> None:
        self.model = Commit

    async def get_daily_counts(
        self,
        db: AsyncSession,
        repos: list[RepoRef],
        since: date,
    ) -> dict[str, list[DailyCount]]:
        """
        Count commits per repository and UTC day in a single grouped query.

        Args:
            db: Database session
            repos: Repositories to count (matched case-insensitively)
            since: First day to include

        Returns:
            Dict mapping lower-cased "owner/name" -> ascending daily counts.
            Repositories without commits in the window are absent.
        """
        if not repos:
            return {}

        start = datetime.combine(since, time.min, tzinfo=UTC)
        # Literal arguments keep the SELECT and GROUP BY expressions textually identical
        utc_time = func.timezone(literal_column("'UTC'"), Commit.committed_at)
        day = func.date_trunc(literal_column("'day'"), utc_time).label("day")

        statement = (
            select(Repository.owner, Repository.name, day, func.count(Commit.id).label("commits"))
            .select_from(Commit)
            .join(Repository, Repository.id == Commit.repository_id)  # type: ignore[arg-type]
            .where(_repo_filter(repos), Commit.committed_at >= start)  # type: ignore[arg-type]
            .group_by(Repository.owner, Repository.name, day)
            .order_by(day)
        )
        result = await db.execute(statement)

        counts: dict[str, list[DailyCount]] = defaultdict(list)
        for owner, name, bucket, commits in result.all():
            bucket_day = bucket.date() if isinstance(bucket, datetime) else bucket
            counts[f"{owner}/{name}".lower()].append(
                DailyCount(date=bucket_day.isoformat(), commits=int(commits))
            )
        return dict(counts)

    async def list_commits(
        self,
        db: AsyncSession,
        repos: list[RepoRef],
        since: datetime,
        sha_prefix: str = "",
    ) -> list[CommitItem]:
        """
        List commits of repos committed at or after since, newest first.

        Args:
            db: Database session
            repos: Repositories to list (matched case-insensitively)
            since: Earliest commit time to include
            sha_prefix: Optional case-insensitive SHA prefix filter

        Returns:
            CommitItem list carrying the stored size statistics
        """
        if not repos:
            return []

        statement = (
            select(Commit, Repository.owner, Repository.name, Repository.display_name)
            .join(Repository, Repository.id == Commit.repository_id)  # type: ignore[arg-type]
            .where(_repo_filter(repos), Commit.committed_at >= since)  # type: ignore[arg-type]
            .order_by(Commit.committed_at.desc())  # type: ignore[attr-defined]
        )
        if sha_prefix:
            statement = statement.where(
                func.lower(Commit.sha).startswith(sha_prefix.lower(), autoescape=True)
            )
        result = await db.execute(statement)

        return [
            CommitItem(
                sha=commit.sha,
                message=commit.message,
                date=_iso_utc(commit.committed_at),
                author=commit.author,
                author_avatar=commit.author_avatar,
                repo_owner=owner,
                repo_name=name,
                repo_display_name=_display_name(owner, name, display_name),
                additions=commit.additions,
                deletions=commit.deletions,
                files_changed=commit.files_changed,
                is_merge_commit=commit.is_merge_commit,
            )
            for commit, owner, name, display_name in result.all()
        ]

    async def get_commit_totals(
        self,
        db: AsyncSession,
        repos: list[RepoRef],
        since: datetime,
    ) -> tuple[int, int, int]:
        """
        Total commits, additions and deletions of repos since a point in time.

        Returns:
            Tuple of (commits, additions, deletions)
        """
        if not repos:
            return 0, 0, 0

        statement = (
            select(
                func.count(Commit.id),
                func.coalesce(func.sum(Commit.additions), 0),
                func.coalesce(func.sum(Commit.deletions), 0),
            )
            .select_from(Commit)
            .join(Repository, Repository.id == Commit.repository_id)  # type: ignore[arg-type]
            .where(_repo_filter(repos), Commit.committed_at >= since)  # type: ignore[arg-type]
        )
        result = await db.execute(statement)
        commits, additions, deletions = result.one()
        return int(commits), int(additions), int(deletions)

    async def get_contributor_counts(
        self,
        db: AsyncSession,
        repos: list[RepoRef],
        since: datetime,
    ) -> dict[str, int]:
        """
        Commit count per GitHub login since a point in time.

        Commits not linked to a GitHub account are not counted.
        """
        if not repos:
            return {}

        statement = (
            select(Commit.author_login, func.count(Commit.id))
            .select_from(Commit)
            .join(Repository, Repository.id == Commit.repository_id)  # type: ignore[arg-type]
            .where(
                _repo_filter(repos),
                Commit.committed_at >= since,  # type: ignore[arg-type]
                Commit.author_login.is_not(None),  # type: ignore[union-attr]
            )
            .group_by(Commit.author_login)
        )
        result = await db.execute(statement)
        return {login: int(count) for login, count in result.all()}


commit_ops = CommitOperations()
