import uuid as uuid_pkg
from datetime import datetime

from sqlalchemy import DateTime, Index
from sqlmodel import Field

from app.models.base import CreatedAtMixin, UUIDMixin


class Commit(UUIDMixin, CreatedAtMixin, table=True):
    """A persisted commit, keyed by (repository_id, sha)."""

    __tablename__ = "commits"
    __table_args__ = (
        Index("ix_commits_repository_sha", "repository_id", "sha", unique=True),
        Index("ix_commits_repository_committed_at", "repository_id", "committed_at"),
    )

    repository_id: uuid_pkg.UUID = Field(foreign_key="repositories.id", nullable=False)
    sha: str = Field(max_length=40, nullable=False, description="Full 40-character git SHA")
    message: str = Field(default="", nullable=False)
    author: str = Field(default="", max_length=255, nullable=False)
    author_login: str | None = Field(default=None, max_length=100)
    author_avatar: str | None = Field(default=None, max_length=500)
    additions: int = Field(default=0, nullable=False)
    deletions: int = Field(default=0, nullable=False)
    files_changed: int = Field(default=0, nullable=False)
    is_merge_commit: bool = Field(default=False, nullable=False)
    committed_at: datetime = Field(  # type: ignore[call-overload]
        nullable=False,
        sa_type=DateTime(timezone=True),
    )
