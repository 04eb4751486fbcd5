"""Pydantic schemas for the commit listing and commit detail endpoints."""

from pydantic import BaseModel, ConfigDict, Field

from app.services.github.types import CommitDetail, CommitItem, RepoCommits


class CommitItemSchema(BaseModel):
    """A listed commit. Size fields are present only for persisted commits."""

    model_config = ConfigDict(populate_by_name=True)

    sha: str
    short_sha: str = Field(alias="shortSha")
    message: str
    message_title: str = Field(alias="messageTitle")
    date: str
    author: str
    author_avatar: str | None = Field(default=None, alias="authorAvatar")
    repo_owner: str = Field(alias="repoOwner")
    repo_name: str = Field(alias="repoName")
    repo_display_name: str = Field(alias="repoDisplayName")
    additions: int | None = None
    deletions: int | None = None
    files_changed: int | None = Field(default=None, alias="filesChanged")
    is_merge_commit: bool | None = Field(default=None, alias="isMergeCommit")

    @classmethod
    def from_commit(cls, commit: CommitItem) -> "CommitItemSchema":
        return cls(
            sha=commit.sha,
            short_sha=commit.short_sha,
            message=commit.message,
            message_title=commit.message_title,
            date=commit.date,
            author=commit.author,
            author_avatar=commit.author_avatar,
            repo_owner=commit.repo_owner,
            repo_name=commit.repo_name,
            repo_display_name=commit.repo_display_name,
            additions=commit.additions,
            deletions=commit.deletions,
            files_changed=commit.files_changed,
            is_merge_commit=commit.is_merge_commit,
        )


class RepoCommitsSchema(BaseModel):
    """All listed commits of one repository."""

    model_config = ConfigDict(populate_by_name=True)

    display_name: str = Field(alias="displayName")
    commits: list[CommitItemSchema]
    total: int

    @classmethod
    def from_listing(cls, listing: RepoCommits) -> "RepoCommitsSchema":
        return cls(
            display_name=listing.display_name,
            commits=[CommitItemSchema.from_commit(c) for c in listing.commits],
            total=len(listing.commits),
        )


class MultiCommitsResponse(BaseModel):
    """Response for GET /github/commits."""

    model_config = ConfigDict(populate_by_name=True)

    commits_by_repo: dict[str, RepoCommitsSchema] = Field(alias="commitsByRepo")
    all_commits: list[CommitItemSchema] = Field(alias="allCommits")
    total: int


class FileChangeSchema(BaseModel):
    filename: str
    status: str
    additions: int
    deletions: int


class CommitDetailSchema(BaseModel):
    """Response for GET /github/commit/{sha}."""

    model_config = ConfigDict(populate_by_name=True)

    sha: str
    short_sha: str = Field(alias="shortSha")
    message: str
    message_title: str = Field(alias="messageTitle")
    date: str
    author: str
    author_avatar: str | None = Field(default=None, alias="authorAvatar")
    additions: int
    deletions: int
    changes: int
    files_changed: int = Field(alias="filesChanged")
    files: list[FileChangeSchema]
    html_url: str = Field(alias="htmlUrl")

    @classmethod
    def from_detail(cls, detail: CommitDetail) -> "CommitDetailSchema":
        return cls(
            sha=detail.sha,
            short_sha=detail.short_sha,
            message=detail.message,
            message_title=detail.message_title,
            date=detail.date,
            author=detail.author,
            author_avatar=detail.author_avatar,
            additions=detail.additions,
            deletions=detail.deletions,
            changes=detail.changes,
            files_changed=len(detail.files),
            files=[
                FileChangeSchema(
                    filename=f.filename,
                    status=f.status,
                    additions=f.additions,
                    deletions=f.deletions,
                )
                for f in detail.files
            ],
            html_url=detail.html_url,
        )
