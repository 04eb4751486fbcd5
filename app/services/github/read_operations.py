"""
GitHub API read operations.

Fetches per-repository commit activity, commit listings, commit detail and
repository metadata. GitHub computes repository statistics lazily and
answers 202 while they are being generated, so statistics calls are retried
with backoff.
"""

import asyncio
import logging
import re
from datetime import datetime
from typing import Any
from urllib.parse import quote

from app.services.github.constants import (
    COMMIT_PAGE_SIZE,
    DEFAULT_LANGUAGE_COLOR,
    GITHUB_LANGUAGE_COLORS,
    MAX_CONTRIBUTORS,
    find_allowed_repository,
)
from app.services.github.exceptions import GitHubAPIError, RepositoryNotAllowedError
from app.services.github.helpers import handle_error_response
from app.services.github.http_client import GITHUB_API_BASE, get_github_client
from app.services.github.transform import commit_activity_to_daily
from app.services.github.types import (
    CommitDetail,
    CommitItem,
    ContributorInfo,
    DailyCount,
    FileChange,
    LanguageStat,
    RepoInfo,
)

logger = logging.getLogger(__name__)

# Retry policy for 202 "statistics are being generated" responses
STATS_MAX_ATTEMPTS = 15
STATS_INITIAL_DELAY = 1.0  # seconds
STATS_BACKOFF_FACTOR = 1.7
STATS_MAX_DELAY = 15.0  # seconds

# Commits fetched when /contributors is empty and authors are counted instead
CONTRIBUTOR_FALLBACK_COMMITS = 100

GITHUB_LOGIN_PATTERN = re.compile(r"^[a-zA-Z0-9](?:[a-zA-Z0-9]|-(?=[a-zA-Z0-9])){0,38}$")


def stats_retry_delay(attempt: int) -> float:
    """Delay before retrying a 202 response (attempt is 0-indexed)."""
    return min(STATS_INITIAL_DELAY * STATS_BACKOFF_FACTOR**attempt, STATS_MAX_DELAY)


class GitHubReadOperations:
    """
    Read-only operations for GitHub API.

    Uses the shared HTTP client singleton for connection pooling. Every
    operation checks the allow-list first and sends nothing for other
    repositories.
    """

    API_VERSION = "2022-11-28"

    def __init__(self, token: str, base_url: str = GITHUB_API_BASE):
        self.token = token
        self.base_url = base_url
        self._headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": self.API_VERSION,
        }
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    def _check_allowed(self, owner: str, repo: str) -> str:
        """Return "owner/repo" or raise RepositoryNotAllowedError."""
        repo_name = f"{owner}/{repo}"
        if find_allowed_repository(owner, repo) is None:
            raise RepositoryNotAllowedError(repo_name)
        return repo_name

    async def _get(
        self, path: str, repo_name: str, params: dict[str, str | int] | None = None
    ) -> Any:
        client = get_github_client(self.base_url)
        response = await client.get(path, headers=self._headers, params=params)
        handle_error_response(response, repo_name)
        return response.json()

    async def _get_stats(self, path: str, repo_name: str) -> Any:
        """GET a /stats endpoint, waiting out 202 responses."""
        client = get_github_client(self.base_url)

        for attempt in range(STATS_MAX_ATTEMPTS):
            response = await client.get(path, headers=self._headers)

            if response.status_code == 202:
                delay = stats_retry_delay(attempt)
                logger.debug(f"Stats for {repo_name} not ready, retrying in {delay:.1f}s")
                await asyncio.sleep(delay)
                continue

            if response.status_code == 204:
                return []  # Empty repository, no statistics

            handle_error_response(response, repo_name)
            return response.json()

        raise GitHubAPIError(f"Statistics still being generated for {repo_name}", 503)

    async def get_commit_activity(self, owner: str, repo: str) -> list[DailyCount]:
        """
        Fetch the last year of daily commit counts for a repository.

        Args:
            owner: Repository owner
            repo: Repository name

        Returns:
            Ascending list of DailyCount, one per day GitHub reports

        Raises:
            RepositoryNotAllowedError: If the repository is not allow-listed (no request sent)
            GitHubAPIError: On any upstream failure
        """
        repo_name = self._check_allowed(owner, repo)

        weeks = await self._get_stats(f"/repos/{owner}/{repo}/stats/commit_activity", repo_name)
        if not isinstance(weeks, list):
            return []
        return commit_activity_to_daily(weeks)

    async def get_code_frequency(self, owner: str, repo: str) -> list[list[int]]:
        """Weekly [timestamp, additions, deletions] triples (deletions are negative)."""
        repo_name = self._check_allowed(owner, repo)

        weeks = await self._get_stats(f"/repos/{owner}/{repo}/stats/code_frequency", repo_name)
        return weeks if isinstance(weeks, list) else []

    async def list_commits(
        self,
        owner: str,
        repo: str,
        since: datetime | None = None,
        page: int = 1,
        per_page: int = COMMIT_PAGE_SIZE,
    ) -> tuple[list[CommitItem], bool]:
        """
        Fetch one page of a repository's commits, newest first.

        Args:
            owner: Repository owner
            repo: Repository name
            since: Only commits after this instant
            page: Page number (1-indexed)
            per_page: Items per page (max 100)

        Returns:
            Tuple of (commits, has_more); has_more is True when the page is full
        """
        repo_name = self._check_allowed(owner, repo)
        allowed = find_allowed_repository(owner, repo)
        display_name = allowed.display_name if allowed else repo

        params: dict[str, str | int] = {"page": page, "per_page": min(per_page, 100)}
        if since is not None:
            params["since"] = since.isoformat()

        data: list[dict[str, Any]] = await self._get(
            f"/repos/{owner}/{repo}/commits", repo_name, params
        )

        commits = [
            CommitItem(
                sha=item["sha"],
                message=item["commit"]["message"],
                date=item["commit"]["author"]["date"],
                author=item["commit"]["author"]["name"],
                author_avatar=(item.get("author") or {}).get("avatar_url"),
                repo_owner=owner,
                repo_name=repo,
                repo_display_name=display_name,
            )
            for item in data
        ]
        return commits, len(data) == params["per_page"]

    async def get_commit_detail(self, owner: str, repo: str, sha: str) -> CommitDetail:
        """
        Fetch a single commit with its file-level diff statistics.

        Raises:
            GitHubAPIError: 404 when the commit does not exist
        """
        repo_name = self._check_allowed(owner, repo)

        data = await self._get(f"/repos/{owner}/{repo}/commits/{sha}", repo_name)
        stats = data.get("stats") or {}
        files = data.get("files") or []

        return CommitDetail(
            sha=data["sha"],
            message=data["commit"]["message"],
            date=data["commit"]["author"]["date"],
            author=data["commit"]["author"]["name"],
            author_avatar=(data.get("author") or {}).get("avatar_url"),
            additions=stats.get("additions", 0),
            deletions=stats.get("deletions", 0),
            changes=stats.get("total", 0),
            files=[
                FileChange(
                    filename=f["filename"],
                    status=f.get("status", "modified"),
                    additions=f.get("additions", 0),
                    deletions=f.get("deletions", 0),
                )
                for f in files
            ],
            html_url=f"https://github.com/{owner}/{repo}/commit/{data['sha']}",
        )

    async def get_repo_info(self, owner: str, repo: str) -> RepoInfo:
        """Fetch stars, forks, open issues, size and last push of a repository."""
        repo_name = self._check_allowed(owner, repo)

        data = await self._get(f"/repos/{owner}/{repo}", repo_name)
        return RepoInfo(
            stars=data.get("stargazers_count", 0),
            forks=data.get("forks_count", 0),
            open_issues=data.get("open_issues_count", 0),
            size=data.get("size", 0),
            pushed_at=data.get("pushed_at") or "",
            default_branch=data.get("default_branch") or "main",
        )

    async def get_languages(self, owner: str, repo: str) -> list[LanguageStat]:
        """
        Fetch language breakdown for a repository.

        Returns:
            List of LanguageStat sorted by bytes (descending)
        """
        repo_name = self._check_allowed(owner, repo)

        data: dict[str, int] = await self._get(f"/repos/{owner}/{repo}/languages", repo_name)

        total_bytes = sum(data.values()) if data else 0
        if total_bytes == 0:
            return []

        languages = [
            LanguageStat(
                name=name,
                bytes=byte_count,
                percentage=round((byte_count / total_bytes) * 100, 1),
                color=GITHUB_LANGUAGE_COLORS.get(name, DEFAULT_LANGUAGE_COLOR),
            )
            for name, byte_count in data.items()
        ]

        languages.sort(key=lambda x: x.bytes, reverse=True)
        return languages

    async def get_contributors(
        self, owner: str, repo: str, limit: int = MAX_CONTRIBUTORS
    ) -> list[ContributorInfo]:
        """
        Fetch top contributors for a repository.

        GitHub returns an empty list for repositories whose statistics are not
        computed yet; the authors of the latest commits are counted instead.

        Returns:
            List of ContributorInfo sorted by contributions (descending)
        """
        repo_name = self._check_allowed(owner, repo)

        client = get_github_client(self.base_url)
        response = await client.get(
            f"/repos/{owner}/{repo}/contributors",
            headers=self._headers,
            params={"per_page": limit},
        )
        if response.status_code == 204:
            return []
        handle_error_response(response, repo_name)

        data: list[dict[str, Any]] = response.json()
        if data:
            return [
                ContributorInfo(
                    login=c["login"],
                    avatar_url=c.get("avatar_url") or f"https://github.com/{c['login']}.png",
                    contributions=c.get("contributions", 0),
                    profile_url=c.get("html_url") or f"https://github.com/{c['login']}",
                )
                for c in data[:limit]
            ]

        commits: list[dict[str, Any]] = await self._get(
            f"/repos/{owner}/{repo}/commits",
            repo_name,
            {"per_page": CONTRIBUTOR_FALLBACK_COMMITS},
        )
        return contributors_from_commits(commits)[:limit]


def contributors_from_commits(commits: list[dict[str, Any]]) -> list[ContributorInfo]:
    """
    Count commit authors from raw GitHub commit objects.

    Authors are keyed by GitHub login, or by git email when the commit is not
    linked to an account.
    """
    by_author: dict[str, ContributorInfo] = {}

    for commit in commits:
        git_author = commit.get("commit", {}).get("author") or {}
        account = commit.get("author") or {}
        key = account.get("login") or git_author.get("email") or git_author.get("name", "")

        existing = by_author.get(key)
        if existing is not None:
            existing.contributions += 1
            continue

        username = account.get("login") or git_author.get("name", "")
        if account.get("html_url"):
            profile_url = account["html_url"]
        elif GITHUB_LOGIN_PATTERN.match(username):
            profile_url = f"https://github.com/{username}"
        else:
            email = quote(git_author.get("email", ""))
            profile_url = f"https://github.com/search?q={email}&type=users"

        by_author[key] = ContributorInfo(
            login=username,
            avatar_url=account.get("avatar_url") or f"https://github.com/{username}.png?size=100",
            contributions=1,
            profile_url=profile_url,
        )

    return sorted(by_author.values(), key=lambda c: c.contributions, reverse=True)
