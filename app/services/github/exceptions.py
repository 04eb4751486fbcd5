"""Exceptions for GitHub service."""


class GitHubAPIError(Exception):
    """Error from GitHub API."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        rate_limit_reset: int | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.rate_limit_reset = rate_limit_reset  # Unix timestamp when rate limit resets
        super().__init__(message)


class RepositoryNotAllowedError(GitHubAPIError):
    """Repository is not on the allow-list; no request was sent."""

    def __init__(self, full_name: str):
        self.full_name = full_name
        super().__init__(f"Repository not allowed: {full_name}", status_code=403)
