"""Translation of upstream GitHub failures into client-facing errors."""

import time

from app.core.exceptions import APIError
from app.services.github.exceptions import GitHubAPIError


def github_api_error(exc: GitHubAPIError, not_found: str | None = None) -> APIError:
    """
    Map a GitHubAPIError to the APIError rendered to the client.

    401 means our token is wrong, so the client only learns the service is
    misconfigured. An exhausted GitHub quota becomes a 429 with the seconds
    left until GitHub resets it.

    Args:
        exc: The upstream error
        not_found: Message for a 404, or None to treat 404 as a server error
    """
    if exc.status_code == 401:
        return APIError("UNAUTHORIZED", "GitHub configuration error")
    if exc.status_code == 403 and exc.rate_limit_reset is not None:
        retry_after = max(1, exc.rate_limit_reset - int(time.time()))
        return APIError(
            "RATE_LIMIT",
            "GitHub rate limit reached",
            headers={"Retry-After": str(retry_after)},
            retry_after=retry_after,
        )
    if exc.status_code == 404 and not_found is not None:
        return APIError("NOT_FOUND", not_found)
    if exc.status_code == 503:
        return APIError("SERVICE_UNAVAILABLE")
    return APIError("SERVER_ERROR")
