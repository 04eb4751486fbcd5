"""
Shared HTTP client for GitHub API operations.

One pooled AsyncClient serves every upstream call, so the parallel
per-repository fetches of a multi-repo timeline reuse TLS connections.
The client is bound to a base URL; asking for a different base URL
replaces it.
"""

import logging

import httpx

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"
USER_AGENT = "github-activity-api/1.0"

# Module-level singleton client
_client: httpx.AsyncClient | None = None


async def _log_upstream_response(response: httpx.Response) -> None:
    """Event hook: log non-success upstream responses at debug level."""
    if response.status_code != 200:
        request = response.request
        logger.debug(f"GitHub {request.method} {request.url.path} -> {response.status_code}")


def get_github_client(base_url: str = GITHUB_API_BASE) -> httpx.AsyncClient:
    """
    Get or create the shared HTTP client for GitHub API calls.

    Auth headers are passed per request, not stored on the client.
    """
    global _client
    stale = _client is not None and str(_client.base_url).rstrip("/") != base_url.rstrip("/")
    if _client is None or _client.is_closed or stale:
        _client = httpx.AsyncClient(
            base_url=base_url,
            headers={"User-Agent": USER_AGENT},
            timeout=httpx.Timeout(30.0, connect=5.0),
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
            http2=True,
            event_hooks={"response": [_log_upstream_response]},
        )
        logger.debug(f"Created GitHub HTTP client for {base_url}")
    return _client


async def close_github_client() -> None:
    """Close the shared HTTP client (called from the app lifespan on shutdown)."""
    global _client
    if _client is not None and not _client.is_closed:
        await _client.aclose()
        logger.debug("Closed GitHub HTTP client")
    _client = None
