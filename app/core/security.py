"""Request guard: client identity, rate limiting and origin validation.

The guard runs before any cache lookup or upstream call, so a rejected
request never touches the cache or GitHub.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import urlsplit

from starlette.requests import Request
from starlette.responses import Response

from app.config import Settings
from app.core.exceptions import OriginNotAllowedError, RateLimitExceededError
from app.core.rate_limit import FixedWindowRateLimiter

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"

SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "X-DNS-Prefetch-Control": "off",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}


def get_client_identity(headers: Mapping[str, str]) -> str:
    """Derive the rate-limit bucket key from proxy headers.

    Priority: CF-Connecting-IP (trusted proxy), first X-Forwarded-For entry,
    X-Real-IP, else "unknown".
    """
    cf_ip = headers.get("cf-connecting-ip")
    if cf_ip and cf_ip.strip():
        return cf_ip.strip()

    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    return UNKNOWN_CLIENT


def _origin_of(value: str) -> str | None:
    """Return the lower-cased scheme://host[:port] of a URL, or None."""
    try:
        parts = urlsplit(value.strip())
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    return f"{parts.scheme}://{parts.netloc}".lower()


def is_allowed_origin(value: str | None, allow_list: list[str]) -> bool:
    """Check an Origin or Referer header against scheme+host allow-list entries.

    Only the scheme and host are compared; the path of a Referer is ignored.
    Matching is exact, so "https://site.com.evil.com" does not match
    "https://site.com".
    """
    if not value:
        return False

    origin = _origin_of(value)
    if origin is None:
        return False

    return any(origin == entry.lower().rstrip("/") for entry in allow_list)


@dataclass
class GuardResult:
    """Admitted request metadata."""

    client_id: str
    remaining: int


class RequestGuard:
    """Admission control for the GitHub activity endpoints."""

    def __init__(self, rate_limiter: FixedWindowRateLimiter, settings: Settings) -> None:
        self.rate_limiter = rate_limiter
        self.settings = settings

    def check(self, request: Request) -> GuardResult:
        """Admit or reject a request.

        Raises:
            RateLimitExceededError: 429 when the client's window is exhausted
            OriginNotAllowedError: 403 in production when Origin/Referer are not allowed
        """
        client_id = get_client_identity(request.headers)
        result = self.rate_limiter.check(client_id)

        if not result.allowed:
            logger.info(f"Rate limit exceeded for client {client_id}")
            raise RateLimitExceededError(result.reset_in)

        if self.settings.is_production:
            allow_list = self.settings.origin_allow_list
            origin = request.headers.get("origin")
            referer = request.headers.get("referer")
            if not (
                is_allowed_origin(origin, allow_list) or is_allowed_origin(referer, allow_list)
            ):
                logger.warning(f"Rejected request with origin={origin!r} referer={referer!r}")
                raise OriginNotAllowedError(result.remaining)

        return GuardResult(client_id=client_id, remaining=result.remaining)


def apply_security_headers(response: Response, rate_limit_remaining: int | None = None) -> Response:
    """Attach hardening headers and the remaining request count when known."""
    for name, value in SECURITY_HEADERS.items():
        response.headers[name] = value

    if rate_limit_remaining is not None:
        response.headers["X-RateLimit-Remaining"] = str(rate_limit_remaining)

    return response
