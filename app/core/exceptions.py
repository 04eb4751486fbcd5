"""Request-facing errors with stable error codes.

Every error rendered to a client carries only a short message and a code
from API_ERRORS. Internal details stay in the logs.
"""

from dataclasses import dataclass
from typing import Literal

from fastapi import HTTPException, status

APIErrorCode = Literal[
    "RATE_LIMIT",
    "NOT_FOUND",
    "UNAUTHORIZED",
    "SERVER_ERROR",
    "NETWORK_ERROR",
    "INVALID_RANGE",
    "INVALID_PARAMS",
    "INVALID_REPOS",
    "INVALID_SHA",
    "SERVICE_UNAVAILABLE",
]


@dataclass(frozen=True)
class ErrorSpec:
    """Default message and HTTP status for an error code."""

    message: str
    status_code: int


API_ERRORS: dict[str, ErrorSpec] = {
    "RATE_LIMIT": ErrorSpec("Too many requests", status.HTTP_429_TOO_MANY_REQUESTS),
    "NOT_FOUND": ErrorSpec("Not found", status.HTTP_404_NOT_FOUND),
    "UNAUTHORIZED": ErrorSpec("Unauthorized", status.HTTP_403_FORBIDDEN),
    "SERVER_ERROR": ErrorSpec("Server error", status.HTTP_500_INTERNAL_SERVER_ERROR),
    "NETWORK_ERROR": ErrorSpec("Network error", status.HTTP_502_BAD_GATEWAY),
    "INVALID_RANGE": ErrorSpec("Invalid range", status.HTTP_400_BAD_REQUEST),
    "INVALID_PARAMS": ErrorSpec("Invalid params", status.HTTP_400_BAD_REQUEST),
    "INVALID_REPOS": ErrorSpec("No valid repos", status.HTTP_400_BAD_REQUEST),
    "INVALID_SHA": ErrorSpec("Invalid SHA", status.HTTP_400_BAD_REQUEST),
    "SERVICE_UNAVAILABLE": ErrorSpec(
        "Service temporarily unavailable", status.HTTP_503_SERVICE_UNAVAILABLE
    ),
}


class APIError(HTTPException):
    """Base for errors rendered as {"error": ..., "code": ...}."""

    def __init__(
        self,
        code: APIErrorCode,
        message: str | None = None,
        headers: dict[str, str] | None = None,
        retry_after: int | None = None,
    ):
        entry = API_ERRORS[code]
        self.code = code
        self.message = message or entry.message
        self.retry_after = retry_after
        super().__init__(
            status_code=entry.status_code,
            detail=self.message,
            headers=headers,
        )

    def to_payload(self) -> dict[str, str | int]:
        """Serialize to the public error body."""
        payload: dict[str, str | int] = {"error": self.message, "code": self.code}
        if self.retry_after is not None:
            payload["retryAfter"] = self.retry_after
        return payload


class RateLimitExceededError(APIError):
    """Raised when a client exceeds its request window."""

    def __init__(self, reset_in: float):
        retry_after = max(1, int(reset_in + 0.999))
        super().__init__(
            "RATE_LIMIT",
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(retry_after),
            },
            retry_after=retry_after,
        )


class OriginNotAllowedError(APIError):
    """Raised in production when neither Origin nor Referer is allow-listed."""

    def __init__(self, remaining: int):
        super().__init__(
            "UNAUTHORIZED",
            headers={"X-RateLimit-Remaining": str(remaining)},
        )


class ValidationError(APIError):
    """Raised when request parameters fail validation."""

    def __init__(self, code: APIErrorCode = "INVALID_PARAMS", message: str | None = None):
        super().__init__(code, message)
