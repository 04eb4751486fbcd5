"""Query parameter parsing for the GitHub activity endpoints."""

import json
import re

from app.core.exceptions import APIError, ValidationError
from app.services.github.constants import (
    ALLOWED_REPOSITORIES,
    DEFAULT_LOCALE,
    DEFAULT_REPOSITORY,
    DEFAULT_TIME_RANGE,
    MAX_SEARCH_LENGTH,
    VALID_LOCALES,
    VALID_TIME_RANGES,
    find_allowed_repository,
)
from app.services.github.types import RepoRef, TimeRange

# Input limits for the repos query parameter
MAX_REPOS_PARAM_LENGTH = 4096
MAX_REPOS_COUNT = 20

REPO_SEGMENT_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{1,100}$")
SHA_PATTERN = re.compile(r"^[a-fA-F0-9]{7,40}$")


def parse_time_range(value: str | None, default: TimeRange = DEFAULT_TIME_RANGE) -> TimeRange:
    """Validate the range parameter (absent means the default range)."""
    if value is None or value == "":
        return default
    if value not in VALID_TIME_RANGES:
        raise ValidationError("INVALID_RANGE")
    return value  # type: ignore[return-value]


def parse_locale(value: str | None) -> str:
    """Return a supported locale; anything else falls back to the default."""
    if value and value.lower() in VALID_LOCALES:
        return value.lower()
    return DEFAULT_LOCALE


def _valid_segment(value: object) -> bool:
    return isinstance(value, str) and REPO_SEGMENT_PATTERN.match(value) is not None


def parse_repos(value: str | None) -> list[RepoRef]:
    """
    Parse the repos parameter into allow-listed repositories.

    An absent or empty parameter selects every allow-listed repository. A supplied
    parameter must be a JSON array of {owner, name} objects; entries that are
    malformed or not allow-listed are dropped, the rest are rewritten to the
    allow-list's casing and de-duplicated in request order.

    Raises:
        ValidationError: INVALID_PARAMS for oversized or non-array input,
            INVALID_REPOS when no entry survives filtering
    """
    if not value:
        return [repo.ref for repo in ALLOWED_REPOSITORIES]

    if len(value) > MAX_REPOS_PARAM_LENGTH:
        raise ValidationError("INVALID_PARAMS")

    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as e:
        raise ValidationError("INVALID_PARAMS") from e

    if not isinstance(parsed, list) or len(parsed) > MAX_REPOS_COUNT:
        raise ValidationError("INVALID_PARAMS")

    repos: list[RepoRef] = []
    for entry in parsed:
        if not isinstance(entry, dict):
            continue
        owner, name = entry.get("owner"), entry.get("name")
        if not (_valid_segment(owner) and _valid_segment(name)):
            continue
        allowed = find_allowed_repository(owner, name)  # type: ignore[arg-type]
        if allowed is not None and allowed.ref not in repos:
            repos.append(allowed.ref)

    if not repos:
        raise ValidationError("INVALID_REPOS")
    return repos


def parse_search(value: str | None) -> str:
    """Trimmed SHA search text, cut to MAX_SEARCH_LENGTH."""
    return (value or "").strip()[:MAX_SEARCH_LENGTH]


def parse_repository(owner: str | None, repo: str | None) -> RepoRef:
    """
    Resolve the owner/repo pair of the commit detail endpoint.

    Missing values fall back to the default repository.

    Raises:
        APIError: UNAUTHORIZED when the pair is not allow-listed
    """
    owner = (owner or DEFAULT_REPOSITORY.owner)[:100]
    repo = (repo or DEFAULT_REPOSITORY.name)[:100]
    allowed = find_allowed_repository(owner, repo)
    if allowed is None:
        raise APIError("UNAUTHORIZED", "Repository not allowed")
    return allowed.ref


def parse_sha(value: str) -> str:
    """Validate a 7 to 40 character hexadecimal commit SHA."""
    if not SHA_PATTERN.fullmatch(value):
        raise ValidationError("INVALID_SHA")
    return value
