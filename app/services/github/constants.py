"""Constants for the GitHub activity service."""

from datetime import UTC, datetime

from app.services.github.types import AllowedRepository, PeriodConfig, TimeRange

# Repositories that may be queried; anything else is rejected before any upstream call
ALLOWED_REPOSITORIES: list[AllowedRepository] = [
    AllowedRepository(owner="5061756c2e56", name="portfolio", display_name="Portfolio"),
    AllowedRepository(owner="5061756c2e56", name="Web-Security", display_name="Web Security"),
]

VALID_TIME_RANGES: tuple[TimeRange, ...] = ("7d", "30d", "6m", "12m")
DEFAULT_TIME_RANGE: TimeRange = "7d"
# Commit listings and repository stats default to the longest range
DEFAULT_LISTING_RANGE: TimeRange = "12m"

PERIOD_CONFIGS: dict[TimeRange, PeriodConfig] = {
    "7d": PeriodConfig(range="7d", days=7, granularity="daily"),
    "30d": PeriodConfig(range="30d", days=30, granularity="daily"),
    "6m": PeriodConfig(range="6m", days=180, granularity="weekly"),
    "12m": PeriodConfig(range="12m", days=365, granularity="monthly"),
}

# Cache TTL (seconds) per range - recent data changes more often relative to its volume
CACHE_TTL: dict[TimeRange, int] = {
    "7d": 60,
    "30d": 3 * 60,
    "6m": 10 * 60,
    "12m": 30 * 60,
}

# Cache TTL (seconds) for data that does not depend on the requested range
COMMIT_DETAIL_TTL = 60 * 60
REPO_DATA_TTL = 5 * 60
CONTRIBUTORS_TTL = 60

# Browser/CDN max-age for commit detail (a commit never changes)
COMMIT_DETAIL_MAX_AGE = 24 * 60 * 60

VALID_LOCALES: tuple[str, ...] = ("fr", "en")
DEFAULT_LOCALE = "fr"

# Series colors, assigned by position in the request
REPO_COLORS: list[str] = [
    "#3b82f6",
    "#8b5cf6",
    "#10b981",
    "#f59e0b",
    "#ef4444",
    "#06b6d4",
    "#ec4899",
    "#84cc16",
]

# Cache key namespace for everything this service stores
CACHE_KEY_PREFIX = "github:"

# Repository used by the commit detail endpoint when none is given
DEFAULT_REPOSITORY = ALLOWED_REPOSITORIES[0]

# Commit listing limits
COMMIT_PAGE_SIZE = 100
MAX_COMMIT_PAGES = 20
MAX_LISTED_COMMITS = 100
MAX_SEARCH_LENGTH = 128
# Ranges listed from the first commit on rather than from the window start
FULL_HISTORY_RANGES: tuple[TimeRange, ...] = ("6m", "12m")
FULL_HISTORY_SINCE = datetime(2020, 1, 1, tzinfo=UTC)

MAX_CONTRIBUTORS = 10

GITHUB_LANGUAGE_COLORS: dict[str, str] = {
    "TypeScript": "#3178c6",
    "JavaScript": "#f1e05a",
    "CSS": "#563d7c",
    "HTML": "#e34c26",
    "Python": "#3572A5",
    "Java": "#b07219",
    "Go": "#00ADD8",
    "Rust": "#dea584",
    "Ruby": "#701516",
    "PHP": "#4F5D95",
    "C#": "#178600",
    "C++": "#f34b7d",
    "C": "#555555",
    "Shell": "#89e051",
    "SCSS": "#c6538c",
    "Vue": "#41b883",
    "Svelte": "#ff3e00",
    "MDX": "#fcb32c",
    "JSON": "#292929",
    "YAML": "#cb171e",
    "Markdown": "#083fa1",
}
DEFAULT_LANGUAGE_COLOR = "#8b8b8b"


def find_allowed_repository(owner: str, name: str) -> AllowedRepository | None:
    """Look up an allow-listed repository, ignoring case."""
    owner_lower = owner.lower()
    name_lower = name.lower()
    for repo in ALLOWED_REPOSITORIES:
        if repo.owner.lower() == owner_lower and repo.name.lower() == name_lower:
            return repo
    return None


def is_allowed_repository(owner: str, name: str) -> bool:
    """Check a repository against the allow-list, ignoring case."""
    return find_allowed_repository(owner, name) is not None


def repo_color(index: int) -> str:
    """Color for the repository at position index."""
    return REPO_COLORS[index % len(REPO_COLORS)]
