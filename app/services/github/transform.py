"""
Commit activity transformation.

Turns a raw per-day commit series into a contiguous, bucketed timeline for a
time range:
- 7d / 30d: one point per day
- 6m: one point per calendar week (week start depends on the locale)
- 12m: one point per calendar month

The bucket list always covers the full window ending today, with zero
buckets where the upstream series has no data.
"""

from collections.abc import Iterable
from datetime import UTC, date, datetime, timedelta
from typing import Any, Protocol

from app.services.github.constants import DEFAULT_LOCALE, PERIOD_CONFIGS
from app.services.github.types import (
    DailyCount,
    Granularity,
    TimelinePoint,
    TimeRange,
)

# Short month names, indexed by month - 1
MONTH_NAMES: dict[str, list[str]] = {
    "fr": [
        "janv.", "févr.", "mars", "avr.", "mai", "juin",
        "juil.", "août", "sept.", "oct.", "nov.", "déc.",
    ],
    "en": [
        "Jan", "Feb", "Mar", "Apr", "May", "Jun",
        "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
    ],
}  # fmt: skip

# Short weekday names, indexed by date.weekday() (Monday = 0)
WEEKDAY_NAMES: dict[str, list[str]] = {
    "fr": ["lun.", "mar.", "mer.", "jeu.", "ven.", "sam.", "dim."],
    "en": ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"],
}

# First day of the week per locale, as date.weekday()
WEEK_START: dict[str, int] = {
    "fr": 0,  # Monday
    "en": 6,  # Sunday
}


class DayCount(Protocol):
    """Anything with an ISO date and a commit count (DailyCount, TimelinePoint)."""

    date: str
    commits: int


def _locale(locale: str) -> str:
    return locale if locale in MONTH_NAMES else DEFAULT_LOCALE


def parse_day(value: str) -> date:
    """Parse an ISO date or datetime string to a calendar date."""
    return date.fromisoformat(value[:10])


def format_label(day: date, granularity: Granularity, locale: str = DEFAULT_LOCALE) -> str:
    """Localized display label for a bucket starting on day."""
    loc = _locale(locale)
    month = MONTH_NAMES[loc][day.month - 1]

    if granularity == "daily":
        return f"{WEEKDAY_NAMES[loc][day.weekday()]} {day.day}"
    if granularity == "weekly":
        return f"{day.day} {month}" if loc == "fr" else f"{month} {day.day}"
    return f"{month} {day:%y}"


def bucket_start(day: date, granularity: Granularity, locale: str = DEFAULT_LOCALE) -> date:
    """First day of the bucket containing day."""
    if granularity == "daily":
        return day
    if granularity == "weekly":
        offset = (day.weekday() - WEEK_START[_locale(locale)]) % 7
        return day - timedelta(days=offset)
    return day.replace(day=1)


def _next_bucket(start: date, granularity: Granularity) -> date:
    if granularity == "daily":
        return start + timedelta(days=1)
    if granularity == "weekly":
        return start + timedelta(days=7)
    if start.month == 12:
        return date(start.year + 1, 1, 1)
    return date(start.year, start.month + 1, 1)


def bucket_starts(time_range: TimeRange, locale: str, today: date) -> list[date]:
    """All bucket start dates covering the range window that ends on today."""
    config = PERIOD_CONFIGS[time_range]
    first_day = today - timedelta(days=config.days - 1)

    current = bucket_start(first_day, config.granularity, locale)
    last = bucket_start(today, config.granularity, locale)

    starts: list[date] = []
    while current <= last:
        starts.append(current)
        current = _next_bucket(current, config.granularity)
    return starts


def utc_today() -> date:
    return datetime.now(UTC).date()


def transform_activity(
    daily_counts: Iterable[DayCount],
    time_range: TimeRange,
    locale: str = DEFAULT_LOCALE,
    today: date | None = None,
) -> list[TimelinePoint]:
    """
    Bucket a daily commit series into timeline points for a range.

    Args:
        daily_counts: Per-day commit counts, in any order
        time_range: Requested time range (decides window length and granularity)
        locale: Label locale ("fr" or "en"; anything else uses the default)
        today: Last day of the window (defaults to the current UTC date)

    Returns:
        Contiguous, ascending, duplicate-free list of TimelinePoint covering the
        whole window. Days outside the window are ignored.
    """
    today = today or utc_today()
    granularity = PERIOD_CONFIGS[time_range].granularity
    starts = bucket_starts(time_range, locale, today)

    totals: dict[date, int] = dict.fromkeys(starts, 0)
    for item in daily_counts:
        day = parse_day(item.date)
        if day > today:
            continue
        key = bucket_start(day, granularity, locale)
        if key in totals:
            totals[key] += item.commits

    return [
        TimelinePoint(
            date=start.isoformat(),
            label=format_label(start, granularity, locale),
            commits=totals[start],
        )
        for start in starts
    ]


def commit_activity_to_daily(weeks: list[dict[str, Any]]) -> list[DailyCount]:
    """
    Flatten GitHub's /stats/commit_activity payload into a daily series.

    Each week entry carries "week" (Unix timestamp of the Sunday the week
    starts on) and "days" (seven counts, Sunday first).
    """
    by_day: dict[str, int] = {}
    for week in weeks:
        week_start = datetime.fromtimestamp(int(week["week"]), UTC).date()
        for offset, commits in enumerate(week.get("days") or []):
            day = (week_start + timedelta(days=offset)).isoformat()
            by_day[day] = by_day.get(day, 0) + int(commits)

    return [DailyCount(date=day, commits=by_day[day]) for day in sorted(by_day)]
