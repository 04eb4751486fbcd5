"""
Cross-repository aggregation for the stats endpoint.

Pure functions over RepoSnapshot lists: summed counters, merged language
breakdown and merged contributor ranking.
"""

from dataclasses import replace
from typing import Any

from app.services.github.constants import MAX_CONTRIBUTORS
from app.services.github.types import ContributorInfo, LanguageStat, RepoSnapshot


def code_frequency_totals(weeks: list[list[int]]) -> tuple[int, int]:
    """
    Sum GitHub's weekly [timestamp, additions, deletions] triples.

    Returns:
        Tuple of (additions, deletions), deletions as a positive count
    """
    additions = 0
    deletions = 0
    for week in weeks:
        if len(week) < 3:
            continue
        additions += week[1] or 0
        deletions += abs(week[2] or 0)
    return additions, deletions


def aggregate_stats(snapshots: list[RepoSnapshot]) -> dict[str, Any]:
    """
    Sum repository counters.

    totalCommits is the sum of each repository's contributor commit counts.
    lastPush is the most recent push; defaultBranch is the first repository's.
    """
    first = snapshots[0]
    return {
        "stars": sum(s.info.stars for s in snapshots),
        "forks": sum(s.info.forks for s in snapshots),
        "issues": sum(s.info.open_issues for s in snapshots),
        "size": sum(s.info.size for s in snapshots),
        "last_push": max(s.info.pushed_at for s in snapshots),
        "default_branch": first.info.default_branch,
        "total_commits": sum(c.contributions for s in snapshots for c in s.contributors),
        "total_additions": sum(s.additions for s in snapshots),
        "total_deletions": sum(s.deletions for s in snapshots),
    }


def merge_languages(snapshots: list[RepoSnapshot]) -> list[LanguageStat]:
    """Sum bytes per language across repositories and recompute percentages."""
    merged: dict[str, LanguageStat] = {}
    for snapshot in snapshots:
        for lang in snapshot.languages:
            existing = merged.get(lang.name)
            if existing is None:
                merged[lang.name] = replace(lang)
            else:
                existing.bytes += lang.bytes

    total_bytes = sum(lang.bytes for lang in merged.values())
    for lang in merged.values():
        lang.percentage = round(lang.bytes / total_bytes * 100, 1) if total_bytes else 0.0

    return sorted(merged.values(), key=lambda lang: lang.bytes, reverse=True)


def merge_contributors(
    snapshots: list[RepoSnapshot], limit: int = MAX_CONTRIBUTORS
) -> list[ContributorInfo]:
    """Sum contributions per login across repositories; top contributors first."""
    merged: dict[str, ContributorInfo] = {}
    for snapshot in snapshots:
        for contributor in snapshot.contributors:
            existing = merged.get(contributor.login)
            if existing is None:
                merged[contributor.login] = replace(contributor)
            else:
                existing.contributions += contributor.contributions

    ranked = sorted(merged.values(), key=lambda c: c.contributions, reverse=True)
    return ranked[:limit]


def reconcile_contributors(
    contributors: list[ContributorInfo],
    counts: dict[str, int],
    limit: int = MAX_CONTRIBUTORS,
) -> list[ContributorInfo]:
    """
    Replace contribution counts with persisted per-login counts for the range.

    Contributors known only to the database are added with default profile
    links; anyone without commits in the range is dropped.
    """
    known = {c.login for c in contributors}
    updated = [replace(c, contributions=counts.get(c.login, 0)) for c in contributors]
    updated.extend(
        ContributorInfo(
            login=login,
            avatar_url=f"https://github.com/{login}.png",
            contributions=commits,
            profile_url=f"https://github.com/{login}",
        )
        for login, commits in counts.items()
        if login not in known
    )

    active = [c for c in updated if c.contributions > 0]
    active.sort(key=lambda c: c.contributions, reverse=True)
    return active[:limit]
