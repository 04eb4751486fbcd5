"""Merge per-repository timelines into one aligned multi-series timeline."""

from app.services.github.transform import parse_day
from app.services.github.types import MultiRepoTimelinePoint, RepoTimeline


def merge_timelines(timelines: list[RepoTimeline]) -> list[MultiRepoTimelinePoint]:
    """
    Align N repository timelines on a shared, sorted set of date buckets.

    The first timeline to touch a date creates the combined point and supplies
    its label; later timelines attach their own count. A second pass zero-fills
    every repository missing from a point, so each point carries exactly one
    value per participating repository.

    Points are keyed by date and values ordered by repository key, so any
    permutation of the input produces the same output.
    """
    by_date: dict[str, MultiRepoTimelinePoint] = {}

    for timeline in timelines:
        for point in timeline.data:
            combined = by_date.get(point.date)
            if combined is None:
                combined = MultiRepoTimelinePoint(date=point.date, label=point.label)
                by_date[point.date] = combined
            combined.values[timeline.repo_name] = (
                combined.values.get(timeline.repo_name, 0) + point.commits
            )

    repo_keys = sorted({t.repo_name for t in timelines})
    for combined in by_date.values():
        combined.values = {key: combined.values.get(key, 0) for key in repo_keys}

    return sorted(by_date.values(), key=lambda p: (parse_day(p.date), p.date))
