"""Unit tests for cross-repository stats aggregation."""

from __future__ import annotations

from app.services.github.aggregate import (
    aggregate_stats,
    code_frequency_totals,
    merge_contributors,
    merge_languages,
    reconcile_contributors,
)
from app.services.github.types import LanguageStat

from tests.helpers.mock_factories import make_contributor, make_repo_info, make_snapshot


class TestCodeFrequencyTotals:
    def test_sums_weeks_with_positive_deletions(self):
        weeks = [[1700000000, 10, -4], [1700604800, 5, -1]]
        assert code_frequency_totals(weeks) == (15, 5)

    def test_skips_short_entries(self):
        assert code_frequency_totals([[1700000000], [1700604800, 2, -2]]) == (2, 2)

    def test_empty(self):
        assert code_frequency_totals([]) == (0, 0)


class TestAggregateStats:
    """Tests for summed repository counters."""

    def test_sums_counters(self):
        snapshots = [
            make_snapshot(
                "portfolio",
                info=make_repo_info(stars=3, pushed_at="2024-01-02T10:00:00Z"),
                contributors=[make_contributor("paul", 7)],
                additions=100,
                deletions=20,
            ),
            make_snapshot(
                "Web-Security",
                info=make_repo_info(
                    stars=4, default_branch="master", pushed_at="2024-03-01T00:00:00Z"
                ),
                contributors=[make_contributor("paul", 2), make_contributor("ana", 1)],
                additions=50,
                deletions=5,
            ),
        ]

        stats = aggregate_stats(snapshots)

        assert stats["stars"] == 7
        assert stats["forks"] == 2
        assert stats["issues"] == 4
        assert stats["size"] == 2048
        assert stats["last_push"] == "2024-03-01T00:00:00Z"
        assert stats["default_branch"] == "main"
        assert stats["total_commits"] == 10
        assert stats["total_additions"] == 150
        assert stats["total_deletions"] == 25


class TestMergeLanguages:
    """Tests for the combined language breakdown."""

    def test_sums_bytes_and_recomputes_percentages(self):
        snapshots = [
            make_snapshot(
                languages=[
                    LanguageStat("TypeScript", 300, 75.0, "#3178c6"),
                    LanguageStat("CSS", 100, 25.0, "#563d7c"),
                ]
            ),
            make_snapshot(
                languages=[
                    LanguageStat("Python", 400, 100.0, "#3572A5"),
                    LanguageStat("CSS", 200, 33.3, "#563d7c"),
                ]
            ),
        ]

        merged = merge_languages(snapshots)

        assert [(lang.name, lang.bytes) for lang in merged] == [
            ("Python", 400),
            ("TypeScript", 300),
            ("CSS", 300),
        ]
        assert [lang.percentage for lang in merged] == [40.0, 30.0, 30.0]

    def test_inputs_are_not_mutated(self):
        css = LanguageStat("CSS", 100, 100.0, "#563d7c")
        merge_languages([make_snapshot(languages=[css]), make_snapshot(languages=[css])])
        assert css.bytes == 100

    def test_no_languages(self):
        assert merge_languages([make_snapshot()]) == []


class TestMergeContributors:
    def test_sums_per_login_and_ranks(self):
        snapshots = [
            make_snapshot(contributors=[make_contributor("ana", 3), make_contributor("paul", 2)]),
            make_snapshot(contributors=[make_contributor("paul", 5)]),
        ]

        merged = merge_contributors(snapshots)

        assert [(c.login, c.contributions) for c in merged] == [("paul", 7), ("ana", 3)]

    def test_limit(self):
        snapshot = make_snapshot(contributors=[make_contributor(f"user{i}", i) for i in range(15)])
        merged = merge_contributors([snapshot], limit=10)
        assert len(merged) == 10
        assert merged[0].login == "user14"


class TestReconcileContributors:
    """Tests for replacing counts with persisted per-range counts."""

    def test_replaces_counts_and_drops_inactive(self):
        contributors = [make_contributor("paul", 50), make_contributor("ana", 10)]

        result = reconcile_contributors(contributors, {"paul": 4})

        assert [(c.login, c.contributions) for c in result] == [("paul", 4)]
        assert result[0].avatar_url == "https://avatars.example.com/paul"

    def test_adds_database_only_logins(self):
        result = reconcile_contributors([make_contributor("paul", 1)], {"paul": 1, "zoe": 3})

        assert [(c.login, c.contributions) for c in result] == [("zoe", 3), ("paul", 1)]
        assert result[0].profile_url == "https://github.com/zoe"
        assert result[0].avatar_url == "https://github.com/zoe.png"
