"""
Tests for the distribution aggregator
"""

import pytest

from src.analytics.distribution import aggregate, buckets_from_groups, percentage_of, top_buckets
from src.database.models import LeadSource


class TestAggregate:
    """Test grouping of in-memory records"""

    def test_counts_sums_and_percentages(self):
        records = [
            {"status": "OPPORTUNITY", "value": 1000},
            {"status": "OPPORTUNITY", "value": 500},
            {"status": "CLOSED_WON", "value": 4000},
            {"status": None, "value": None},
        ]

        buckets = aggregate(records, "status", key_of=lambda r: r["status"], value_of=lambda r: r["value"])

        assert [b.label for b in buckets] == ["OPPORTUNITY", "CLOSED_WON", "Unknown"]
        assert buckets[0].count == 2
        assert buckets[0].sum_value == 1500
        assert buckets[0].percentage == 50.0
        assert buckets[1].percentage == 25.0
        assert buckets[2].sum_value == 0
        assert all(b.dimension == "status" for b in buckets)

    def test_percentages_sum_to_about_100(self):
        records = [{"k": key} for key in ["a", "b", "c"]]

        buckets = aggregate(records, "k", key_of=lambda r: r["k"])

        assert sum(b.percentage for b in buckets) == pytest.approx(100, abs=0.2)
        assert [b.percentage for b in buckets] == [33.4, 33.3, 33.3]

    def test_seven_sources_sum_to_exactly_100(self):
        counts = {"WEBSITE": 39, "REFERRAL": 10, "SOCIAL_MEDIA": 10, "EMAIL_CAMPAIGN": 13,
                  "PHONE_CALL": 10, "TRADE_SHOW": 13, "OTHER": 12}
        records = [label for label, count in counts.items() for _ in range(count)]

        buckets = aggregate(records, "source", key_of=lambda r: r)

        assert round(sum(b.percentage for b in buckets), 1) == 100.0
        for bucket in buckets:
            assert abs(bucket.percentage - bucket.count / 107 * 100) < 0.1

    def test_ties_ordered_by_label(self):
        records = [{"k": key} for key in ["b", "a", "c", "c"]]

        buckets = aggregate(records, "k", key_of=lambda r: r["k"])

        assert [b.label for b in buckets] == ["c", "a", "b"]

    def test_empty_input(self):
        assert aggregate([], "status", key_of=lambda r: r) == []

    def test_without_value_extractor_sums_are_zero(self):
        buckets = aggregate([1, 2], "n", key_of=lambda r: "x")
        assert buckets[0].sum_value == 0
        assert buckets[0].count == 2


class TestBucketsFromGroups:
    """Test buckets built from pre-grouped rows"""

    def test_enum_and_missing_keys(self):
        rows = [
            {"key": LeadSource.WEBSITE, "count": 3, "sum": 300.0},
            {"key": None, "count": 1, "sum": 0.0},
        ]

        buckets = buckets_from_groups(rows, "source")

        assert [b.label for b in buckets] == ["WEBSITE", "Unknown"]
        assert buckets[0].percentage == 75.0
        assert buckets[0].sum_value == 300.0

    def test_null_and_empty_keys_merge_into_unknown(self):
        rows = [{"key": None, "count": 1, "sum": 0}, {"key": "", "count": 2, "sum": 0}]

        buckets = buckets_from_groups(rows, "source")

        assert len(buckets) == 1
        assert buckets[0].count == 3
        assert buckets[0].percentage == 100.0


def test_percentage_of_zero_total():
    assert percentage_of(5, 0) == 0
    assert percentage_of(1, 3, ndigits=2) == 33.33


def test_top_buckets():
    buckets = aggregate(["a", "a", "b", "c"], "k", key_of=lambda r: r)

    assert [b.label for b in top_buckets(buckets, 2)] == ["a", "b"]
    assert top_buckets(buckets, 10) == buckets
    assert top_buckets(buckets, -1) == []
