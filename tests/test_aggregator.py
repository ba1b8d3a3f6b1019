"""
tests/test_aggregator.py

Unit tests for the Aggregator.

Coverage
--------
- Sunday-start week bucketing, including weeks straddling two months
- day / month / period buckets; no synthesized empty buckets
- inclusive range filtering
- order independence under every permutation of the input
- view-weighted watch time and per-row average rank
- zero totals for an idle channel
- bucket-over-bucket change and weekday breakdown
"""

import itertools
from datetime import date

import pytest

from adreport.analyzer.aggregator import (
    aggregate,
    aggregate_by_weekday,
    aggregate_total,
    bucket_bounds,
    bucket_changes,
    week_start,
)
from adreport.core.metric_registry import Channel
from adreport.models.analysis_models import Granularity

from factories import keyword, social


# ---------------------------------------------------------------------------
# Bucketing
# ---------------------------------------------------------------------------


class TestBucketing:
    def test_week_starts_on_sunday(self) -> None:
        # 2025-11-12 is a Wednesday
        assert week_start(date(2025, 11, 12)) == date(2025, 11, 9)

    def test_sunday_is_its_own_week_start(self) -> None:
        assert week_start(date(2025, 11, 9)) == date(2025, 11, 9)

    def test_saturday_closes_the_week(self) -> None:
        assert week_start(date(2025, 11, 15)) == date(2025, 11, 9)

    def test_week_may_straddle_months(self) -> None:
        start, end = bucket_bounds(date(2025, 11, 1), Granularity.WEEK)
        assert (start, end) == (date(2025, 10, 26), date(2025, 11, 1))

    def test_month_bounds_leap_year(self) -> None:
        assert bucket_bounds(date(2024, 2, 14), Granularity.MONTH) == (
            date(2024, 2, 1),
            date(2024, 2, 29),
        )

    def test_period_needs_bounds(self) -> None:
        with pytest.raises(ValueError):
            bucket_bounds(date(2025, 11, 1), Granularity.PERIOD)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


class TestAggregate:
    def test_empty_input(self) -> None:
        assert aggregate([], Granularity.DAY) == []

    def test_no_zero_buckets(self) -> None:
        records = [
            social(date(2025, 11, 1), impressions=100, clicks=5),
            social(date(2025, 11, 3), impressions=200, clicks=10),
        ]
        buckets = aggregate(records, Granularity.DAY)
        assert [b.bucket_start for b in buckets] == [date(2025, 11, 1), date(2025, 11, 3)]

    def test_sums_per_bucket(self) -> None:
        day = date(2025, 11, 1)
        records = [
            social(day, "ad-1", impressions=100, clicks=5, spend=1.5, leads=1),
            social(day, "ad-2", impressions=300, clicks=15, spend=2.5, leads=3),
        ]
        (bucket,) = aggregate(records, Granularity.DAY)
        assert bucket.impressions == 400
        assert bucket.clicks == 20
        assert bucket.leads == 4
        assert bucket.record_count == 2
        assert bucket.spend == pytest.approx(4.0)
        assert bucket.ctr == pytest.approx(5.0)
        assert bucket.cpc == pytest.approx(0.2)
        assert bucket.cpl == pytest.approx(1.0)
        assert bucket.currency == "USD"

    def test_weekly_buckets_group_across_month_end(self) -> None:
        records = [
            social(date(2025, 10, 30), impressions=10),
            social(date(2025, 11, 1), impressions=20),
            social(date(2025, 11, 2), impressions=40),
        ]
        buckets = aggregate(records, Granularity.WEEK)
        assert [(b.bucket_start, b.impressions) for b in buckets] == [
            (date(2025, 10, 26), 30),
            (date(2025, 11, 2), 40),
        ]

    def test_range_is_inclusive(self) -> None:
        records = [social(date(2025, 11, d), impressions=d) for d in range(1, 6)]
        buckets = aggregate(
            records, Granularity.PERIOD, date(2025, 11, 2), date(2025, 11, 4)
        )
        assert len(buckets) == 1
        assert buckets[0].impressions == 2 + 3 + 4
        assert (buckets[0].bucket_start, buckets[0].bucket_end) == (
            date(2025, 11, 2),
            date(2025, 11, 4),
        )

    def test_mixed_channels_rejected(self) -> None:
        with pytest.raises(ValueError):
            aggregate(
                [social(date(2025, 11, 1)), keyword(date(2025, 11, 1))],
                Granularity.DAY,
            )

    def test_permutation_invariance(self) -> None:
        records = [
            social(date(2025, 11, 1), "a", impressions=100, clicks=3, spend=0.1),
            social(date(2025, 11, 1), "b", impressions=50, clicks=1, spend=0.2),
            social(date(2025, 11, 2), "a", impressions=70, clicks=2, spend=0.3,
                   video_views=3, avg_watch_time=1.7),
            social(date(2025, 11, 9), "c", impressions=10, clicks=0, spend=1e-9,
                   video_views=7, avg_watch_time=2.3),
        ]
        for granularity in (Granularity.DAY, Granularity.WEEK, Granularity.MONTH):
            expected = aggregate(records, granularity)
            for perm in itertools.permutations(records):
                assert aggregate(list(perm), granularity) == expected


class TestAveragedFields:
    def test_watch_time_is_view_weighted(self) -> None:
        day = date(2025, 11, 1)
        records = [
            social(day, "a", video_views=10, avg_watch_time=5.0),
            social(day, "b", video_views=30, avg_watch_time=1.0),
            social(day, "c", video_views=0, avg_watch_time=99.0),
        ]
        (bucket,) = aggregate(records, Granularity.DAY)
        assert bucket.avg_watch_time == pytest.approx(2.0)
        assert bucket.watch_time_count == 40

    def test_rank_is_mean_of_rows(self) -> None:
        records = [
            keyword(date(2025, 11, 1), "a", avg_rank=1.0),
            keyword(date(2025, 11, 1), "b", avg_rank=2.0),
            keyword(date(2025, 11, 2), "a", avg_rank=6.0),
        ]
        (bucket,) = aggregate(records, Granularity.MONTH)
        assert bucket.avg_rank == pytest.approx(3.0)
        assert bucket.rank_count == 3

    def test_keyword_spend_is_total_cost(self) -> None:
        (bucket,) = aggregate(
            [keyword(date(2025, 11, 1), total_cost=1200.0, clicks=4)], Granularity.DAY
        )
        assert bucket.spend == pytest.approx(1200.0)
        assert bucket.cpc == pytest.approx(300.0)
        assert bucket.currency == "KRW"


# ---------------------------------------------------------------------------
# Totals, changes, weekdays
# ---------------------------------------------------------------------------


class TestAggregateTotal:
    def test_idle_channel_gives_zero_total(self) -> None:
        total = aggregate_total(
            [], Channel.LOCAL_SEARCH, date(2025, 11, 1), date(2025, 11, 30)
        )
        assert total.record_count == 0
        assert total.impressions == 0
        assert total.ctr == 0.0
        assert total.bucket_start == date(2025, 11, 1)
        assert total.bucket_end == date(2025, 11, 30)
        assert total.currency == "KRW"

    def test_spans_requested_range(self) -> None:
        total = aggregate_total(
            [social(date(2025, 11, 5), impressions=10)],
            Channel.SOCIAL,
            date(2025, 11, 1),
            date(2025, 11, 30),
        )
        assert (total.bucket_start, total.bucket_end) == (
            date(2025, 11, 1),
            date(2025, 11, 30),
        )
        assert total.granularity == Granularity.PERIOD

    def test_wrong_channel_rejected(self) -> None:
        with pytest.raises(ValueError):
            aggregate_total(
                [social(date(2025, 11, 5))],
                Channel.LOCAL_SEARCH,
                date(2025, 11, 1),
                date(2025, 11, 30),
            )


class TestBucketChanges:
    def test_change_against_previous_bucket(self) -> None:
        buckets = aggregate(
            [
                social(date(2025, 11, 1), impressions=100, clicks=0),
                social(date(2025, 11, 2), impressions=150, clicks=4),
            ],
            Granularity.DAY,
        )
        (change,) = bucket_changes(buckets)
        assert change.bucket_start == date(2025, 11, 2)
        assert change.impressions_change == pytest.approx(50.0)
        assert change.clicks_change == 0.0

    def test_single_bucket_has_no_changes(self) -> None:
        buckets = aggregate([social(date(2025, 11, 1))], Granularity.DAY)
        assert bucket_changes(buckets) == []


class TestWeekdayBreakdown:
    def test_all_seven_days_monday_first(self) -> None:
        # 2025-11-10 is a Monday, 2025-11-17 the next one
        daily = aggregate(
            [
                social(date(2025, 11, 10), impressions=100, clicks=2),
                social(date(2025, 11, 17), impressions=300, clicks=6),
                social(date(2025, 11, 16), impressions=50, clicks=5),
            ],
            Granularity.DAY,
        )
        weekdays = aggregate_by_weekday(daily)
        assert [w.label for w in weekdays] == [
            "Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun",
        ]
        monday, sunday = weekdays[0], weekdays[6]
        assert monday.days == 2
        assert monday.impressions == 400
        assert monday.ctr == pytest.approx(2.0)
        assert sunday.clicks == 5
        assert weekdays[2].days == 0

    def test_rejects_non_daily(self) -> None:
        weekly = aggregate([social(date(2025, 11, 10))], Granularity.WEEK)
        with pytest.raises(ValueError):
            aggregate_by_weekday(weekly)
