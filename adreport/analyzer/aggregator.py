"""ADREPORT: Aggregator.

Folds per-day metric records into date-bucketed aggregates.

Buckets:
  day    → the record's date
  week   → Sunday-start calendar week (may straddle two months)
  month  → calendar month
  period → the whole requested range

Only buckets with at least one contributing record are emitted. Output is
sorted by bucket start and float sums use ``math.fsum``, so the result does
not depend on the order records arrive in.
"""

import calendar
import math
from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from adreport.core.currency import channel_currency
from adreport.core.metric_registry import Channel
from adreport.models.normalized_models import MetricRecord
from adreport.models.analysis_models import (
    Aggregate,
    BucketChange,
    Granularity,
    WeekdayAggregate,
)
from adreport.analyzer.kpi_engine import ctr, derive_kpis
from adreport.analyzer.trend_engine import percent_change
from adreport.core.logging import get_logger

logger = get_logger("analyzer.aggregator")

WEEKDAY_LABELS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


# ── Bucketing ──


def week_start(day: date) -> date:
    """Most recent Sunday on or before ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def month_end(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def bucket_bounds(
    day: date,
    granularity: Granularity,
    period: Optional[tuple[date, date]] = None,
) -> tuple[date, date]:
    """Return the inclusive (start, end) of the bucket containing ``day``."""
    if granularity == Granularity.DAY:
        return day, day
    if granularity == Granularity.WEEK:
        start = week_start(day)
        return start, start + timedelta(days=6)
    if granularity == Granularity.MONTH:
        start = day.replace(day=1)
        return start, month_end(start)
    if period is None:
        raise ValueError("Period granularity needs explicit date bounds")
    return period


# ── Accumulation ──


class _Accumulator:
    """Running state for one bucket; floats are collected, not summed."""

    def __init__(self):
        self.record_count = 0
        self.impressions = 0
        self.clicks = 0
        self.leads = 0
        self.video_views = 0
        self.rank_count = 0
        self.spend_parts: List[float] = []
        self.watch_parts: List[float] = []
        self.rank_parts: List[float] = []

    def add(self, record: MetricRecord) -> None:
        self.record_count += 1
        self.impressions += record.impressions
        self.clicks += record.clicks
        self.leads += record.leads
        self.video_views += record.video_views
        self.spend_parts.append(record.spend)
        if record.video_views > 0:
            self.watch_parts.append(record.video_views * record.avg_watch_time)
        if record.channel == Channel.LOCAL_SEARCH:
            self.rank_parts.append(record.avg_rank)
            self.rank_count += 1

    def finalize(
        self,
        channel: Channel,
        granularity: Granularity,
        start: date,
        end: date,
        currency: str,
    ) -> Aggregate:
        return derive_kpis(
            Aggregate(
                channel=channel,
                granularity=granularity,
                bucket_start=start,
                bucket_end=end,
                currency=currency,
                record_count=self.record_count,
                impressions=self.impressions,
                clicks=self.clicks,
                spend=math.fsum(self.spend_parts),
                leads=self.leads,
                video_views=self.video_views,
                watch_time_sum=math.fsum(self.watch_parts),
                watch_time_count=self.video_views,
                rank_sum=math.fsum(self.rank_parts),
                rank_count=self.rank_count,
            )
        )


def _single_channel(records: List[MetricRecord]) -> Optional[Channel]:
    channels = {r.channel for r in records}
    if len(channels) > 1:
        raise ValueError(
            f"Aggregation expects one channel, got {sorted(c.value for c in channels)}"
        )
    return next(iter(channels), None)


def _in_range(
    records: Iterable[MetricRecord],
    date_start: Optional[date],
    date_end: Optional[date],
) -> List[MetricRecord]:
    return [
        r
        for r in records
        if (date_start is None or r.date >= date_start)
        and (date_end is None or r.date <= date_end)
    ]


# ── Public API ──


def aggregate(
    records: Iterable[MetricRecord],
    granularity: Granularity,
    date_start: Optional[date] = None,
    date_end: Optional[date] = None,
    currency: Optional[str] = None,
) -> List[Aggregate]:
    """Fold records of one channel into ordered, finalized buckets."""
    rows = _in_range(records, date_start, date_end)
    channel = _single_channel(rows)
    if channel is None:
        return []

    period = None
    if granularity == Granularity.PERIOD:
        period = (
            date_start or min(r.date for r in rows),
            date_end or max(r.date for r in rows),
        )

    buckets: Dict[tuple[date, date], _Accumulator] = defaultdict(_Accumulator)
    for r in rows:
        buckets[bucket_bounds(r.date, granularity, period)].add(r)

    unit = currency or channel_currency(channel)
    result = [
        buckets[key].finalize(channel, granularity, key[0], key[1], unit)
        for key in sorted(buckets)
    ]
    logger.debug(
        f"Aggregated {len(rows)} {channel.value} records into "
        f"{len(result)} {granularity.value} buckets"
    )
    return result


def aggregate_total(
    records: Iterable[MetricRecord],
    channel: Channel,
    date_start: date,
    date_end: date,
    currency: Optional[str] = None,
) -> Aggregate:
    """One aggregate spanning exactly [date_start, date_end].

    Unlike ``aggregate``, an empty record set yields a zero total so an
    idle channel can still be compared against another period.
    """
    buckets = aggregate(records, Granularity.PERIOD, date_start, date_end, currency)
    if buckets:
        if buckets[0].channel != channel:
            raise ValueError(
                f"Expected {channel.value} records, got {buckets[0].channel.value}"
            )
        return buckets[0]
    return _Accumulator().finalize(
        channel,
        Granularity.PERIOD,
        date_start,
        date_end,
        currency or channel_currency(channel),
    )


def bucket_changes(buckets: List[Aggregate]) -> List[BucketChange]:
    """Percent change of each bucket against the one before it."""
    changes: List[BucketChange] = []
    for prev, curr in zip(buckets, buckets[1:]):
        changes.append(
            BucketChange(
                bucket_start=curr.bucket_start,
                impressions_change=percent_change(curr.impressions, prev.impressions),
                clicks_change=percent_change(curr.clicks, prev.clicks),
                spend_change=percent_change(curr.spend, prev.spend),
                leads_change=percent_change(curr.leads, prev.leads),
            )
        )
    return changes


def aggregate_by_weekday(daily: List[Aggregate]) -> List[WeekdayAggregate]:
    """Fold daily aggregates by day of week, Monday first, all seven days."""
    grouped: Dict[int, List[Aggregate]] = defaultdict(list)
    for d in daily:
        if d.granularity != Granularity.DAY:
            raise ValueError("Weekday breakdown needs daily aggregates")
        grouped[d.bucket_start.weekday()].append(d)

    result: List[WeekdayAggregate] = []
    for weekday, label in enumerate(WEEKDAY_LABELS):
        days = grouped.get(weekday, [])
        impressions = sum(d.impressions for d in days)
        clicks = sum(d.clicks for d in days)
        result.append(
            WeekdayAggregate(
                weekday=weekday,
                label=label,
                days=len(days),
                impressions=impressions,
                clicks=clicks,
                spend=math.fsum(d.spend for d in days),
                ctr=ctr(clicks, impressions),
            )
        )
    return result
