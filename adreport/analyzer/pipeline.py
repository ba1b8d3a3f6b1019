"""ADREPORT: Analysis Pipeline Orchestrator.

Runs the full data flow for one client and period:
  fetch (both channels, current + previous, concurrently) → aggregate →
  derive KPIs → compare → extremes → merge channels → output model

Every step after the fetch is a pure function of the fetched records, so
two runs over the same records produce identical output.
"""

import asyncio
from datetime import date
from typing import List, Optional

from adreport.config import settings
from adreport.connectors.base import RawRecordFetcher
from adreport.core.currency import CurrencyConverter
from adreport.core.errors import ValidationError
from adreport.core.metric_registry import Channel
from adreport.models.normalized_models import MetricRecord
from adreport.models.report_models import ReportType
from adreport.models.analysis_models import (
    ChannelSummary,
    Granularity,
    IntegratedAnalytics,
    ReportSummaryData,
)
from adreport.analyzer.aggregator import (
    aggregate,
    aggregate_by_weekday,
    aggregate_total,
    bucket_changes,
)
from adreport.analyzer.campaign_rollup import summarize_campaigns
from adreport.analyzer.channel_merger import merge_channels, merge_daily
from adreport.analyzer.extreme_day import extremes_from_aggregates
from adreport.analyzer.keyword_rollup import summarize_keywords
from adreport.analyzer.trend_engine import compare_aggregates, previous_period
from adreport.core.logging import get_logger

logger = get_logger("analyzer.pipeline")

# Metrics whose best/worst day a report highlights
EXTREME_METRICS = ["clicks", "ctr", "impressions"]

# Bucket series shown per report type
REPORT_BUCKETS = {
    ReportType.MONTHLY: Granularity.WEEK,
    ReportType.WEEKLY: Granularity.DAY,
}


def _check_range(date_start: date, date_end: date) -> None:
    if date_end < date_start:
        raise ValidationError(
            f"end_date {date_end} is before start_date {date_start}",
            fields=["start_date", "end_date"],
        )


async def _fetch_channels(
    fetcher: RawRecordFetcher,
    client_id: str,
    date_start: date,
    date_end: date,
) -> tuple[List[MetricRecord], List[MetricRecord]]:
    social, local_search = await asyncio.gather(
        fetcher.fetch(client_id, Channel.SOCIAL, date_start, date_end),
        fetcher.fetch(client_id, Channel.LOCAL_SEARCH, date_start, date_end),
    )
    return social, local_search


# ── Integrated analytics ──


async def analyze_period(
    fetcher: RawRecordFetcher,
    client_id: str,
    date_start: date,
    date_end: date,
    granularity: Granularity = Granularity.DAY,
    converter: Optional[CurrencyConverter] = None,
    top_keywords: Optional[int] = None,
) -> IntegratedAnalytics:
    """Both channels over one range, bucketed at ``granularity``."""
    _check_range(date_start, date_end)
    converter = converter or CurrencyConverter()
    logger.info(
        f"Integrated analytics: {date_start} → {date_end} ({granularity.value})",
        extra={"client_id": client_id},
    )

    social, local_search = await _fetch_channels(
        fetcher, client_id, date_start, date_end
    )

    social_buckets = aggregate(social, granularity, date_start, date_end)
    local_buckets = aggregate(local_search, granularity, date_start, date_end)
    social_total = aggregate_total(social, Channel.SOCIAL, date_start, date_end)
    local_total = aggregate_total(
        local_search, Channel.LOCAL_SEARCH, date_start, date_end
    )

    social_daily = [
        converter.normalize(a)
        for a in aggregate(social, Granularity.DAY, date_start, date_end)
    ]
    local_daily = aggregate(local_search, Granularity.DAY, date_start, date_end)

    return IntegratedAnalytics(
        period_start=date_start,
        period_end=date_end,
        granularity=granularity,
        currency=converter.target_currency,
        exchange_rate=converter.rate,
        social_totals=social_total,
        local_search_totals=local_total,
        social_buckets=social_buckets,
        local_search_buckets=local_buckets,
        social_changes=bucket_changes(social_buckets),
        local_search_changes=bucket_changes(local_buckets),
        keywords=summarize_keywords(local_search, limit=top_keywords),
        campaigns=summarize_campaigns(social),
        channel_comparison=merge_channels(
            converter.normalize(social_total), converter.normalize(local_total)
        ),
        daily_combined=merge_daily(social_daily, local_daily),
    )


# ── Report summary ──


def _channel_summary(
    channel: Channel,
    current: List[MetricRecord],
    previous: List[MetricRecord],
    period: tuple[date, date],
    prev_period: tuple[date, date],
    bucket_granularity: Granularity,
) -> ChannelSummary:
    start, end = period
    totals = aggregate_total(current, channel, start, end)
    previous_totals = aggregate_total(previous, channel, *prev_period)
    daily = aggregate(current, Granularity.DAY, start, end)

    extremes = []
    for metric in EXTREME_METRICS:
        found = extremes_from_aggregates(daily, metric)
        if found is not None:
            extremes.append(found)

    return ChannelSummary(
        channel=channel,
        currency=totals.currency,
        totals=totals,
        previous_totals=previous_totals,
        comparisons=compare_aggregates(totals, previous_totals),
        extremes=extremes,
        daily=daily,
        buckets=aggregate(current, bucket_granularity, start, end),
    )


async def build_report_summary(
    fetcher: RawRecordFetcher,
    client_id: str,
    date_start: date,
    date_end: date,
    report_type: ReportType,
    converter: Optional[CurrencyConverter] = None,
    top_keywords: Optional[int] = None,
) -> ReportSummaryData:
    """Compute the summary snapshot a report carries.

    Current and previous periods of both channels are fetched concurrently;
    if any fetch fails the whole build fails and nothing is returned.
    """
    _check_range(date_start, date_end)
    converter = converter or CurrencyConverter()
    if top_keywords is None:
        top_keywords = settings.top_keywords_limit
    prev_start, prev_end = previous_period(date_start, date_end)

    logger.info(
        f"Building {report_type.value} summary: {date_start} → {date_end} "
        f"(previous {prev_start} → {prev_end})",
        extra={"client_id": client_id},
    )

    (social, local_search), (prev_social, prev_local) = await asyncio.gather(
        _fetch_channels(fetcher, client_id, date_start, date_end),
        _fetch_channels(fetcher, client_id, prev_start, prev_end),
    )

    period = (date_start, date_end)
    prev_period = (prev_start, prev_end)
    buckets = REPORT_BUCKETS[report_type]
    social_summary = _channel_summary(
        Channel.SOCIAL, social, prev_social, period, prev_period, buckets
    )
    local_summary = _channel_summary(
        Channel.LOCAL_SEARCH, local_search, prev_local, period, prev_period, buckets
    )

    social_daily = [converter.normalize(a) for a in social_summary.daily]

    summary = ReportSummaryData(
        report_type=report_type,
        period_start=date_start,
        period_end=date_end,
        previous_start=prev_start,
        previous_end=prev_end,
        currency=converter.target_currency,
        exchange_rate=converter.rate,
        social=social_summary,
        local_search=local_summary,
        keywords=summarize_keywords(local_search, limit=top_keywords),
        campaigns=summarize_campaigns(social),
        channel_comparison=merge_channels(
            converter.normalize(social_summary.totals),
            converter.normalize(local_summary.totals),
        ),
        daily_combined=merge_daily(social_daily, local_summary.daily),
        weekdays=aggregate_by_weekday(social_daily),
    )
    logger.info(
        f"Summary built: {len(social)} social / {len(local_search)} local-search records",
        extra={"client_id": client_id},
    )
    return summary
