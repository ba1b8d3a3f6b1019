"""ADREPORT: Analysis Output Models (Versioned).

Ephemeral shapes produced by the analyzer engines. Nothing here is persisted
as authoritative state; ``ReportSummaryData`` is stored as a snapshot inside
a report row.
"""

import datetime as dt
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict

from adreport.core.metric_registry import Channel
from adreport.models.report_models import ReportType

SUMMARY_SCHEMA_VERSION = "1.0"


class Granularity(str, Enum):
    """Bucket width for aggregation."""

    DAY = "day"
    WEEK = "week"  # Sunday-start calendar weeks
    MONTH = "month"
    PERIOD = "period"  # Whole requested range as one bucket


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


# ─────────────────────────────────────────────
# AGGREGATES
# ─────────────────────────────────────────────


class Aggregate(BaseModel):
    """Summed metrics for one channel over one bucket.

    Averaged fields keep their ``(sum, count)`` accumulators; the derived
    KPI fields are filled once by ``derive_kpis`` at finalization.
    """

    channel: Channel
    granularity: Granularity
    bucket_start: dt.date
    bucket_end: dt.date
    currency: str = ""
    record_count: int = 0

    impressions: int = 0
    clicks: int = 0
    spend: float = 0.0
    leads: int = 0
    video_views: int = 0

    watch_time_sum: float = 0.0  # Σ video_views × avg_watch_time
    watch_time_count: int = 0  # Σ video_views
    rank_sum: float = 0.0
    rank_count: int = 0

    ctr: float = 0.0
    cpc: float = 0.0
    cpl: float = 0.0
    avg_rank: float = 0.0
    avg_watch_time: float = 0.0

    def metric(self, name: str) -> float:
        """Read a metric by registry name."""
        if name == "total_cost":
            name = "spend"
        if name not in METRIC_FIELDS:
            raise KeyError(f"Unknown aggregate metric: {name}")
        return float(getattr(self, name))


METRIC_FIELDS = {
    "impressions",
    "clicks",
    "spend",
    "leads",
    "video_views",
    "ctr",
    "cpc",
    "cpl",
    "avg_rank",
    "avg_watch_time",
}


class BucketChange(BaseModel):
    """Change of one bucket against the bucket before it."""

    bucket_start: dt.date
    impressions_change: float = 0.0
    clicks_change: float = 0.0
    spend_change: float = 0.0
    leads_change: float = 0.0


class WeekdayAggregate(BaseModel):
    """Daily aggregates folded by day of week (0 = Monday)."""

    weekday: int
    label: str
    days: int = 0
    impressions: int = 0
    clicks: int = 0
    spend: float = 0.0
    ctr: float = 0.0


# ─────────────────────────────────────────────
# ROLLUPS
# ─────────────────────────────────────────────


class KeywordSummary(BaseModel):
    keyword: str
    impressions: int = 0
    clicks: int = 0
    total_cost: float = 0.0
    ctr: float = 0.0
    avg_cpc: float = 0.0
    avg_rank: float = 0.0
    days_count: int = 0
    first_date: dt.date
    last_date: dt.date


class KeywordTrendRow(BaseModel):
    date: dt.date
    keyword: str
    impressions: int = 0
    clicks: int = 0
    ctr: float = 0.0
    avg_cpc: float = 0.0
    total_cost: float = 0.0
    avg_rank: float = 0.0


class CampaignSummary(BaseModel):
    campaign_id: str
    campaign_name: str
    impressions: int = 0
    clicks: int = 0
    spend: float = 0.0
    leads: int = 0
    ctr: float = 0.0
    cpl: float = 0.0
    days_count: int = 0
    first_date: dt.date
    last_date: dt.date


# ─────────────────────────────────────────────
# COMPARISONS
# ─────────────────────────────────────────────


class ComparisonResult(BaseModel):
    """Current vs previous period for one metric."""

    metric: str
    current: float
    previous: float
    percent_change: float
    direction: Direction
    lower_is_better: bool = False
    favorable: Optional[bool] = None  # None when stable or budget metric


class ExtremeDayResult(BaseModel):
    metric: str
    kind: Literal["max", "min"]
    date: dt.date
    value: float
    label: str


class ExtremeDays(BaseModel):
    metric: str
    best: ExtremeDayResult
    worst: ExtremeDayResult


class ChannelMetricComparison(BaseModel):
    """One metric side by side across channels, in the common currency."""

    metric: str
    social: float
    local_search: float
    difference: float
    difference_percent: float
    lower_is_better: bool = False


class SpendShare(BaseModel):
    social_percent: float = 0.0
    local_search_percent: float = 0.0


class ChannelComparison(BaseModel):
    currency: str
    total_spend: float = 0.0
    total_impressions: int = 0
    total_clicks: int = 0
    ctr: float = 0.0
    cpc: float = 0.0
    spend_share: SpendShare = SpendShare()
    metrics: List[ChannelMetricComparison] = []


class DailyCombined(BaseModel):
    date: dt.date
    social_impressions: int = 0
    social_clicks: int = 0
    social_spend: float = 0.0
    social_leads: int = 0
    local_search_impressions: int = 0
    local_search_clicks: int = 0
    local_search_spend: float = 0.0
    total_impressions: int = 0
    total_clicks: int = 0
    total_spend: float = 0.0


# ─────────────────────────────────────────────
# OUTPUT ENVELOPES
# ─────────────────────────────────────────────


class ChannelSummary(BaseModel):
    """Everything a report shows for one channel."""

    model_config = ConfigDict(extra="forbid")

    channel: Channel
    currency: str
    totals: Aggregate
    previous_totals: Aggregate
    comparisons: List[ComparisonResult] = []
    extremes: List[ExtremeDays] = []
    daily: List[Aggregate] = []
    buckets: List[Aggregate] = []


class ReportSummaryData(BaseModel):
    """Summary snapshot attached to a report, v1.0.

    Closed schema: unknown keys are rejected so stored snapshots stay
    readable by every consumer of the same version.
    """

    model_config = ConfigDict(extra="forbid")

    schema_version: Literal["1.0"] = SUMMARY_SCHEMA_VERSION
    report_type: ReportType
    period_start: dt.date
    period_end: dt.date
    previous_start: dt.date
    previous_end: dt.date
    currency: str
    exchange_rate: float
    social: ChannelSummary
    local_search: ChannelSummary
    keywords: List[KeywordSummary] = []
    campaigns: List[CampaignSummary] = []
    channel_comparison: ChannelComparison
    daily_combined: List[DailyCombined] = []
    weekdays: List[WeekdayAggregate] = []


class IntegratedAnalytics(BaseModel):
    """Both channels over one range, without a previous-period comparison."""

    period_start: dt.date
    period_end: dt.date
    granularity: Granularity
    currency: str
    exchange_rate: float
    social_totals: Aggregate
    local_search_totals: Aggregate
    social_buckets: List[Aggregate] = []
    local_search_buckets: List[Aggregate] = []
    social_changes: List[BucketChange] = []
    local_search_changes: List[BucketChange] = []
    keywords: List[KeywordSummary] = []
    campaigns: List[CampaignSummary] = []
    channel_comparison: ChannelComparison
    daily_combined: List[DailyCombined] = []
