"""ADREPORT: Unified Metric Registry.

Defines the channels, the canonical set of metrics, and how each one is
folded and judged. The analyzer engines read this registry instead of
hard-coding which fields sum, which average, and which are costs.
"""

from enum import Enum
from typing import Dict


class Channel(str, Enum):
    """An independent ad-performance data source."""

    SOCIAL = "social"  # Meta: impression/click based
    LOCAL_SEARCH = "local_search"  # Naver Place: keyword ranked


class MetricType(str, Enum):
    """How a metric is categorised."""

    VOLUME = "volume"  # Raw counts: impressions, clicks, leads
    COST = "cost"  # Monetary: spend, total_cost
    AVERAGE = "average"  # Per-row averages folded as (sum, count)
    DERIVED = "derived"  # Computed from summed state: ctr, cpc, cpl
    VIDEO = "video"  # Video-specific counts


class MetricDefinition:
    """Describes a single metric."""

    def __init__(
        self,
        name: str,
        metric_type: MetricType,
        unit: str = "",
        description: str = "",
        lower_is_better: bool = False,
    ):
        self.name = name
        self.metric_type = metric_type
        self.unit = unit
        self.description = description
        self.lower_is_better = lower_is_better

    def __repr__(self) -> str:
        return f"<Metric {self.name} ({self.metric_type.value})>"


# ─────────────────────────────────────────────
# SOCIAL METRICS (Meta)
# ─────────────────────────────────────────────

SOCIAL_METRICS: Dict[str, MetricDefinition] = {
    "impressions": MetricDefinition(
        "impressions", MetricType.VOLUME, "count", "Number of times ad was shown"
    ),
    "clicks": MetricDefinition("clicks", MetricType.VOLUME, "count", "Link clicks"),
    "leads": MetricDefinition("leads", MetricType.VOLUME, "count", "Lead form submits"),
    "spend": MetricDefinition(
        "spend", MetricType.COST, "currency", "Total amount spent"
    ),
    "video_views": MetricDefinition(
        "video_views", MetricType.VIDEO, "count", "Video views"
    ),
    "avg_watch_time": MetricDefinition(
        "avg_watch_time",
        MetricType.AVERAGE,
        "seconds",
        "Average watch time, weighted by video views",
    ),
}


# ─────────────────────────────────────────────
# LOCAL SEARCH METRICS (Naver Place)
# ─────────────────────────────────────────────

LOCAL_SEARCH_METRICS: Dict[str, MetricDefinition] = {
    "impressions": SOCIAL_METRICS["impressions"],
    "clicks": SOCIAL_METRICS["clicks"],
    "total_cost": MetricDefinition(
        "total_cost", MetricType.COST, "currency", "Keyword cost for the day"
    ),
    "avg_rank": MetricDefinition(
        "avg_rank",
        MetricType.AVERAGE,
        "rank",
        "Average exposure rank; lower is better",
        lower_is_better=True,
    ),
}


# ─────────────────────────────────────────────
# DERIVED METRICS (computed by the KPI deriver)
# ─────────────────────────────────────────────

DERIVED_METRICS: Dict[str, MetricDefinition] = {
    "ctr": MetricDefinition("ctr", MetricType.DERIVED, "%", "Clicks / Impressions"),
    "cpc": MetricDefinition(
        "cpc", MetricType.DERIVED, "currency", "Cost per click", lower_is_better=True
    ),
    "cpl": MetricDefinition(
        "cpl", MetricType.DERIVED, "currency", "Cost per lead", lower_is_better=True
    ),
}


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────

ALL_METRICS = {**SOCIAL_METRICS, **LOCAL_SEARCH_METRICS, **DERIVED_METRICS}


def get_metric(name: str) -> MetricDefinition | None:
    """Look up a metric by name."""
    return ALL_METRICS.get(name)


def is_lower_better(name: str) -> bool:
    """Unit costs (cpc, cpl) and rank improve when they go down."""
    metric = get_metric(name)
    return metric is not None and metric.lower_is_better


def polarity(name: str) -> int:
    """+1 if higher is better, -1 if lower is better, 0 for budget totals."""
    metric = get_metric(name)
    if metric is None or metric.metric_type == MetricType.COST:
        return 0
    return -1 if metric.lower_is_better else 1
