"""ADREPORT: Period Comparator.

Compares a current-period aggregate against the previous period.
Produces per-metric signed percent change and a direction.
"""

import calendar
from datetime import date, timedelta
from typing import Dict, List, Optional

from adreport.core.metric_registry import Channel, is_lower_better, polarity
from adreport.models.analysis_models import Aggregate, ComparisonResult, Direction

# |change| at or below this many percent counts as stable
STABLE_THRESHOLD = 0.05

# Metrics compared per channel
COMPARED_METRICS: Dict[Channel, List[str]] = {
    Channel.SOCIAL: [
        "impressions",
        "clicks",
        "spend",
        "leads",
        "video_views",
        "ctr",
        "cpc",
        "cpl",
        "avg_watch_time",
    ],
    Channel.LOCAL_SEARCH: [
        "impressions",
        "clicks",
        "spend",
        "ctr",
        "cpc",
        "avg_rank",
    ],
}


def previous_period(date_start: date, date_stop: date) -> tuple[date, date]:
    """Resolve the period a report is compared against.

    A range covering exactly one calendar month compares against the
    previous calendar month; any other range against the window of equal
    length that ends the day before it starts.
    """
    if date_stop < date_start:
        raise ValueError(f"Period ends before it starts: {date_start} > {date_stop}")
    last_day = calendar.monthrange(date_start.year, date_start.month)[1]
    if date_start.day == 1 and date_stop == date_start.replace(day=last_day):
        prev_stop = date_start - timedelta(days=1)
        return prev_stop.replace(day=1), prev_stop
    period_days = (date_stop - date_start).days + 1
    prev_stop = date_start - timedelta(days=1)
    prev_start = prev_stop - timedelta(days=period_days - 1)
    return prev_start, prev_stop


def percent_change(current: float, previous: float) -> float:
    """Signed % change; exactly 0 when there is no previous activity."""
    if previous == 0:
        return 0.0
    return (current - previous) / previous * 100


def classify_direction(change_pct: float) -> Direction:
    if change_pct > STABLE_THRESHOLD:
        return Direction.UP
    elif change_pct < -STABLE_THRESHOLD:
        return Direction.DOWN
    return Direction.STABLE


def _favorable(metric_name: str, direction: Direction) -> Optional[bool]:
    """Whether the move is good news. Budget totals have no polarity."""
    sign = polarity(metric_name)
    if direction == Direction.STABLE or sign == 0:
        return None
    moved_up = direction == Direction.UP
    return moved_up if sign > 0 else not moved_up


def compare_metric(metric_name: str, current: float, previous: float) -> ComparisonResult:
    change = percent_change(current, previous)
    direction = classify_direction(change)
    return ComparisonResult(
        metric=metric_name,
        current=current,
        previous=previous,
        percent_change=change,
        direction=direction,
        lower_is_better=is_lower_better(metric_name),
        favorable=_favorable(metric_name, direction),
    )


def compare_aggregates(
    current: Aggregate,
    previous: Aggregate,
    metrics: Optional[List[str]] = None,
) -> List[ComparisonResult]:
    """Compare two aggregates of the same channel metric by metric."""
    if current.channel != previous.channel:
        raise ValueError(
            f"Cannot compare {current.channel.value} with {previous.channel.value}"
        )
    if current.currency != previous.currency:
        raise ValueError(
            f"Cannot compare spend in {current.currency} with {previous.currency}"
        )
    names = metrics or COMPARED_METRICS[current.channel]
    return [
        compare_metric(name, current.metric(name), previous.metric(name))
        for name in names
    ]
