"""ADREPORT: Extreme Day Detector.

Finds the best (maximum) and worst (minimum) day of a metric in a daily
series. When several days share the extreme value the earliest date wins.
"""

from datetime import date
from typing import Iterable, List, Optional, Tuple

from adreport.models.analysis_models import (
    Aggregate,
    ExtremeDayResult,
    ExtremeDays,
    Granularity,
)

WEEKDAY_NAMES = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]


def day_label(day: date) -> str:
    """e.g. "Monday (11/10)"."""
    return f"{WEEKDAY_NAMES[day.weekday()]} ({day.month}/{day.day})"


def find_extremes(
    series: Iterable[Tuple[date, float]],
    metric: str,
) -> Optional[ExtremeDays]:
    """Return max and min days of ``series``, or None if it is empty."""
    # Stable sort, then strict comparisons: first occurrence of a tie stays
    points = sorted(series, key=lambda p: p[0])
    if not points:
        return None

    best = worst = points[0]
    for point in points[1:]:
        if point[1] > best[1]:
            best = point
        if point[1] < worst[1]:
            worst = point

    return ExtremeDays(
        metric=metric,
        best=ExtremeDayResult(
            metric=metric,
            kind="max",
            date=best[0],
            value=best[1],
            label=day_label(best[0]),
        ),
        worst=ExtremeDayResult(
            metric=metric,
            kind="min",
            date=worst[0],
            value=worst[1],
            label=day_label(worst[0]),
        ),
    )


def extremes_from_aggregates(
    daily: Iterable[Aggregate],
    metric: str,
) -> Optional[ExtremeDays]:
    """Extremes of one metric read from daily aggregates."""
    series: List[Tuple[date, float]] = []
    for agg in daily:
        if agg.granularity != Granularity.DAY:
            raise ValueError(
                f"Extreme days need daily aggregates, got {agg.granularity.value}"
            )
        series.append((agg.bucket_start, agg.metric(metric)))
    return find_extremes(series, metric)
