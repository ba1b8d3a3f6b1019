"""ADREPORT: Keyword Rollup.

Local-search records rolled up per keyword:
  - keyword summary: one row per distinct keyword over the whole range
  - keyword trend: the per-day rows for one keyword

Keywords are grouped by their raw string. "Cafe" and "cafe" are two keywords.
"""

import math
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional

from adreport.core.currency import round_half_up
from adreport.core.metric_registry import Channel
from adreport.models.normalized_models import MetricRecord
from adreport.models.analysis_models import KeywordSummary, KeywordTrendRow
from adreport.analyzer.kpi_engine import cost_per, ctr, mean
from adreport.core.logging import get_logger

logger = get_logger("analyzer.keyword")


class _KeywordStats:
    def __init__(self):
        self.impressions = 0
        self.clicks = 0
        self.days = 0
        self.cost_parts: List[float] = []
        self.rank_parts: List[float] = []
        self.first_date: Optional[date] = None
        self.last_date: Optional[date] = None

    def add(self, record: MetricRecord) -> None:
        self.impressions += record.impressions
        self.clicks += record.clicks
        self.days += 1
        self.cost_parts.append(record.total_cost)
        self.rank_parts.append(record.avg_rank)
        if self.first_date is None or record.date < self.first_date:
            self.first_date = record.date
        if self.last_date is None or record.date > self.last_date:
            self.last_date = record.date


def _check_channel(records: Iterable[MetricRecord]) -> List[MetricRecord]:
    rows = list(records)
    for r in rows:
        if r.channel != Channel.LOCAL_SEARCH:
            raise ValueError(f"Keyword rollup got a {r.channel.value} record")
    return rows


def summarize_keywords(
    records: Iterable[MetricRecord],
    limit: Optional[int] = None,
) -> List[KeywordSummary]:
    """One summary row per keyword, most expensive first."""
    stats: Dict[str, _KeywordStats] = defaultdict(_KeywordStats)
    for r in _check_channel(records):
        stats[r.keyword].add(r)

    summaries: List[KeywordSummary] = []
    for keyword, s in stats.items():
        total_cost = math.fsum(s.cost_parts)
        summaries.append(
            KeywordSummary(
                keyword=keyword,
                impressions=s.impressions,
                clicks=s.clicks,
                total_cost=total_cost,
                ctr=ctr(s.clicks, s.impressions),
                avg_cpc=round_half_up(cost_per(total_cost, s.clicks)),
                avg_rank=round_half_up(mean(math.fsum(s.rank_parts), s.days), 1),
                days_count=s.days,
                first_date=s.first_date,
                last_date=s.last_date,
            )
        )

    summaries.sort(key=lambda k: (-k.total_cost, k.keyword))
    logger.info(f"Rolled up {len(summaries)} keywords")
    return summaries[:limit] if limit is not None else summaries


def keyword_trend(
    records: Iterable[MetricRecord],
    keyword: str,
) -> List[KeywordTrendRow]:
    """Per-day rows for one keyword, ascending by date."""
    rows = [r for r in _check_channel(records) if r.keyword == keyword]
    rows.sort(key=lambda r: r.date)
    return [
        KeywordTrendRow(
            date=r.date,
            keyword=r.keyword,
            impressions=r.impressions,
            clicks=r.clicks,
            ctr=ctr(r.clicks, r.impressions),
            avg_cpc=r.avg_cpc,
            total_cost=r.total_cost,
            avg_rank=r.avg_rank,
        )
        for r in rows
    ]
