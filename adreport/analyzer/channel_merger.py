"""ADREPORT: Channel Merger.

Puts the social and local-search channels side by side. Inputs must
already be normalized to one currency (see ``CurrencyConverter.normalize``).

Differences are social minus local-search; the percent difference uses the
local-search value as base with the same zero guard as period comparisons.
For unit costs a negative difference is the good outcome; that is exposed
through ``lower_is_better`` rather than by flipping the sign.
"""

import math
from collections import defaultdict
from datetime import date
from typing import Dict, List

from adreport.core.metric_registry import Channel, is_lower_better
from adreport.models.analysis_models import (
    Aggregate,
    ChannelComparison,
    ChannelMetricComparison,
    DailyCombined,
    SpendShare,
)
from adreport.analyzer.kpi_engine import cost_per, ctr
from adreport.analyzer.trend_engine import percent_change

MERGED_METRICS = ["spend", "impressions", "clicks", "ctr", "cpc"]


def _check_pair(social: Aggregate, local_search: Aggregate) -> None:
    if social.channel != Channel.SOCIAL or local_search.channel != Channel.LOCAL_SEARCH:
        raise ValueError("merge expects (social, local_search) aggregates")
    if social.currency != local_search.currency:
        raise ValueError(
            f"Channels not normalized: {social.currency} vs {local_search.currency}"
        )


def spend_share(social_spend: float, local_search_spend: float) -> SpendShare:
    """Each channel's share of total spend in percent; 0/0 gives 0 for both."""
    total = social_spend + local_search_spend
    if total <= 0:
        return SpendShare(social_percent=0.0, local_search_percent=0.0)
    return SpendShare(
        social_percent=social_spend / total * 100,
        local_search_percent=local_search_spend / total * 100,
    )


def merge_channels(social: Aggregate, local_search: Aggregate) -> ChannelComparison:
    _check_pair(social, local_search)

    metrics: List[ChannelMetricComparison] = []
    for name in MERGED_METRICS:
        s_val = social.metric(name)
        l_val = local_search.metric(name)
        metrics.append(
            ChannelMetricComparison(
                metric=name,
                social=s_val,
                local_search=l_val,
                difference=s_val - l_val,
                difference_percent=percent_change(s_val, l_val),
                lower_is_better=is_lower_better(name),
            )
        )

    total_spend = social.spend + local_search.spend
    total_impressions = social.impressions + local_search.impressions
    total_clicks = social.clicks + local_search.clicks
    return ChannelComparison(
        currency=social.currency,
        total_spend=total_spend,
        total_impressions=total_impressions,
        total_clicks=total_clicks,
        ctr=ctr(total_clicks, total_impressions),
        cpc=cost_per(total_spend, total_clicks),
        spend_share=spend_share(social.spend, local_search.spend),
        metrics=metrics,
    )


def merge_daily(
    social_daily: List[Aggregate],
    local_search_daily: List[Aggregate],
) -> List[DailyCombined]:
    """Join two normalized daily series over the union of their dates."""
    by_date: Dict[date, Dict[Channel, Aggregate]] = defaultdict(dict)
    for agg in [*social_daily, *local_search_daily]:
        by_date[agg.bucket_start][agg.channel] = agg

    currencies = {a.currency for a in [*social_daily, *local_search_daily]}
    if len(currencies) > 1:
        raise ValueError(f"Daily series not normalized: {sorted(currencies)}")

    combined: List[DailyCombined] = []
    for day in sorted(by_date):
        s = by_date[day].get(Channel.SOCIAL)
        n = by_date[day].get(Channel.LOCAL_SEARCH)
        s_impr, s_clicks = (s.impressions, s.clicks) if s else (0, 0)
        n_impr, n_clicks = (n.impressions, n.clicks) if n else (0, 0)
        s_spend = s.spend if s else 0.0
        n_spend = n.spend if n else 0.0
        combined.append(
            DailyCombined(
                date=day,
                social_impressions=s_impr,
                social_clicks=s_clicks,
                social_spend=s_spend,
                social_leads=s.leads if s else 0,
                local_search_impressions=n_impr,
                local_search_clicks=n_clicks,
                local_search_spend=n_spend,
                total_impressions=s_impr + n_impr,
                total_clicks=s_clicks + n_clicks,
                total_spend=math.fsum([s_spend, n_spend]),
            )
        )
    return combined
