"""ADREPORT: Campaign Rollup.

Social records rolled up per campaign, highest spend first.
Records without a campaign id are left out of the rollup.
"""

import math
from collections import defaultdict
from typing import Dict, Iterable, List

from adreport.core.metric_registry import Channel
from adreport.models.normalized_models import MetricRecord
from adreport.models.analysis_models import CampaignSummary
from adreport.analyzer.kpi_engine import cost_per, ctr


def summarize_campaigns(records: Iterable[MetricRecord]) -> List[CampaignSummary]:
    grouped: Dict[str, List[MetricRecord]] = defaultdict(list)
    for r in records:
        if r.channel != Channel.SOCIAL:
            raise ValueError(f"Campaign rollup got a {r.channel.value} record")
        if r.campaign_id:
            grouped[r.campaign_id].append(r)

    campaigns: List[CampaignSummary] = []
    for campaign_id, rows in grouped.items():
        impressions = sum(r.impressions for r in rows)
        clicks = sum(r.clicks for r in rows)
        leads = sum(r.leads for r in rows)
        spend = math.fsum(r.spend for r in rows)
        # Name from the latest row; ties broken by name for determinism
        latest = max(rows, key=lambda r: (r.date, r.campaign_name or ""))
        campaigns.append(
            CampaignSummary(
                campaign_id=campaign_id,
                campaign_name=latest.campaign_name or campaign_id,
                impressions=impressions,
                clicks=clicks,
                spend=spend,
                leads=leads,
                ctr=ctr(clicks, impressions),
                cpl=cost_per(spend, leads),
                days_count=len({r.date for r in rows}),
                first_date=min(r.date for r in rows),
                last_date=max(r.date for r in rows),
            )
        )

    campaigns.sort(key=lambda c: (-c.spend, c.campaign_id))
    return campaigns
