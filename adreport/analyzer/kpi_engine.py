"""ADREPORT: KPI Deriver.

Computes derived KPIs from a finalized aggregate's summed state:
CTR, CPC, CPL, average rank, average watch time.

Every ratio is zero-guarded: a zero denominator yields 0, never an error.
No rounding happens here; rounding is a presentation concern.
"""

from adreport.models.analysis_models import Aggregate


def ctr(clicks: float, impressions: float) -> float:
    """Click-through rate in percent."""
    return (clicks / impressions * 100) if impressions > 0 else 0.0


def cost_per(spend: float, count: float) -> float:
    """Spend per unit (click, lead)."""
    return (spend / count) if count > 0 else 0.0


def mean(total: float, count: float) -> float:
    return (total / count) if count > 0 else 0.0


def derive_kpis(aggregate: Aggregate) -> Aggregate:
    """Return a copy of ``aggregate`` with every derived field filled in.

    ``avg_rank`` and ``avg_watch_time`` come from the accumulators the
    aggregator folded; they are never recomputed from raw rows here.
    """
    return aggregate.model_copy(
        update={
            "ctr": ctr(aggregate.clicks, aggregate.impressions),
            "cpc": cost_per(aggregate.spend, aggregate.clicks),
            "cpl": cost_per(aggregate.spend, aggregate.leads),
            "avg_rank": mean(aggregate.rank_sum, aggregate.rank_count),
            "avg_watch_time": mean(
                aggregate.watch_time_sum, aggregate.watch_time_count
            ),
        }
    )
