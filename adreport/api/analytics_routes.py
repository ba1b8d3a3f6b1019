"""ADREPORT: Analytics API Routes.

Read-only views over raw channel data, computed on every request.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from adreport.analyzer.keyword_rollup import keyword_trend, summarize_keywords
from adreport.analyzer.pipeline import analyze_period
from adreport.api.dependencies import get_converter, get_fetcher, http_error
from adreport.connectors.base import RawRecordFetcher
from adreport.core.currency import CurrencyConverter
from adreport.core.errors import ReportEngineError, ValidationError
from adreport.core.metric_registry import Channel
from adreport.models.analysis_models import Granularity, IntegratedAnalytics
from adreport.core.logging import get_logger

logger = get_logger("api.analytics")

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/integrated", response_model=IntegratedAnalytics)
async def get_integrated_analytics(
    client_id: str,
    start_date: date,
    end_date: date,
    granularity: Granularity = Granularity.DAY,
    top_keywords: Optional[int] = Query(None, ge=1, le=500),
    fetcher: RawRecordFetcher = Depends(get_fetcher),
    converter: CurrencyConverter = Depends(get_converter),
):
    """Both channels side by side over one date range."""
    try:
        return await analyze_period(
            fetcher,
            client_id,
            start_date,
            end_date,
            granularity=granularity,
            converter=converter,
            top_keywords=top_keywords,
        )
    except ReportEngineError as e:
        logger.error(
            f"Integrated analytics failed: {e}",
            extra={"client_id": client_id, "endpoint": "/analytics/integrated"},
        )
        raise http_error(e)


@router.get("/keywords")
async def get_keyword_analytics(
    client_id: str,
    start_date: date,
    end_date: date,
    keyword: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1, le=500),
    fetcher: RawRecordFetcher = Depends(get_fetcher),
):
    """Keyword summary, plus the daily trend when one keyword is named."""
    try:
        if end_date < start_date:
            raise ValidationError(
                f"end_date {end_date} is before start_date {start_date}",
                fields=["start_date", "end_date"],
            )
        records = await fetcher.fetch(
            client_id, Channel.LOCAL_SEARCH, start_date, end_date
        )
    except ReportEngineError as e:
        logger.error(
            f"Keyword analytics failed: {e}",
            extra={"client_id": client_id, "endpoint": "/analytics/keywords"},
        )
        raise http_error(e)

    result = {
        "client_id": client_id,
        "period_start": start_date,
        "period_end": end_date,
        "keywords": summarize_keywords(records, limit=limit),
    }
    if keyword is not None:
        result["trend"] = keyword_trend(records, keyword)
    return result
