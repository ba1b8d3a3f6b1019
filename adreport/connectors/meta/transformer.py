"""ADREPORT: Meta Insight Row → MetricRecord Transformer.

Meta reports most numbers as strings and buries leads, video views and
watch time inside action arrays. This module flattens one insight row into
the universal ``MetricRecord`` shape.
"""

from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from adreport.core.metric_registry import Channel
from adreport.models.normalized_models import MetricRecord
from adreport.core.logging import get_logger

logger = get_logger("meta.transformer")


def _safe_float(value: Any) -> float:
    """Safely convert a value to float."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _safe_int(value: Any) -> int:
    return int(_safe_float(value))


def _action_value(actions: Optional[List[Dict[str, Any]]], action_type: str) -> float:
    """Value of the first entry of ``action_type`` in a Meta action list."""
    for action in actions or []:
        if action.get("action_type") == action_type:
            return _safe_float(action.get("value", 0))
    return 0.0


def transform_insight_row(row: Dict[str, Any]) -> MetricRecord:
    """Convert one ad-level daily insight row."""
    return MetricRecord(
        date=date.fromisoformat(row["date_start"]),
        channel=Channel.SOCIAL,
        entity_id=row.get("ad_id", ""),
        entity_name=row.get("ad_name", ""),
        campaign_id=row.get("campaign_id") or None,
        campaign_name=row.get("campaign_name") or None,
        impressions=_safe_int(row.get("impressions")),
        clicks=_safe_int(row.get("inline_link_clicks")),
        spend=_safe_float(row.get("spend")),
        leads=int(_action_value(row.get("actions"), "lead")),
        video_views=int(_action_value(row.get("actions"), "video_view")),
        avg_watch_time=_action_value(
            row.get("video_avg_time_watched_actions"), "video_view"
        ),
    )


def transform_insights(rows: Iterable[Dict[str, Any]]) -> List[MetricRecord]:
    """Transform raw insight rows, skipping rows without a date."""
    records: List[MetricRecord] = []
    skipped = 0
    for row in rows:
        if not row.get("date_start"):
            skipped += 1
            continue
        records.append(transform_insight_row(row))

    if skipped:
        logger.warning(f"Skipped {skipped} insight rows without date_start")
    logger.info(
        f"Transformed {len(records)} insight rows, "
        f"{sum(r.leads for r in records)} leads, "
        f"{sum(r.video_views for r in records)} video views"
    )
    return records
