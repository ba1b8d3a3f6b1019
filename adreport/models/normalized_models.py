"""ADREPORT: Normalized Metric Record (Universal Schema).

Every record source (database, Meta API, test fakes) produces this shape.
The analyzer engines consume nothing else.
"""

import datetime as dt
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from adreport.core.metric_registry import Channel


class MetricRecord(BaseModel):
    """One raw per-day observation for one channel entity.

    ``entity_id`` is the ad id for social records and the raw keyword
    string for local-search records. ``spend`` is in the channel's native
    currency; for local-search records it equals ``total_cost``.
    """

    model_config = ConfigDict(frozen=True)

    date: dt.date
    channel: Channel
    entity_id: str
    entity_name: str = ""
    campaign_id: Optional[str] = None
    campaign_name: Optional[str] = None
    impressions: int = Field(default=0, ge=0)
    clicks: int = Field(default=0, ge=0)
    spend: float = Field(default=0.0, ge=0)

    # Social extras
    leads: int = Field(default=0, ge=0)
    video_views: int = Field(default=0, ge=0)
    avg_watch_time: float = Field(default=0.0, ge=0)

    # Local-search extras
    avg_cpc: float = Field(default=0.0, ge=0)
    avg_rank: float = Field(default=0.0, ge=0)
    total_cost: float = Field(default=0.0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _fill_keyword_spend(cls, data: Any) -> Any:
        # Keyword rows report cost as total_cost; mirror it into spend.
        if isinstance(data, dict) and data.get("channel") in (
            Channel.LOCAL_SEARCH,
            Channel.LOCAL_SEARCH.value,
        ):
            if "spend" not in data and "total_cost" in data:
                data = {**data, "spend": data["total_cost"]}
            elif "total_cost" not in data and "spend" in data:
                data = {**data, "total_cost": data["spend"]}
        return data

    @property
    def keyword(self) -> str:
        return self.entity_id
