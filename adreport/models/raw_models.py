"""ADREPORT: Raw Channel Data Models (Immutable).

One row per source observation, as delivered by each channel's ingestion.
Never modify these rows; the engine only reads them.
"""

import datetime as dt
from typing import Optional
from sqlmodel import SQLModel, Field, UniqueConstraint

from adreport.core.metric_registry import Channel
from adreport.models.normalized_models import MetricRecord


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class SocialAdRow(SQLModel, table=True):
    """Per-day, per-ad Meta insight row."""

    __tablename__ = "meta_raw_data"
    __table_args__ = (
        UniqueConstraint(
            "client_id",
            "date",
            "ad_id",
            "platform",
            "device",
            name="uq_meta_raw_data_row",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    client_id: str = Field(index=True)
    date: dt.date = Field(index=True)
    ad_id: str = Field(description="Meta ad ID")
    ad_name: str = Field(default="")
    campaign_id: Optional[str] = Field(default=None)
    campaign_name: Optional[str] = Field(default=None)
    platform: str = Field(default="unknown", description="publisher_platform")
    device: str = Field(default="unknown", description="device_platform")
    impressions: int = 0
    clicks: int = 0
    leads: int = 0
    spend: float = 0.0
    video_views: int = 0
    avg_watch_time: float = 0.0
    currency: str = Field(default="USD")
    created_at: dt.datetime = Field(default_factory=_utcnow)

    def to_record(self) -> MetricRecord:
        return MetricRecord(
            date=self.date,
            channel=Channel.SOCIAL,
            entity_id=self.ad_id,
            entity_name=self.ad_name,
            campaign_id=self.campaign_id,
            campaign_name=self.campaign_name,
            impressions=self.impressions,
            clicks=self.clicks,
            spend=self.spend,
            leads=self.leads,
            video_views=self.video_views,
            avg_watch_time=self.avg_watch_time,
        )


class KeywordRow(SQLModel, table=True):
    """Per-day, per-keyword Naver Place row."""

    __tablename__ = "naver_place_data"
    __table_args__ = (
        UniqueConstraint("client_id", "date", "keyword", name="uq_naver_place_row"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    client_id: str = Field(index=True)
    date: dt.date = Field(index=True)
    keyword: str = Field(index=True)
    impressions: int = 0
    clicks: int = 0
    ctr: float = 0.0
    avg_cpc: float = 0.0
    total_cost: float = 0.0
    avg_rank: float = 0.0
    created_at: dt.datetime = Field(default_factory=_utcnow)

    def to_record(self) -> MetricRecord:
        return MetricRecord(
            date=self.date,
            channel=Channel.LOCAL_SEARCH,
            entity_id=self.keyword,
            entity_name=self.keyword,
            impressions=self.impressions,
            clicks=self.clicks,
            spend=self.total_cost,
            total_cost=self.total_cost,
            avg_cpc=self.avg_cpc,
            avg_rank=self.avg_rank,
        )
