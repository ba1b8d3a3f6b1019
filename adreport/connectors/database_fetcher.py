"""ADREPORT: Database Record Fetcher.

Reads raw channel rows from the ingestion tables and hands them to the
engine as ``MetricRecord``s.
"""

from datetime import date
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from adreport.connectors.base import RawRecordFetcher
from adreport.core.errors import SourceUnavailable
from adreport.core.metric_registry import Channel
from adreport.models.normalized_models import MetricRecord
from adreport.models.raw_models import KeywordRow, SocialAdRow
from adreport.core.logging import get_logger

logger = get_logger("connectors.database")


class DatabaseRecordFetcher(RawRecordFetcher):
    """Fetches records from ``meta_raw_data`` and ``naver_place_data``."""

    def __init__(self, session: Session):
        self.session = session

    async def fetch(
        self,
        client_id: str,
        channel: Channel,
        date_start: date,
        date_end: date,
    ) -> List[MetricRecord]:
        table = SocialAdRow if channel == Channel.SOCIAL else KeywordRow
        try:
            rows = self.session.exec(
                select(table)
                .where(
                    table.client_id == client_id,
                    table.date >= date_start,
                    table.date <= date_end,
                )
                .order_by(table.date, table.id)
            ).all()
        except SQLAlchemyError as e:
            logger.error(
                f"Raw data query failed: {e}",
                extra={"client_id": client_id, "channel": channel.value},
            )
            raise SourceUnavailable(
                f"Could not read {channel.value} data for client {client_id}",
                channel=channel.value,
            ) from e

        records = [row.to_record() for row in rows]
        logger.info(
            f"Fetched {len(records)} {channel.value} records ({date_start} ~ {date_end})",
            extra={"client_id": client_id, "channel": channel.value},
        )
        return records
