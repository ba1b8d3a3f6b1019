"""ADREPORT: Meta Insights Fetcher.

Serves social-channel records straight from the Meta Graph API. Each
fetcher is bound to one client and that client's ad account; requests for
any other client are refused rather than answered with this account's data.
"""

from datetime import date
from typing import List

from adreport.connectors.base import RawRecordFetcher
from adreport.connectors.meta.client import MetaAPIError, MetaClient
from adreport.connectors.meta.transformer import transform_insights
from adreport.core.errors import NotFound, SourceUnavailable
from adreport.core.metric_registry import Channel
from adreport.models.normalized_models import MetricRecord
from adreport.core.logging import get_logger

logger = get_logger("connectors.meta")


class MetaInsightsFetcher(RawRecordFetcher):
    def __init__(self, client: MetaClient, client_id: str):
        self.client = client
        self.client_id = client_id

    async def fetch(
        self,
        client_id: str,
        channel: Channel,
        date_start: date,
        date_end: date,
    ) -> List[MetricRecord]:
        if channel != Channel.SOCIAL:
            raise ValueError(f"Meta only serves the social channel, not {channel.value}")
        if client_id != self.client_id:
            logger.warning(
                f"No Meta ad account for client {client_id}",
                extra={"client_id": client_id, "channel": channel.value},
            )
            raise NotFound("meta ad account for client", client_id)
        try:
            rows = await self.client.fetch_daily_ad_insights(date_start, date_end)
        except MetaAPIError as e:
            logger.error(
                f"Meta insights fetch failed ({e.status_code}): {e}",
                extra={"client_id": client_id, "channel": channel.value},
            )
            raise SourceUnavailable(
                f"Meta API unavailable: {e}", channel=channel.value
            ) from e
        return transform_insights(rows)
