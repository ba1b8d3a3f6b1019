"""ADREPORT: Raw Record Source Interface.

Any source of per-day metric records (database, ad platform API, test fake)
implements this. The pipeline only ever talks to a ``RawRecordFetcher``.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import List

from adreport.core.metric_registry import Channel
from adreport.models.normalized_models import MetricRecord


class RawRecordFetcher(ABC):
    """Abstract source of raw metric records."""

    @abstractmethod
    async def fetch(
        self,
        client_id: str,
        channel: Channel,
        date_start: date,
        date_end: date,
    ) -> List[MetricRecord]:
        """Return every record of ``channel`` for the client in the inclusive range.

        Raises:
            SourceUnavailable: the source could not be read.
        """
        ...
