"""ADREPORT: Meta Graph API Client.

Handles authentication, retry logic, rate limiting, and pagination for the
ad-level daily insights the social channel is built from.
"""

import asyncio
import json
from datetime import date
from typing import Any, Dict, List, Optional

import httpx

from adreport.config import settings
from adreport.core.logging import get_logger

logger = get_logger("meta.client")

MAX_RETRIES = 3
RETRY_BASE_DELAY = 2  # seconds

INSIGHT_FIELDS = [
    "ad_id",
    "ad_name",
    "campaign_id",
    "campaign_name",
    "impressions",
    "inline_link_clicks",
    "spend",
    "actions",
    "video_avg_time_watched_actions",
    "account_currency",
]
INSIGHT_BREAKDOWNS = ["publisher_platform", "device_platform"]
PAGE_SIZE = 500


class MetaAPIError(Exception):
    """Raised when Meta API returns an error."""

    def __init__(self, message: str, status_code: int = 0, error_code: int = 0):
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


class MetaClient:
    """Async HTTP client for the Meta Marketing API."""

    def __init__(
        self,
        access_token: str | None = None,
        ad_account_id: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_base_delay: float = RETRY_BASE_DELAY,
    ):
        self.access_token = access_token or settings.meta_access_token
        self.ad_account_id = ad_account_id or settings.meta_ad_account_id
        self.base_url = f"{settings.meta_base_url}/{settings.meta_api_version}"
        self.retry_base_delay = retry_base_delay
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=30.0, transport=self._transport)
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _backoff(self, attempt: int) -> float:
        wait = self.retry_base_delay * (2 ** (attempt - 1))
        await asyncio.sleep(wait)
        return wait

    # ── Core Request Method ──

    async def _request(
        self,
        method: str,
        url: str,
        params: Dict[str, Any] | None = None,
    ) -> Dict[str, Any]:
        """Make a request with retry + rate-limit handling."""
        # Merge into the URL so a paging.next cursor survives
        request_url = httpx.URL(url).copy_merge_params(
            {**(params or {}), "access_token": self.access_token}
        )

        client = await self._get_client()

        for attempt in range(1, MAX_RETRIES + 1):
            try:
                resp = await client.request(method, request_url)

                # Rate limited
                if resp.status_code == 429 and attempt < MAX_RETRIES:
                    wait = await self._backoff(attempt)
                    logger.warning(
                        f"Rate limited (429). Retried after {wait}s (attempt {attempt}/{MAX_RETRIES})"
                    )
                    continue

                resp.raise_for_status()
                return resp.json()

            except httpx.HTTPStatusError as e:
                body = (
                    e.response.json()
                    if e.response.headers.get("content-type", "").startswith(
                        "application/json"
                    )
                    else {}
                )
                error_msg = body.get("error", {}).get("message", str(e))
                error_code = body.get("error", {}).get("code", 0)

                if attempt < MAX_RETRIES and e.response.status_code >= 500:
                    wait = await self._backoff(attempt)
                    logger.warning(
                        f"Server error {e.response.status_code}. Retried after {wait}s"
                    )
                    continue

                raise MetaAPIError(error_msg, e.response.status_code, error_code) from e

            except httpx.RequestError as e:
                if attempt < MAX_RETRIES:
                    wait = await self._backoff(attempt)
                    logger.warning(f"Request error: {e}. Retried after {wait}s")
                    continue
                raise MetaAPIError(
                    f"Connection failed after {MAX_RETRIES} retries: {e}"
                ) from e

        raise MetaAPIError("Max retries exhausted")

    # ── Pagination ──

    async def _paginated_get(
        self,
        url: str,
        params: Dict[str, Any] | None = None,
        max_pages: int = 50,
    ) -> List[Dict[str, Any]]:
        """Fetch all pages of a paginated endpoint by following ``paging.next``."""
        all_data: List[Dict[str, Any]] = []
        current_url = url

        for page in range(max_pages):
            result = await self._request(
                "GET", current_url, params if page == 0 else None
            )
            all_data.extend(result.get("data", []))

            next_url = result.get("paging", {}).get("next")
            if not next_url:
                break
            current_url = next_url

        logger.info(f"Fetched {len(all_data)} records from {url}")
        return all_data

    # ── Insights ──

    async def fetch_daily_ad_insights(
        self, date_start: date, date_end: date
    ) -> List[Dict[str, Any]]:
        """Ad-level insight rows, one per ad per day per platform/device."""
        url = f"{self.base_url}/{self.ad_account_id}/insights"
        params = {
            "level": "ad",
            "time_range": json.dumps(
                {"since": date_start.isoformat(), "until": date_end.isoformat()}
            ),
            "fields": ",".join(INSIGHT_FIELDS),
            "breakdowns": ",".join(INSIGHT_BREAKDOWNS),
            "time_increment": "1",
            "limit": str(PAGE_SIZE),
        }
        return await self._paginated_get(url, params)
