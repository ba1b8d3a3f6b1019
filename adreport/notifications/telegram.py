"""ADREPORT: Telegram Notification Sender.

Posts HTML-formatted messages through the Telegram Bot API.
"""

import html
from typing import Optional

import httpx

from adreport.config import settings
from adreport.core.currency import CurrencyConverter, round_half_up
from adreport.models.analysis_models import ReportSummaryData
from adreport.models.report_models import Report, ReportType
from adreport.notifications.base import NotificationSender
from adreport.core.logging import get_logger

logger = get_logger("notifications.telegram")

REPORT_TYPE_LABELS = {
    ReportType.MONTHLY.value: "Monthly",
    ReportType.WEEKLY.value: "Weekly",
}


class TelegramSender(NotificationSender):
    """Telegram Bot API sender (``sendMessage``, HTML parse mode)."""

    def __init__(
        self,
        bot_token: Optional[str] = None,
        api_base: Optional[str] = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ):
        self.bot_token = bot_token if bot_token is not None else settings.telegram_bot_token
        self.api_base = api_base or settings.telegram_api_base
        self._transport = transport
        self._timeout = timeout

    def is_available(self) -> bool:
        return bool(self.bot_token)

    async def send(self, channel_ref: str, text: str) -> bool:
        if not self.is_available():
            logger.warning("Telegram bot token not configured; message dropped")
            return False

        payload = {
            "chat_id": channel_ref,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        url = f"{self.api_base}/bot{self.bot_token}/sendMessage"
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.post(url, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Telegram request failed: {e}")
            return False

        if resp.status_code != 200:
            logger.error(
                f"Telegram rejected message: {resp.text[:200]}",
                extra={"status_code": resp.status_code},
            )
            return False
        return True


def build_publication_message(
    report: Report,
    summary: Optional[ReportSummaryData],
    base_url: Optional[str] = None,
    converter: Optional[CurrencyConverter] = None,
) -> str:
    """HTML announcement for a freshly published report."""
    base_url = (base_url or settings.report_base_url).rstrip("/")
    converter = converter or CurrencyConverter()
    label = REPORT_TYPE_LABELS.get(report.report_type, report.report_type)

    lines = [
        f"<b>📊 {label} report published</b>",
        "",
        f"<b>Client:</b> {html.escape(report.client_id)}",
        f"<b>Period:</b> {report.period_start} ~ {report.period_end}",
    ]

    if summary is not None:
        social = summary.social.totals
        local = summary.local_search.totals
        lines += [
            "",
            "<b>🔵 Meta</b>",
            f"• Impressions: {social.impressions:,}",
            f"• Clicks: {social.clicks:,}",
            f"• Leads: {social.leads:,}",
            f"• Spend: {html.escape(converter.format_spend(social.spend))}",
            f"• CTR: {social.ctr:.2f}%",
            "",
            "<b>🟢 Naver Place</b>",
            f"• Impressions: {local.impressions:,}",
            f"• Clicks: {local.clicks:,}",
            f"• Cost: ₩{int(round_half_up(local.spend)):,}",
            f"• Avg rank: {local.avg_rank:.1f}",
        ]

    lines += ["", f'<a href="{base_url}/reports/{report.id}">Open report</a>']
    return "\n".join(lines)
