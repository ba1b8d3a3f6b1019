"""ADREPORT: Report API Routes.

Admin endpoints manage reports; the public endpoint serves published ones.
Publishing triggers a best-effort Telegram announcement after the status
change has been committed.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from adreport.analyzer.pipeline import build_report_summary
from adreport.api.dependencies import (
    get_converter,
    get_fetcher,
    get_lifecycle,
    get_notifier,
    http_error,
    is_admin,
    require_admin,
)
from adreport.config import settings
from adreport.connectors.base import RawRecordFetcher
from adreport.core.currency import CurrencyConverter
from adreport.core.errors import NotFound, ReportEngineError
from adreport.models.analysis_models import ReportSummaryData
from adreport.models.report_models import (
    Report,
    ReportCreate,
    ReportStatus,
    ReportType,
)
from adreport.notifications.base import NotificationSender
from adreport.notifications.telegram import build_publication_message
from adreport.reports.lifecycle import ReportLifecycle
from adreport.core.logging import get_logger

logger = get_logger("api.reports")

admin_router = APIRouter(
    prefix="/admin/reports",
    tags=["Admin Reports"],
    dependencies=[Depends(require_admin)],
)
router = APIRouter(prefix="/reports", tags=["Reports"])


# ── Request Models ──


class ReportUpdate(BaseModel):
    """Body for PATCH /admin/reports/{id}. All fields land in one write, so
    one request can attach a summary and publish it."""

    status: Optional[ReportStatus] = None
    summary_data: Optional[Dict[str, Any]] = None
    ai_insights: Optional[Dict[str, Any]] = None


class CommentRequest(BaseModel):
    content: str
    content_html: Optional[str] = None
    author_name: Optional[str] = None
    author_role: Optional[str] = None


# ── Helpers ──


async def _announce(report: Report, notifier: NotificationSender) -> bool:
    chat_id = settings.telegram_chat_id
    if not chat_id or not notifier.is_available():
        logger.info("Publication notice skipped: Telegram not configured")
        return False
    summary = (
        ReportSummaryData.model_validate(report.summary_data)
        if report.summary_data
        else None
    )
    sent = await notifier.send(chat_id, build_publication_message(report, summary))
    if not sent:
        logger.warning(
            "Publication notice not delivered",
            extra={"report_id": report.id, "client_id": report.client_id},
        )
    return sent


# ── Admin Endpoints ──


@admin_router.get("")
async def list_reports(
    client_id: Optional[str] = None,
    status: Optional[ReportStatus] = None,
    report_type: Optional[ReportType] = None,
    lifecycle: ReportLifecycle = Depends(get_lifecycle),
):
    reports = lifecycle.list_reports(
        client_id=client_id, status=status, report_type=report_type
    )
    return {"count": len(reports), "reports": reports}


@admin_router.post("", status_code=201)
async def create_report(
    payload: ReportCreate,
    lifecycle: ReportLifecycle = Depends(get_lifecycle),
    notifier: NotificationSender = Depends(get_notifier),
):
    try:
        report = lifecycle.create_report(payload)
    except ReportEngineError as e:
        logger.warning(
            f"Report creation rejected: {e}",
            extra={"client_id": payload.client_id, "endpoint": "/admin/reports"},
        )
        raise http_error(e)

    if report.status == ReportStatus.PUBLISHED.value:
        await _announce(report, notifier)
    return report


@admin_router.patch("/{report_id}")
async def update_report(
    report_id: str,
    payload: ReportUpdate,
    lifecycle: ReportLifecycle = Depends(get_lifecycle),
    notifier: NotificationSender = Depends(get_notifier),
):
    try:
        report = lifecycle.get_report(report_id)
        was_published = report.status == ReportStatus.PUBLISHED.value
        report = lifecycle.update_report(
            report_id,
            status=payload.status,
            summary=payload.summary_data,
            insights=payload.ai_insights,
        )
    except ReportEngineError as e:
        logger.warning(
            f"Report update rejected: {e}",
            extra={"report_id": report_id, "endpoint": "/admin/reports"},
        )
        raise http_error(e)

    if not was_published and report.status == ReportStatus.PUBLISHED.value:
        await _announce(report, notifier)
    return report


@admin_router.post("/{report_id}/build-summary")
async def build_summary(
    report_id: str,
    lifecycle: ReportLifecycle = Depends(get_lifecycle),
    fetcher: RawRecordFetcher = Depends(get_fetcher),
    converter: CurrencyConverter = Depends(get_converter),
):
    """Compute the summary for the report's own period and attach it."""
    try:
        report = lifecycle.get_report(report_id)
        summary = await build_report_summary(
            fetcher,
            report.client_id,
            report.period_start,
            report.period_end,
            ReportType(report.report_type),
            converter=converter,
        )
        return lifecycle.attach_summary(report_id, summary)
    except ReportEngineError as e:
        logger.error(
            f"Summary build failed: {e}",
            extra={"report_id": report_id, "endpoint": "/build-summary"},
        )
        raise http_error(e)


# ── Public Endpoints ──


@router.get("/{report_id}")
async def get_report(
    report_id: str,
    admin: bool = Depends(is_admin),
    lifecycle: ReportLifecycle = Depends(get_lifecycle),
):
    """A published report with its visible comment. Admins can read drafts."""
    try:
        report = lifecycle.get_report(report_id)
        if report.status != ReportStatus.PUBLISHED.value and not admin:
            raise NotFound("report", report_id)
    except ReportEngineError as e:
        raise http_error(e)

    return {"report": report, "comment": lifecycle.get_comment(report_id)}


@router.post("/{report_id}/comment", dependencies=[Depends(require_admin)])
async def upsert_comment(
    report_id: str,
    payload: CommentRequest,
    lifecycle: ReportLifecycle = Depends(get_lifecycle),
):
    try:
        return lifecycle.upsert_comment(
            report_id,
            payload.content,
            author_name=payload.author_name,
            author_role=payload.author_role,
            content_html=payload.content_html,
        )
    except ReportEngineError as e:
        raise http_error(e)


@router.delete("/{report_id}/comment", dependencies=[Depends(require_admin)])
async def hide_comment(
    report_id: str,
    lifecycle: ReportLifecycle = Depends(get_lifecycle),
):
    try:
        lifecycle.hide_comment(report_id)
    except ReportEngineError as e:
        raise http_error(e)
    return {"status": "hidden", "report_id": report_id}
