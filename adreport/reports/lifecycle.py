"""ADREPORT: Report Lifecycle.

Status state machine for periodic reports:

    draft ──► published ──► archived
      └──────────────────────►┘

Same-state writes are accepted and change nothing. ``published_at`` is set
on the first draft → published transition and never cleared, so archiving
a published report keeps its publication time. Publishing needs a summary.
"""

import datetime as dt
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from adreport.core.errors import InvalidTransition, NotFound, ValidationError
from adreport.models.analysis_models import ReportSummaryData
from adreport.models.report_models import (
    DEFAULT_COMMENT_AUTHOR,
    Report,
    ReportComment,
    ReportCreate,
    ReportStatus,
    ReportType,
)
from adreport.reports.store import ReportStore
from adreport.core.logging import get_logger

logger = get_logger("reports.lifecycle")

ALLOWED_TRANSITIONS: Dict[ReportStatus, set[ReportStatus]] = {
    ReportStatus.DRAFT: {
        ReportStatus.DRAFT,
        ReportStatus.PUBLISHED,
        ReportStatus.ARCHIVED,
    },
    ReportStatus.PUBLISHED: {ReportStatus.PUBLISHED, ReportStatus.ARCHIVED},
    ReportStatus.ARCHIVED: {ReportStatus.ARCHIVED},
}

REQUIRED_FIELDS = ["client_id", "report_type", "period_start", "period_end", "year"]
INITIAL_STATUSES = {ReportStatus.DRAFT, ReportStatus.PUBLISHED}


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def validate_summary(
    summary: Union[ReportSummaryData, Dict[str, Any]],
) -> ReportSummaryData:
    """Coerce a summary payload into the closed v1.0 schema."""
    if isinstance(summary, ReportSummaryData):
        return summary
    try:
        return ReportSummaryData.model_validate(summary)
    except PydanticValidationError as e:
        fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise ValidationError(f"Invalid summary_data: {e.error_count()} errors", fields) from e


class ReportLifecycle:
    """Creates reports and moves them through their states."""

    def __init__(
        self,
        store: ReportStore,
        clock: Optional[Callable[[], dt.datetime]] = None,
    ):
        self.store = store
        self.clock = clock or _utcnow

    # ── Reports ──

    def create_report(self, payload: ReportCreate) -> Report:
        missing = [f for f in REQUIRED_FIELDS if getattr(payload, f) in (None, "")]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}", fields=missing
            )
        if payload.period_end < payload.period_start:
            raise ValidationError(
                f"period_end {payload.period_end} is before period_start {payload.period_start}",
                fields=["period_start", "period_end"],
            )

        if payload.status not in INITIAL_STATUSES:
            raise ValidationError(
                f"A report cannot be created as {payload.status.value}", fields=["status"]
            )

        summary = None
        if payload.summary_data is not None:
            summary = validate_summary(payload.summary_data).model_dump(mode="json")
        if payload.status == ReportStatus.PUBLISHED and summary is None:
            raise ValidationError(
                "A published report needs summary_data", fields=["summary_data"]
            )

        now = self.clock()
        report = Report(
            client_id=payload.client_id,
            report_type=ReportType(payload.report_type).value,
            period_start=payload.period_start,
            period_end=payload.period_end,
            year=payload.year,
            month=payload.month,
            week=payload.week,
            status=payload.status.value,
            published_at=now if payload.status == ReportStatus.PUBLISHED else None,
            summary_data=summary,
            created_at=now,
            updated_at=now,
            created_by=payload.created_by,
        )
        report = self.store.create(report)
        logger.info(
            f"Created {report.report_type} report ({report.status})",
            extra={"client_id": report.client_id, "report_id": report.id},
        )
        return report

    def get_report(self, report_id: str) -> Report:
        report = self.store.get(report_id)
        if report is None:
            raise NotFound("report", report_id)
        return report

    def list_reports(
        self,
        client_id: Optional[str] = None,
        status: Optional[ReportStatus] = None,
        report_type: Optional[ReportType] = None,
    ) -> List[Report]:
        return self.store.list_reports(
            client_id=client_id,
            status=status.value if status else None,
            report_type=report_type.value if report_type else None,
        )

    def check_transition(
        self, report: Report, status: ReportStatus, has_summary: bool
    ) -> None:
        """Raise if ``report`` may not move to ``status``. Writes nothing."""
        current = ReportStatus(report.status)
        if status not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransition(current.value, status.value)
        if status == ReportStatus.PUBLISHED and status != current and not has_summary:
            raise ValidationError(
                "Cannot publish a report without summary_data",
                fields=["summary_data"],
            )

    def transition(self, report_id: str, status: ReportStatus) -> Report:
        report = self.get_report(report_id)
        current = ReportStatus(report.status)
        self.check_transition(report, status, bool(report.summary_data))
        if status == current:
            return report

        now = self.clock()
        if status == ReportStatus.PUBLISHED and report.published_at is None:
            report.published_at = now

        report.status = status.value
        report.updated_at = now
        report = self.store.update(report)
        logger.info(
            f"Report {current.value} → {status.value}",
            extra={"client_id": report.client_id, "report_id": report.id},
        )
        return report

    def publish(self, report_id: str) -> Report:
        return self.transition(report_id, ReportStatus.PUBLISHED)

    def archive(self, report_id: str) -> Report:
        return self.transition(report_id, ReportStatus.ARCHIVED)

    def attach_summary(
        self,
        report_id: str,
        summary: Union[ReportSummaryData, Dict[str, Any]],
    ) -> Report:
        """Replace the report's summary snapshot."""
        report = self.get_report(report_id)
        report.summary_data = validate_summary(summary).model_dump(mode="json")
        report.updated_at = self.clock()
        return self.store.update(report)

    def attach_insights(self, report_id: str, insights: Dict[str, Any]) -> Report:
        """Store an opaque narrative payload; its shape is not inspected."""
        report = self.get_report(report_id)
        now = self.clock()
        report.ai_insights = insights
        report.ai_generated_at = now
        report.updated_at = now
        return self.store.update(report)

    def update_report(
        self,
        report_id: str,
        status: Optional[ReportStatus] = None,
        summary: Optional[Union[ReportSummaryData, Dict[str, Any]]] = None,
        insights: Optional[Dict[str, Any]] = None,
    ) -> Report:
        """Apply summary, insights and status in one write.

        Every part is checked before the report is touched, so a rejected
        status change leaves the summary and insights as they were.
        """
        report = self.get_report(report_id)
        current = ReportStatus(report.status)
        summary_data = (
            validate_summary(summary).model_dump(mode="json")
            if summary is not None
            else None
        )
        target = status or current
        self.check_transition(
            report, target, bool(summary_data or report.summary_data)
        )

        now = self.clock()
        if summary_data is not None:
            report.summary_data = summary_data
        if insights is not None:
            report.ai_insights = insights
            report.ai_generated_at = now
        if target != current:
            if target == ReportStatus.PUBLISHED and report.published_at is None:
                report.published_at = now
            report.status = target.value
        report.updated_at = now
        report = self.store.update(report)
        logger.info(
            f"Report updated ({current.value} → {report.status})",
            extra={"client_id": report.client_id, "report_id": report.id},
        )
        return report

    # ── Comments ──

    def upsert_comment(
        self,
        report_id: str,
        content: str,
        author_name: Optional[str] = None,
        author_role: Optional[str] = None,
        content_html: Optional[str] = None,
    ) -> ReportComment:
        self.get_report(report_id)
        if not content or not content.strip():
            raise ValidationError("Comment content is empty", fields=["content"])
        comment = self.store.upsert_comment(
            report_id=report_id,
            content=content,
            author_name=author_name or DEFAULT_COMMENT_AUTHOR,
            author_role=author_role,
            content_html=content_html,
            now=self.clock(),
        )
        logger.info("Comment saved", extra={"report_id": report_id})
        return comment

    def hide_comment(self, report_id: str) -> ReportComment:
        comment = self.store.set_comment_visibility(
            report_id, visible=False, now=self.clock()
        )
        if comment is None:
            raise NotFound("comment", report_id)
        return comment

    def get_comment(
        self, report_id: str, include_hidden: bool = False
    ) -> Optional[ReportComment]:
        comment = self.store.get_comment(report_id)
        if comment is None or (not comment.is_visible and not include_hidden):
            return None
        return comment
