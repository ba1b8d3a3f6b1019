"""ADREPORT: Report Store.

Persistence boundary for reports and comments. The lifecycle owns the rules;
the store only reads and writes rows and translates constraint violations
into engine errors.

Period uniqueness is enforced by the ``uq_report_client_period`` constraint,
so two concurrent creates for the same key cannot both succeed. The comment
upsert is a single ``INSERT ... ON CONFLICT (report_id) DO UPDATE``.
"""

import datetime as dt
import uuid
from abc import ABC, abstractmethod
from typing import List, Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from adreport.core.errors import DuplicatePeriod
from adreport.models.report_models import Report, ReportComment
from adreport.core.logging import get_logger

logger = get_logger("reports.store")


class ReportStore(ABC):
    """Abstract report persistence."""

    @abstractmethod
    def create(self, report: Report) -> Report:
        """Insert a new report. Raises DuplicatePeriod on an occupied key."""

    @abstractmethod
    def get(self, report_id: str) -> Optional[Report]: ...

    @abstractmethod
    def update(self, report: Report) -> Report: ...

    @abstractmethod
    def list_reports(
        self,
        client_id: Optional[str] = None,
        status: Optional[str] = None,
        report_type: Optional[str] = None,
    ) -> List[Report]: ...

    @abstractmethod
    def upsert_comment(
        self,
        report_id: str,
        content: str,
        author_name: str,
        author_role: Optional[str],
        content_html: Optional[str],
        now: dt.datetime,
    ) -> ReportComment:
        """Create or replace the single comment of a report, making it visible."""

    @abstractmethod
    def get_comment(self, report_id: str) -> Optional[ReportComment]: ...

    @abstractmethod
    def set_comment_visibility(
        self, report_id: str, visible: bool, now: dt.datetime
    ) -> Optional[ReportComment]: ...


class SQLModelReportStore(ReportStore):
    """Report store over a SQLModel session (SQLite or PostgreSQL)."""

    def __init__(self, session: Session):
        self.session = session

    # ── Reports ──

    def create(self, report: Report) -> Report:
        self.session.add(report)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            logger.warning(
                f"Duplicate report period {report.period_start} ~ {report.period_end}",
                extra={"client_id": report.client_id},
            )
            raise DuplicatePeriod(
                report.client_id, report.period_start, report.period_end
            ) from e
        self.session.refresh(report)
        return report

    def get(self, report_id: str) -> Optional[Report]:
        return self.session.get(Report, report_id)

    def update(self, report: Report) -> Report:
        self.session.add(report)
        self.session.commit()
        self.session.refresh(report)
        return report

    def list_reports(
        self,
        client_id: Optional[str] = None,
        status: Optional[str] = None,
        report_type: Optional[str] = None,
    ) -> List[Report]:
        query = select(Report)
        if client_id:
            query = query.where(Report.client_id == client_id)
        if status:
            query = query.where(Report.status == status)
        if report_type:
            query = query.where(Report.report_type == report_type)
        query = query.order_by(Report.period_start.desc(), Report.created_at.desc())
        return list(self.session.exec(query).all())

    # ── Comments ──

    def _insert(self):
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert
        if dialect == "sqlite":
            return sqlite.insert
        raise NotImplementedError(f"Comment upsert not supported on {dialect}")

    def upsert_comment(
        self,
        report_id: str,
        content: str,
        author_name: str,
        author_role: Optional[str],
        content_html: Optional[str],
        now: dt.datetime,
    ) -> ReportComment:
        insert = self._insert()
        stmt = (
            insert(ReportComment)
            .values(
                id=str(uuid.uuid4()),
                report_id=report_id,
                content=content,
                content_html=content_html,
                author_name=author_name,
                author_role=author_role,
                is_visible=True,
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_update(
                index_elements=["report_id"],
                set_={
                    "content": content,
                    "content_html": content_html,
                    "author_name": author_name,
                    "author_role": author_role,
                    "is_visible": True,
                    "updated_at": now,
                },
            )
        )
        self.session.execute(stmt)
        self.session.commit()
        return self.get_comment(report_id)

    def get_comment(self, report_id: str) -> Optional[ReportComment]:
        return self.session.exec(
            select(ReportComment).where(ReportComment.report_id == report_id)
        ).first()

    def set_comment_visibility(
        self, report_id: str, visible: bool, now: dt.datetime
    ) -> Optional[ReportComment]:
        comment = self.get_comment(report_id)
        if comment is None:
            return None
        comment.is_visible = visible
        comment.updated_at = now
        self.session.add(comment)
        self.session.commit()
        self.session.refresh(comment)
        return comment
