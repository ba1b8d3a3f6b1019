"""ADREPORT: Report & Comment Models.

The only persisted state the engine owns. A report is unique per
(client_id, period_start, period_end); a comment is unique per report.
"""

import datetime as dt
import uuid
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel
from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field, UniqueConstraint

DEFAULT_COMMENT_AUTHOR = "Ad Operations Team"


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class ReportType(str, Enum):
    MONTHLY = "monthly"
    WEEKLY = "weekly"


class ReportStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


# ─────────────────────────────────────────────
# DATABASE MODELS
# ─────────────────────────────────────────────


class Report(SQLModel, table=True):
    """A periodic performance report for one client.

    ``published_at`` is written once, on the first draft → published
    transition, and is never cleared afterwards.
    """

    __tablename__ = "reports"
    __table_args__ = (
        UniqueConstraint(
            "client_id", "period_start", "period_end", name="uq_report_client_period"
        ),
    )

    id: str = Field(default_factory=_new_id, primary_key=True)
    client_id: str = Field(index=True)
    report_type: str = Field(description="monthly | weekly")
    period_start: dt.date
    period_end: dt.date
    year: int
    month: Optional[int] = None
    week: Optional[int] = None
    status: str = Field(default=ReportStatus.DRAFT.value, index=True)
    published_at: Optional[dt.datetime] = None
    summary_data: Optional[Dict[str, Any]] = Field(
        default=None, sa_column=Column(JSON), description="ReportSummaryData dump"
    )
    ai_insights: Optional[Dict[str, Any]] = Field(
        default=None, sa_column=Column(JSON), description="Opaque narrative payload"
    )
    ai_generated_at: Optional[dt.datetime] = None
    created_at: dt.datetime = Field(default_factory=_utcnow)
    updated_at: dt.datetime = Field(default_factory=_utcnow)
    created_by: Optional[str] = None


class ReportComment(SQLModel, table=True):
    """Operator commentary on a report; hidden rather than deleted."""

    __tablename__ = "report_comments"

    id: str = Field(default_factory=_new_id, primary_key=True)
    report_id: str = Field(foreign_key="reports.id", unique=True, index=True)
    content: str
    content_html: Optional[str] = None
    author_name: str = DEFAULT_COMMENT_AUTHOR
    author_role: Optional[str] = None
    is_visible: bool = True
    created_at: dt.datetime = Field(default_factory=_utcnow)
    updated_at: dt.datetime = Field(default_factory=_utcnow)


# ─────────────────────────────────────────────
# PYDANTIC SCHEMAS
# ─────────────────────────────────────────────


class ReportCreate(BaseModel):
    """Creation payload. Required fields are checked by the lifecycle so a
    missing one surfaces as an engine ValidationError."""

    client_id: Optional[str] = None
    report_type: Optional[ReportType] = None
    period_start: Optional[dt.date] = None
    period_end: Optional[dt.date] = None
    year: Optional[int] = None
    month: Optional[int] = None
    week: Optional[int] = None
    status: ReportStatus = ReportStatus.DRAFT
    summary_data: Optional[Dict[str, Any]] = None
    created_by: Optional[str] = None
