"""ADREPORT: Shared API Dependencies.

Collaborators are built per request here so tests can swap any of them
through ``app.dependency_overrides``.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlmodel import Session

from adreport.auth import AdminKeyGate, AuthorizationGate
from adreport.connectors.base import RawRecordFetcher
from adreport.connectors.database_fetcher import DatabaseRecordFetcher
from adreport.core.currency import CurrencyConverter
from adreport.core.errors import (
    DuplicatePeriod,
    InvalidTransition,
    NotFound,
    ReportEngineError,
    SourceUnavailable,
    ValidationError,
)
from adreport.database import get_session
from adreport.notifications.base import NotificationSender
from adreport.notifications.telegram import TelegramSender
from adreport.reports.lifecycle import ReportLifecycle
from adreport.reports.store import SQLModelReportStore

ERROR_STATUS = {
    NotFound: 404,
    DuplicatePeriod: 409,
    ValidationError: 400,
    InvalidTransition: 409,
    SourceUnavailable: 502,
}


def http_error(error: ReportEngineError) -> HTTPException:
    """Map an engine error to the HTTP response it should produce."""
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))


# ── Collaborators ──


def get_fetcher(session: Session = Depends(get_session)) -> RawRecordFetcher:
    return DatabaseRecordFetcher(session)


def get_converter() -> CurrencyConverter:
    return CurrencyConverter()


def get_lifecycle(session: Session = Depends(get_session)) -> ReportLifecycle:
    return ReportLifecycle(SQLModelReportStore(session))


def get_gate() -> AuthorizationGate:
    return AdminKeyGate()


def get_notifier() -> NotificationSender:
    return TelegramSender()


# ── Access ──


def is_admin(
    x_admin_key: Optional[str] = Header(None),
    gate: AuthorizationGate = Depends(get_gate),
) -> bool:
    return gate.is_authorized(x_admin_key)


def require_admin(admin: bool = Depends(is_admin)) -> None:
    if not admin:
        raise HTTPException(status_code=401, detail="Admin key required")
