"""ADREPORT: Engine Error Taxonomy.

Every failure the engine can surface is one of these types. The service
layer maps them to HTTP responses; the engine itself never swallows them.
"""

from typing import Optional


class ReportEngineError(Exception):
    """Base exception for engine failures."""


class SourceUnavailable(ReportEngineError):
    """Raised when a raw-record fetch fails (transport, auth, or query error)."""

    def __init__(self, message: str, channel: Optional[str] = None):
        self.channel = channel
        super().__init__(message)


class NotFound(ReportEngineError):
    """Raised when a referenced report, client, or comment does not exist."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class DuplicatePeriod(ReportEngineError):
    """Raised when a report already exists for the (client, period) key."""

    def __init__(self, client_id: str, period_start, period_end):
        self.client_id = client_id
        self.period_start = period_start
        self.period_end = period_end
        super().__init__(
            f"Report already exists for client {client_id} "
            f"({period_start} ~ {period_end})"
        )


class ValidationError(ReportEngineError):
    """Raised on missing creation fields or publishing without a summary."""

    def __init__(self, message: str, fields: Optional[list[str]] = None):
        self.fields = fields or []
        super().__init__(message)


class InvalidTransition(ReportEngineError):
    """Raised when a status change is not an allowed lifecycle transition."""

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot transition report from {current} to {requested}")
