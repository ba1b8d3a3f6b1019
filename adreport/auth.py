"""ADREPORT: Authorization Gate.

A single boolean admin check; there is no per-user access control.
"""

import hmac
from abc import ABC, abstractmethod
from typing import Optional

from adreport.config import settings


class AuthorizationGate(ABC):
    @abstractmethod
    def is_authorized(self, credentials: Optional[str]) -> bool:
        """Return True if ``credentials`` grant admin access."""
        ...


class AdminKeyGate(AuthorizationGate):
    """Compares a presented key with the configured admin key.

    With no admin key configured every request is refused.
    """

    def __init__(self, admin_key: Optional[str] = None):
        self.admin_key = admin_key if admin_key is not None else settings.admin_key

    def is_authorized(self, credentials: Optional[str]) -> bool:
        if not self.admin_key or not credentials:
            return False
        return hmac.compare_digest(
            credentials.encode("utf-8"), self.admin_key.encode("utf-8")
        )
