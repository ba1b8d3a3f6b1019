"""ADREPORT: Abstract Notification Sender."""

from abc import ABC, abstractmethod


class NotificationSender(ABC):
    """Abstract base for outbound notifications.

    Delivery is best-effort: a failed send is logged and reported as False,
    never raised, so it cannot undo the report change that triggered it.
    """

    @abstractmethod
    async def send(self, channel_ref: str, text: str) -> bool:
        """Deliver ``text`` to ``channel_ref`` (e.g. a chat id).

        Returns:
            True when the message was accepted by the remote service.
        """
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this sender is configured and ready."""
        ...
