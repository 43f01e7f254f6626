"""
Notifier port.

Defines the interface for delivering access key notifications.
"""
from abc import ABC, abstractmethod

from notifications.domain.notification import AccessKeyNotification


class Notifier(ABC):
    """Port for access key notification delivery."""

    @abstractmethod
    async def notify(self, notification: AccessKeyNotification) -> None:
        """
        Deliver (or enqueue) a notification.

        Args:
            notification: Notification to deliver

        Raises:
            Exception: Any delivery failure; callers treat it as non-fatal
        """
        pass
