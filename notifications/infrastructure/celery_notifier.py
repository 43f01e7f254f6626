"""
Celery implementation of Notifier port.

Enqueues the email task so that a slow mail server never delays the
billing webhook response.
"""
import logging

from asgiref.sync import sync_to_async

from notifications.domain.notification import AccessKeyNotification
from notifications.ports.notifier import Notifier

logger = logging.getLogger(__name__)


class CeleryEmailNotifier(Notifier):
    """Notifier that hands delivery to a Celery worker."""

    async def notify(self, notification: AccessKeyNotification) -> None:
        from notifications.tasks import send_access_key_email_task

        await sync_to_async(send_access_key_email_task.delay)(
            notification.recipient_email,
            notification.access_key,
            notification.is_renewal,
        )
        logger.debug("Queued access key email for %s", notification.recipient_email)
