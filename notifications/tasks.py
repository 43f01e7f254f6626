"""
Celery tasks for notification delivery.
"""
import logging

from django.conf import settings
from django.core.mail import send_mail

from AccessKeyService.celery import app
from notifications.domain.notification import AccessKeyNotification

logger = logging.getLogger(__name__)


@app.task(bind=True, max_retries=3)
def send_access_key_email_task(self, recipient_email: str, access_key: str, is_renewal: bool):
    """
    Celery task for access key email delivery.

    Args:
        recipient_email: Purchaser email
        access_key: Access key to deliver
        is_renewal: Whether the key was renewed rather than newly issued
    """
    notification = AccessKeyNotification(
        recipient_email=recipient_email,
        access_key=access_key,
        is_renewal=is_renewal,
    )
    try:
        send_mail(
            subject=notification.subject,
            message=notification.body,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[notification.recipient_email],
            html_message=notification.html_body,
        )
    except Exception as exc:
        logger.error(
            "Access key email to %s failed: %s", recipient_email, exc, exc_info=True
        )
        raise self.retry(exc=exc, countdown=2 ** self.request.retries)

    logger.info("Sent access key %s... to %s", access_key[:8], recipient_email)
