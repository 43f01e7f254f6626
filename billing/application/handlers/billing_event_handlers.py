"""
Billing event handlers.

Handlers for paid and cancelled subscriptions. A product outside the
configured allow-list is acknowledged without touching the key store.
"""
import logging
from typing import Optional

from access_keys.domain.access_key import utcnow
from access_keys.domain.config import AccessKeyConfig
from access_keys.domain.services import Clock
from access_keys.ports.access_key_repository import AccessKeyRepository
from billing.application.dto.billing_dto import BillingEventOutcome, BillingEventResult
from billing.domain.billing_event import BillingEvent, BillingEventType
from billing.domain.services import ActivationReconciler, ActivationResult
from core.domain.exceptions import IncompleteBillingEventError
from core.metrics import (
    access_keys_activated_total,
    access_keys_cancelled_total,
    billing_events_total,
    notifications_total,
)
from notifications.domain.notification import AccessKeyNotification
from notifications.ports.notifier import Notifier

logger = logging.getLogger(__name__)


class BillingEventHandler:
    """Handler for normalized billing events."""

    def __init__(
        self,
        access_key_repository: AccessKeyRepository,
        notifier: Optional[Notifier],
        config: AccessKeyConfig,
        clock: Clock = utcnow,
    ):
        """Initialize handler with repository, notifier and config."""
        self.config = config
        self.notifier = notifier
        self.reconciler = ActivationReconciler(access_key_repository, config, clock)

    async def dispatch(self, event: BillingEvent) -> BillingEventResult:
        """
        Route an event to the handler for its type.

        Args:
            event: Normalized billing event

        Returns:
            BillingEventResult

        Raises:
            StoreUnavailableError: If the key store fails; the provider
                should redeliver the event
        """
        if event.event_type == BillingEventType.CHECKOUT_COMPLETED:
            result = await self.handle_checkout_completed(event)
        elif event.event_type == BillingEventType.INVOICE_PAID:
            result = await self.handle_invoice_paid(event)
        elif event.event_type == BillingEventType.SUBSCRIPTION_DELETED:
            result = await self.handle_subscription_deleted(event)
        else:
            result = self._ignored(event, "unhandled event type")
        billing_events_total.labels(
            event_type=str(event.event_type), outcome=result.outcome.value
        ).inc()
        return result

    async def handle_checkout_completed(self, event: BillingEvent) -> BillingEventResult:
        """Issue or renew a key for a completed checkout."""
        return await self._activate(event)

    async def handle_invoice_paid(self, event: BillingEvent) -> BillingEventResult:
        """Renew (or issue) a key for a paid recurring invoice."""
        return await self._activate(event)

    async def handle_subscription_deleted(self, event: BillingEvent) -> BillingEventResult:
        """Cancel the key of a customer whose subscription ended."""
        if not self.config.product_matches(event.product_ids):
            return self._ignored(event, "product not targeted")

        cancelled = await self.reconciler.deactivate(event.customer_ref)
        if cancelled is None:
            return self._ignored(event, "no access key for customer")

        access_keys_cancelled_total.inc()
        return BillingEventResult(
            outcome=BillingEventOutcome.PROCESSED,
            event_type=str(event.event_type),
            access_key=cancelled.access_key,
        )

    async def _activate(self, event: BillingEvent) -> BillingEventResult:
        if not self.config.product_matches(event.product_ids):
            return self._ignored(event, "product not targeted")

        try:
            activation = await self.reconciler.activate(event)
        except IncompleteBillingEventError as e:
            logger.warning("Billing event %s not activated: %s", event.event_id, e.message)
            return self._ignored(event, e.message)

        access_keys_activated_total.labels(
            kind="renewal" if activation.is_renewal else "new"
        ).inc()
        await self._notify(activation)
        return BillingEventResult(
            outcome=BillingEventOutcome.PROCESSED,
            event_type=str(event.event_type),
            access_key=activation.access_key,
            is_renewal=activation.is_renewal,
        )

    async def _notify(self, activation: ActivationResult) -> None:
        """Send the key to the purchaser. Failures never undo the activation."""
        if self.notifier is None:
            return
        notification = AccessKeyNotification(
            recipient_email=activation.record.email,
            access_key=activation.access_key,
            is_renewal=activation.is_renewal,
        )
        try:
            await self.notifier.notify(notification)
        except Exception as e:
            notifications_total.labels(outcome="failed").inc()
            logger.error(
                "Notification for %s... failed: %s",
                activation.access_key[:8],
                e,
                exc_info=True,
            )
            return
        notifications_total.labels(outcome="queued").inc()

    @staticmethod
    def _ignored(event: BillingEvent, reason: str) -> BillingEventResult:
        logger.info("Ignoring billing event %s (%s): %s", event.event_id, event.event_type, reason)
        return BillingEventResult(
            outcome=BillingEventOutcome.IGNORED,
            event_type=str(event.event_type),
            reason=reason,
        )
