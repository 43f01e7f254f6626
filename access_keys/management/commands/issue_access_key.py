"""
Django management command to issue or renew an access key by hand.

Runs the same create-or-renew reconciliation as a paid checkout, for
support cases where the billing webhook never arrived.
"""

import asyncio
import dataclasses
import logging

from django.core.management.base import BaseCommand, CommandError

from access_keys.application.config import get_access_key_config
from access_keys.infrastructure.repositories.factory import build_access_key_repository
from billing.domain.billing_event import BillingEvent, BillingEventType
from billing.domain.services import ActivationReconciler, ActivationResult
from core.domain.exceptions import DomainException
from notifications.domain.notification import AccessKeyNotification
from notifications.infrastructure.celery_notifier import CeleryEmailNotifier

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Command to issue an access key."""

    help = "Issue (or renew) an access key for a customer"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--email",
            type=str,
            required=True,
            help="Purchaser email",
        )
        parser.add_argument(
            "--customer-ref",
            type=str,
            default=None,
            help="Billing provider customer id",
        )
        parser.add_argument(
            "--months",
            type=int,
            default=None,
            help="Subscription length in months (default: SUBSCRIPTION_PERIOD_MONTHS)",
        )
        parser.add_argument(
            "--notify",
            action="store_true",
            help="Email the key to the purchaser",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        config = get_access_key_config()
        if options["months"] is not None:
            try:
                config = dataclasses.replace(config, subscription_period_months=options["months"])
            except ValueError as e:
                raise CommandError(str(e)) from e

        event = BillingEvent(
            event_type=BillingEventType.CHECKOUT_COMPLETED,
            customer_ref=options["customer_ref"],
            email=options["email"],
        )
        reconciler = ActivationReconciler(build_access_key_repository(config), config)

        try:
            result = asyncio.run(self.issue(reconciler, event, options["notify"]))
        except DomainException as e:
            raise CommandError(f"{e.code}: {e.message}") from e

        record = result.record
        verb = "Renewed" if result.is_renewal else "Issued"
        # pylint: disable=no-member
        self.stdout.write(self.style.SUCCESS(f"{verb} access key for {record.email}"))
        self.stdout.write(f"   Key: {record.access_key}")
        self.stdout.write(f"   Valid until: {record.sub_to.isoformat()}")

    async def issue(
        self, reconciler: ActivationReconciler, event: BillingEvent, notify: bool
    ) -> ActivationResult:
        """Reconcile the event and optionally queue the email."""
        result = await reconciler.activate(event)
        if notify:
            await CeleryEmailNotifier().notify(
                AccessKeyNotification(
                    recipient_email=result.record.email,
                    access_key=result.access_key,
                    is_renewal=result.is_renewal,
                )
            )
            logger.info("Queued access key email for %s", result.record.email)
        return result
