"""
Billing domain services.

The activation reconciler turns a paid billing event into exactly one
active access key: it renews an existing record when it can find one
and issues a new key otherwise.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from access_keys.domain.access_key import AccessKey, utcnow
from access_keys.domain.config import AccessKeyConfig
from access_keys.domain.expiry import add_months
from access_keys.domain.services import Clock
from access_keys.ports.access_key_repository import AccessKeyRepository
from billing.domain.billing_event import BillingEvent
from core.domain.exceptions import IncompleteBillingEventError
from core.domain.value_objects import Email, RenewalIdentityKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActivationResult:
    """Outcome of reconciling a paid billing event."""

    record: AccessKey
    is_renewal: bool

    @property
    def access_key(self) -> str:
        return self.record.access_key

    @property
    def is_new(self) -> bool:
        return not self.is_renewal


class ActivationReconciler:
    """Domain service for create-or-renew of access keys."""

    def __init__(
        self,
        repository: AccessKeyRepository,
        config: AccessKeyConfig,
        clock: Clock = utcnow,
    ):
        self.repository = repository
        self.config = config
        self.clock = clock

    def subscription_window(self, now: datetime) -> Tuple[datetime, datetime]:
        """Window starting now and lasting the configured number of months."""
        return now, add_months(now, self.config.subscription_period_months)

    async def activate(self, event: BillingEvent) -> ActivationResult:
        """
        Activate or renew the key a paid event refers to.

        Lookup order: the renewal hint, then the configured identity
        (customer ref or email). Renewal keeps the key string, so the
        purchaser's clients keep working. Creation is conditional on the
        identity, so concurrent first purchases end up sharing one key.

        Args:
            event: Normalized billing event

        Returns:
            ActivationResult with the stored record

        Raises:
            IncompleteBillingEventError: If a new key is needed but the event
                carries no email to deliver it to
            StoreUnavailableError: If the key store fails
        """
        now = self.clock()
        sub_from, sub_to = self.subscription_window(now)

        def renewal(current: AccessKey) -> AccessKey:
            return current.renew(sub_from, sub_to, external_customer_ref=event.customer_ref)

        existing = await self._find_existing(event)
        if existing is not None:
            renewed = await self.repository.atomic_update(existing.access_key, renewal)
            if renewed is not None:
                logger.info(
                    "Renewed access key %s... until %s", renewed.access_key[:8], sub_to.isoformat()
                )
                return ActivationResult(record=renewed, is_renewal=True)

        if not event.email:
            raise IncompleteBillingEventError("Cannot issue an access key without an email")
        try:
            email = Email(event.email.strip())
        except ValueError as e:
            raise IncompleteBillingEventError(str(e)) from e

        record = AccessKey.create(
            email=str(email),
            sub_from=sub_from,
            sub_to=sub_to,
            external_customer_ref=event.customer_ref,
        )
        saved, created = await self.repository.create_if_absent(
            record, self.config.renewal_identity_key
        )
        if created:
            logger.info(
                "Issued access key %s... until %s", saved.access_key[:8], sub_to.isoformat()
            )
            return ActivationResult(record=saved, is_renewal=False)

        # A concurrent event for the same customer created the key first
        renewed = await self.repository.atomic_update(saved.access_key, renewal)
        logger.info(
            "Renewed concurrently issued key %s... until %s",
            renewed.access_key[:8],
            sub_to.isoformat(),
        )
        return ActivationResult(record=renewed, is_renewal=True)

    async def deactivate(self, customer_ref: Optional[str]) -> Optional[AccessKey]:
        """
        Cancel the key held by a billing customer.

        Args:
            customer_ref: Billing provider customer id

        Returns:
            Cancelled AccessKey entity, or None if the customer holds no key
        """
        if not customer_ref:
            return None
        record = await self.repository.get_by_customer_ref(customer_ref)
        if record is None:
            return None
        cancelled = await self.repository.atomic_update(
            record.access_key, lambda current: current.cancel()
        )
        if cancelled is not None:
            logger.info("Cancelled access key %s...", cancelled.access_key[:8])
        return cancelled

    async def _find_existing(self, event: BillingEvent) -> Optional[AccessKey]:
        if event.renewal_hint:
            record = await self.repository.get_by_access_key(event.renewal_hint)
            if record is not None:
                return record
            logger.info("Renewal hint %s... matches no key", event.renewal_hint[:8])

        if self.config.renewal_identity_key == RenewalIdentityKey.CUSTOMER_REF:
            if event.customer_ref:
                return await self.repository.get_by_customer_ref(event.customer_ref)
            return None
        if event.email:
            return await self.repository.get_by_email(event.email)
        return None
