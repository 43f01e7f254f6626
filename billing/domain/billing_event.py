"""
Billing event value objects.

A billing event is the provider-neutral form of a payment webhook,
already authenticated and typed by the infrastructure layer.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class BillingEventType(Enum):
    """Billing events the service reacts to."""

    CHECKOUT_COMPLETED = "checkout_completed"
    INVOICE_PAID = "invoice_paid"
    SUBSCRIPTION_DELETED = "subscription_deleted"
    UNRECOGNIZED = "unrecognized"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class BillingEvent:
    """
    Normalized billing event.

    renewal_hint carries an access key the purchaser supplied at checkout,
    when the provider passes one through.
    """

    event_type: BillingEventType
    customer_ref: Optional[str] = None
    email: Optional[str] = None
    product_ids: Tuple[str, ...] = ()
    renewal_hint: Optional[str] = None
    event_id: Optional[str] = None
