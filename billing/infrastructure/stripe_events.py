"""
Stripe webhook payload normalization.

Maps verified Stripe event payloads to provider-neutral BillingEvents.
"""
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from billing.domain.billing_event import BillingEvent, BillingEventType

logger = logging.getLogger(__name__)

STRIPE_EVENT_TYPES: Dict[str, BillingEventType] = {
    "checkout.session.completed": BillingEventType.CHECKOUT_COMPLETED,
    "invoice.paid": BillingEventType.INVOICE_PAID,
    "invoice.payment_succeeded": BillingEventType.INVOICE_PAID,
    "customer.subscription.deleted": BillingEventType.SUBSCRIPTION_DELETED,
}


def _get(mapping: Optional[Mapping], *path: str) -> Any:
    """Follow a key path through nested mappings, returning None on a gap."""
    current: Any = mapping
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _customer_id(obj: Mapping) -> Optional[str]:
    # Unexpanded customers are ids, expanded ones are objects.
    customer = obj.get("customer")
    if isinstance(customer, Mapping):
        return customer.get("id")
    return customer


def _line_products(lines: Iterable[Mapping]) -> List[str]:
    products = []
    for line in lines or ():
        product = _get(line, "price", "product") or _get(
            line, "pricing", "price_details", "product"
        )
        if isinstance(product, Mapping):
            product = product.get("id")
        if product:
            products.append(product)
    return products


def _checkout_event(obj: Mapping, event_id: str) -> BillingEvent:
    products = _line_products(_get(obj, "line_items", "data"))
    metadata_product = _get(obj, "metadata", "product_id")
    if metadata_product:
        products.insert(0, metadata_product)
    return BillingEvent(
        event_type=BillingEventType.CHECKOUT_COMPLETED,
        customer_ref=_customer_id(obj),
        email=_get(obj, "customer_details", "email") or obj.get("customer_email"),
        product_ids=tuple(products),
        renewal_hint=_get(obj, "metadata", "access_key") or obj.get("client_reference_id"),
        event_id=event_id,
    )


def _invoice_event(obj: Mapping, event_id: str) -> BillingEvent:
    return BillingEvent(
        event_type=BillingEventType.INVOICE_PAID,
        customer_ref=_customer_id(obj),
        email=obj.get("customer_email"),
        product_ids=tuple(_line_products(_get(obj, "lines", "data"))),
        renewal_hint=(
            _get(obj, "subscription_details", "metadata", "access_key")
            or _get(obj, "metadata", "access_key")
        ),
        event_id=event_id,
    )


def _subscription_deleted_event(obj: Mapping, event_id: str) -> BillingEvent:
    return BillingEvent(
        event_type=BillingEventType.SUBSCRIPTION_DELETED,
        customer_ref=_customer_id(obj),
        product_ids=tuple(_line_products(_get(obj, "items", "data"))),
        event_id=event_id,
    )


def normalize_stripe_event(event: Mapping) -> BillingEvent:
    """
    Convert a Stripe event payload into a BillingEvent.

    Args:
        event: Decoded Stripe event (signature already verified)

    Returns:
        BillingEvent; event types the service does not handle come back
        as UNRECOGNIZED
    """
    stripe_type = event.get("type", "")
    event_id = event.get("id")
    obj = _get(event, "data", "object") or {}

    event_type = STRIPE_EVENT_TYPES.get(stripe_type)
    if event_type == BillingEventType.CHECKOUT_COMPLETED:
        return _checkout_event(obj, event_id)
    if event_type == BillingEventType.INVOICE_PAID:
        return _invoice_event(obj, event_id)
    if event_type == BillingEventType.SUBSCRIPTION_DELETED:
        return _subscription_deleted_event(obj, event_id)

    logger.debug("Unhandled Stripe event type %s (%s)", stripe_type, event_id)
    return BillingEvent(event_type=BillingEventType.UNRECOGNIZED, event_id=event_id)
