"""
Unit tests for Stripe payload normalization.
"""

from billing.domain.billing_event import BillingEventType
from billing.infrastructure.stripe_events import normalize_stripe_event


def stripe_event(event_type, obj):
    return {"id": "evt_test", "type": event_type, "data": {"object": obj}}


class TestCheckoutSession:
    """Tests for checkout.session.completed."""

    def test_full_payload(self):
        event = normalize_stripe_event(
            stripe_event(
                "checkout.session.completed",
                {
                    "customer": "cus_123",
                    "customer_details": {"email": "buyer@example.com"},
                    "customer_email": "ignored@example.com",
                    "client_reference_id": "key-from-client",
                    "metadata": {"product_id": "prod_meta"},
                    "line_items": {"data": [{"price": {"product": "prod_line"}}]},
                },
            )
        )

        assert event.event_type == BillingEventType.CHECKOUT_COMPLETED
        assert event.event_id == "evt_test"
        assert event.customer_ref == "cus_123"
        assert event.email == "buyer@example.com"
        assert event.product_ids == ("prod_meta", "prod_line")
        assert event.renewal_hint == "key-from-client"

    def test_fallbacks(self):
        event = normalize_stripe_event(
            stripe_event(
                "checkout.session.completed",
                {
                    "customer": {"id": "cus_expanded"},
                    "customer_details": None,
                    "customer_email": "fallback@example.com",
                    "metadata": {"access_key": "key-from-metadata"},
                },
            )
        )

        assert event.customer_ref == "cus_expanded"
        assert event.email == "fallback@example.com"
        assert event.product_ids == ()
        assert event.renewal_hint == "key-from-metadata"


class TestInvoice:
    """Tests for invoice events."""

    def test_invoice_paid(self):
        event = normalize_stripe_event(
            stripe_event(
                "invoice.paid",
                {
                    "customer": "cus_123",
                    "customer_email": "buyer@example.com",
                    "lines": {
                        "data": [
                            {"price": {"product": {"id": "prod_a"}}},
                            {"pricing": {"price_details": {"product": "prod_b"}}},
                            {"description": "no product"},
                        ]
                    },
                    "subscription_details": {"metadata": {"access_key": "key-1"}},
                },
            )
        )

        assert event.event_type == BillingEventType.INVOICE_PAID
        assert event.product_ids == ("prod_a", "prod_b")
        assert event.renewal_hint == "key-1"

    def test_payment_succeeded_alias(self):
        event = normalize_stripe_event(stripe_event("invoice.payment_succeeded", {}))
        assert event.event_type == BillingEventType.INVOICE_PAID
        assert event.customer_ref is None


def test_subscription_deleted():
    event = normalize_stripe_event(
        stripe_event(
            "customer.subscription.deleted",
            {"customer": "cus_123", "items": {"data": [{"price": {"product": "prod_a"}}]}},
        )
    )

    assert event.event_type == BillingEventType.SUBSCRIPTION_DELETED
    assert event.customer_ref == "cus_123"
    assert event.product_ids == ("prod_a",)
    assert event.email is None


def test_unhandled_type():
    event = normalize_stripe_event(stripe_event("charge.refunded", {"customer": "cus_123"}))

    assert event.event_type == BillingEventType.UNRECOGNIZED
    assert event.customer_ref is None
    assert event.event_id == "evt_test"


def test_missing_data():
    event = normalize_stripe_event({"type": "invoice.paid"})
    assert event.event_type == BillingEventType.INVOICE_PAID
    assert event.event_id is None
