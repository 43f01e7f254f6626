"""
Billing webhook view.

Receives Stripe events, verifies their signature and hands the
normalized event to the billing handler. Any 2xx tells Stripe the
event is done; 503 asks it to redeliver.
"""

import json
import logging

import stripe
from asgiref.sync import async_to_sync
from django.conf import settings
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from access_keys.application.config import get_access_key_config
from access_keys.infrastructure.repositories.factory import build_access_key_repository
from api.v1.auth.serializers import ErrorResponseSerializer
from api.v1.billing.serializers import WebhookResponseSerializer
from billing.application.handlers.billing_event_handlers import BillingEventHandler
from billing.infrastructure.stripe_events import normalize_stripe_event
from core.instrumentation import Status, StatusCode, get_tracer
from notifications.infrastructure.celery_notifier import CeleryEmailNotifier

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)


def _error(code: str, message: str, status_code: int) -> Response:
    return Response({"error": {"code": code, "message": message}}, status=status_code)


class StripeWebhookView(APIView):
    """View for Stripe webhook events."""

    authentication_classes = []
    permission_classes = []

    @extend_schema(
        operation_id="stripe_webhook",
        summary="Stripe Webhook",
        description=(
            "Receive a Stripe event. Paid checkouts and invoices issue or renew "
            "an access key; deleted subscriptions cancel it."
        ),
        tags=["Billing"],
        parameters=[
            OpenApiParameter(
                name="Stripe-Signature",
                type=str,
                location=OpenApiParameter.HEADER,
                required=True,
                description="Stripe webhook signature",
            ),
        ],
        request={"application/json": {"type": "object"}},
        responses={
            200: WebhookResponseSerializer,
            400: ErrorResponseSerializer,
            503: ErrorResponseSerializer,
        },
    )
    def post(self, request: Request) -> Response:
        """Handle a Stripe event."""
        return async_to_sync(self._handle_webhook)(request)

    async def _handle_webhook(self, request: Request) -> Response:
        """Async handler for the Stripe webhook."""
        with tracer.start_as_current_span("stripe_webhook") as span:
            span.set_attribute("operation", "stripe_webhook")

            secret = settings.STRIPE_WEBHOOK_SECRET
            if not secret:
                logger.error("STRIPE_WEBHOOK_SECRET is not configured")
                span.set_status(Status(StatusCode.ERROR, "Billing not configured"))
                return _error(
                    "BILLING_NOT_CONFIGURED",
                    "Billing not configured",
                    status.HTTP_500_INTERNAL_SERVER_ERROR,
                )

            payload = request.body
            sig_header = request.META.get("HTTP_STRIPE_SIGNATURE", "")
            try:
                stripe.Webhook.construct_event(payload, sig_header, secret)
                event = json.loads(payload)
            except ValueError as e:
                logger.warning("Invalid Stripe payload: %s", e)
                span.set_status(Status(StatusCode.ERROR, "Invalid payload"))
                return _error("INVALID_PAYLOAD", "Invalid payload", status.HTTP_400_BAD_REQUEST)
            except stripe.SignatureVerificationError as e:
                logger.warning("Invalid Stripe signature: %s", e)
                span.set_status(Status(StatusCode.ERROR, "Invalid signature"))
                return _error(
                    "INVALID_SIGNATURE", "Invalid Stripe signature", status.HTTP_400_BAD_REQUEST
                )

            span.set_attribute("stripe.event_type", event.get("type", ""))
            span.set_attribute("stripe.event_id", event.get("id") or "")
            billing_event = normalize_stripe_event(event)

            config = get_access_key_config()
            handler = BillingEventHandler(
                access_key_repository=build_access_key_repository(config),
                notifier=CeleryEmailNotifier(),
                config=config,
            )
            # StoreUnavailableError propagates to the exception handler as 503
            result = await handler.dispatch(billing_event)

            span.set_attribute("billing.outcome", result.outcome.value)
            span.set_status(Status(StatusCode.OK))
            return Response(
                WebhookResponseSerializer(
                    {
                        "received": True,
                        "outcome": result.outcome.value,
                        "event_type": result.event_type,
                        "reason": result.reason,
                    }
                ).data,
                status=status.HTTP_200_OK,
            )
