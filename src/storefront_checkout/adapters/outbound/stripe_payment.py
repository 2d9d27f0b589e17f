from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping

import stripe
import structlog
from returns.result import Failure, Result, Success

from storefront_checkout.core.domain.model.errors import (
    CheckoutError,
    PaymentProviderUnavailable,
    ValidationError,
    WebhookSignatureInvalid,
)
from storefront_checkout.core.domain.model.order import PaymentIntentId
from storefront_checkout.core.domain.model.payment import (
    PaymentEvent,
    PaymentEventKind,
    PaymentIntent,
)
from storefront_checkout.core.ports.outbound.payment import IntentRequest, PaymentGateway

logger = structlog.get_logger(component="stripe_gateway")


@dataclass(frozen=True)
class StripePaymentGateway(PaymentGateway):
    api_key: str
    webhook_secret: str
    tolerance_seconds: int = 300

    def create_intent(self, request: IntentRequest) -> Result[PaymentIntent, CheckoutError]:
        params: dict[str, Any] = {
            "amount": request.amount.amount,
            "currency": request.amount.currency,
            "metadata": dict(request.metadata),
            "receipt_email": request.receipt_email,
            "api_key": self.api_key,
        }
        if request.idempotency_key:
            params["idempotency_key"] = request.idempotency_key

        try:
            intent = stripe.PaymentIntent.create(**params)
        except stripe.StripeError as exc:
            logger.error(
                "intent_create_failed",
                error=str(exc),
                error_type=type(exc).__name__,
                amount=request.amount.amount,
            )
            return Failure(PaymentProviderUnavailable("failed to create payment intent"))

        logger.info("intent_created", payment_intent_id=intent.id, amount=request.amount.amount)
        return Success(PaymentIntent(PaymentIntentId(intent.id), intent.client_secret))

    def cancel_intent(self, intent_id: PaymentIntentId) -> Result[None, CheckoutError]:
        try:
            stripe.PaymentIntent.cancel(intent_id.value, api_key=self.api_key)
        except stripe.StripeError as exc:
            return Failure(PaymentProviderUnavailable(f"failed to cancel intent: {exc}"))
        return Success(None)

    def verify_webhook(
        self, payload: bytes, signature: str
    ) -> Result[PaymentEvent, CheckoutError]:
        if not signature:
            return Failure(WebhookSignatureInvalid("missing Stripe-Signature header"))
        try:
            body = payload.decode("utf-8")
            stripe.WebhookSignature.verify_header(
                body, signature, self.webhook_secret, self.tolerance_seconds
            )
            event = json.loads(body)
        except stripe.SignatureVerificationError as exc:
            return Failure(WebhookSignatureInvalid(f"signature verification failed: {exc}"))
        except ValueError:
            return Failure(ValidationError("webhook payload is not valid JSON"))

        return event_from_stripe(event)


def event_from_stripe(event: Mapping[str, Any]) -> Result[PaymentEvent, CheckoutError]:
    """Parse a Stripe event envelope into a PaymentEvent."""
    try:
        event_id = str(event["id"])
        event_type = str(event["type"])
        obj = event["data"]["object"]
    except (KeyError, TypeError):
        return Failure(ValidationError("webhook payload is not a Stripe event"))
    if not isinstance(obj, Mapping):
        return Failure(ValidationError("webhook payload is not a Stripe event"))

    kind = PaymentEventKind.from_event_type(event_type)
    if obj.get("object") != "payment_intent" or not obj.get("id"):
        return Success(PaymentEvent(event_id, event_type, PaymentEventKind.IGNORED))

    intent_id = str(obj["id"])
    charge = obj.get("latest_charge")
    return Success(
        PaymentEvent(
            event_id=event_id,
            event_type=event_type,
            kind=kind,
            payment_intent_id=PaymentIntentId(intent_id),
            confirmation_id=charge if isinstance(charge, str) and charge else intent_id,
        )
    )
