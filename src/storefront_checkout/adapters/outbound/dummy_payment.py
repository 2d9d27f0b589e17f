from __future__ import annotations

import hashlib
import hmac
import json
import secrets
import threading
from dataclasses import dataclass, field

from returns.result import Failure, Result, Success

from storefront_checkout.adapters.outbound.stripe_payment import event_from_stripe
from storefront_checkout.core.domain.model.errors import (
    CheckoutError,
    PaymentProviderUnavailable,
    ValidationError,
    WebhookSignatureInvalid,
)
from storefront_checkout.core.domain.model.order import PaymentIntentId
from storefront_checkout.core.domain.model.payment import PaymentEvent, PaymentIntent
from storefront_checkout.core.ports.outbound.payment import IntentRequest, PaymentGateway


@dataclass
class DummyPaymentGateway(PaymentGateway):
    """
    Offline stand-in for the processor. Webhooks carry Stripe-shaped JSON and
    are signed with a plain hex HMAC-SHA256 of the raw body.
    """

    webhook_secret: str = "whsec_dev"
    unavailable: bool = False
    created: list[IntentRequest] = field(default_factory=list)
    cancelled: list[str] = field(default_factory=list)
    _by_key: dict[str, PaymentIntent] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def create_intent(self, request: IntentRequest) -> Result[PaymentIntent, CheckoutError]:
        if self.unavailable:
            return Failure(PaymentProviderUnavailable("payment processor is down"))

        with self._lock:
            if request.idempotency_key and request.idempotency_key in self._by_key:
                return Success(self._by_key[request.idempotency_key])

            intent_id = f"pi_dummy_{secrets.token_hex(8)}"
            intent = PaymentIntent(
                intent_id=PaymentIntentId(intent_id),
                client_secret=f"{intent_id}_secret_{secrets.token_hex(8)}",
            )
            self.created.append(request)
            if request.idempotency_key:
                self._by_key[request.idempotency_key] = intent
        return Success(intent)

    def cancel_intent(self, intent_id: PaymentIntentId) -> Result[None, CheckoutError]:
        with self._lock:
            self.cancelled.append(intent_id.value)
        return Success(None)

    def verify_webhook(
        self, payload: bytes, signature: str
    ) -> Result[PaymentEvent, CheckoutError]:
        if not signature or not hmac.compare_digest(signature, self.sign(payload)):
            return Failure(WebhookSignatureInvalid("signature verification failed"))
        try:
            data = json.loads(payload)
        except ValueError:
            return Failure(ValidationError("webhook payload is not valid JSON"))
        return event_from_stripe(data)

    def sign(self, payload: bytes) -> str:
        return hmac.new(self.webhook_secret.encode(), payload, hashlib.sha256).hexdigest()
