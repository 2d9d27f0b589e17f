from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Protocol

from returns.result import Result

from storefront_checkout.core.domain.model.errors import CheckoutError
from storefront_checkout.core.domain.model.order import Money, PaymentIntentId
from storefront_checkout.core.domain.model.payment import PaymentEvent, PaymentIntent


@dataclass(frozen=True)
class IntentRequest:
    amount: Money
    receipt_email: str
    metadata: Mapping[str, str] = field(default_factory=dict)
    idempotency_key: str | None = None


class PaymentGateway(Protocol):
    def create_intent(self, request: IntentRequest) -> Result[PaymentIntent, CheckoutError]: ...

    def cancel_intent(self, intent_id: PaymentIntentId) -> Result[None, CheckoutError]: ...

    def verify_webhook(
        self, payload: bytes, signature: str
    ) -> Result[PaymentEvent, CheckoutError]: ...
