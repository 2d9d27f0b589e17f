from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from storefront_checkout.core.domain.model.order import PaymentIntentId

SUCCEEDED_EVENT = "payment_intent.succeeded"
FAILED_EVENT = "payment_intent.payment_failed"


@dataclass(frozen=True)
class PaymentIntent:
    intent_id: PaymentIntentId
    client_secret: str


class PaymentEventKind(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    IGNORED = "ignored"

    @staticmethod
    def from_event_type(event_type: str) -> "PaymentEventKind":
        if event_type == SUCCEEDED_EVENT:
            return PaymentEventKind.SUCCEEDED
        if event_type == FAILED_EVENT:
            return PaymentEventKind.FAILED
        return PaymentEventKind.IGNORED


@dataclass(frozen=True)
class PaymentEvent:
    """A webhook notification that already passed signature verification."""

    event_id: str
    event_type: str
    kind: PaymentEventKind
    payment_intent_id: PaymentIntentId | None = None
    confirmation_id: str | None = None
