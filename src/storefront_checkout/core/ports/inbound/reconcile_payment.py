from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from returns.result import Result

from storefront_checkout.core.domain.model.errors import CheckoutError


@dataclass(frozen=True)
class WebhookDelivery:
    payload: bytes
    signature: str


class ReconcileOutcome(str, Enum):
    MARKED_PAID = "marked_paid"
    MARKED_FAILED = "marked_failed"
    ALREADY_TERMINAL = "already_terminal"
    ORDER_NOT_FOUND = "order_not_found"
    IGNORED = "ignored"


@dataclass(frozen=True)
class ReconcileAck:
    event_id: str
    event_type: str
    outcome: ReconcileOutcome


class ReconcilePaymentUseCase(Protocol):
    def reconcile(self, delivery: WebhookDelivery) -> Result[ReconcileAck, CheckoutError]: ...
