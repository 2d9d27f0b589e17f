from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from returns.result import Result

from storefront_checkout.core.domain.model.errors import CheckoutError
from storefront_checkout.core.domain.model.order import Money, OrderId


@dataclass(frozen=True)
class CartLine:
    item_id: str
    quantity: int


@dataclass(frozen=True)
class InitiateCheckoutCommand:
    customer_email: str
    lines: Sequence[CartLine]
    customer_name: str | None = None
    idempotency_key: str | None = None


@dataclass(frozen=True)
class CheckoutReceipt:
    order_id: OrderId
    client_secret: str
    total: Money


class InitiateCheckoutUseCase(Protocol):
    def initiate(
        self, command: InitiateCheckoutCommand
    ) -> Result[CheckoutReceipt, CheckoutError]: ...
