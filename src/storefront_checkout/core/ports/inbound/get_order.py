from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, Sequence

from returns.result import Result

from storefront_checkout.core.domain.model.errors import CheckoutError
from storefront_checkout.core.domain.model.order import (
    Money,
    OrderId,
    OrderStatus,
    PaymentIntentId,
)


@dataclass(frozen=True)
class GetOrderQuery:
    order_id: str  # UUID string


@dataclass(frozen=True)
class GetOrderByIntentQuery:
    payment_intent_id: str


@dataclass(frozen=True)
class OrderLineView:
    item_id: str
    name: str
    unit_price: Money
    quantity: int
    subtotal: Money
    image_url: str | None


@dataclass(frozen=True)
class OrderView:
    order_id: OrderId
    customer_email: str
    customer_name: str | None
    status: OrderStatus
    total: Money
    payment_intent_id: PaymentIntentId
    payment_confirmation_id: str | None
    created_at: datetime
    updated_at: datetime
    lines: Sequence[OrderLineView]


class GetOrderUseCase(Protocol):
    def get_order(self, query: GetOrderQuery) -> Result[OrderView, CheckoutError]: ...

    def get_order_by_intent(
        self, query: GetOrderByIntentQuery
    ) -> Result[OrderView, CheckoutError]: ...
