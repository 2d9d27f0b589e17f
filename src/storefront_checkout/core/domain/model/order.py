from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Tuple
from uuid import UUID, uuid4

DEFAULT_CURRENCY = "usd"


@dataclass(frozen=True)
class OrderId:
    value: UUID

    @staticmethod
    def new() -> "OrderId":
        return OrderId(uuid4())

    @staticmethod
    def parse(raw: str) -> "OrderId":
        return OrderId(UUID(raw))


@dataclass(frozen=True)
class CatalogItemId:
    value: str


@dataclass(frozen=True)
class PaymentIntentId:
    value: str


@dataclass(frozen=True)
class Money:
    """Amount in integer minor currency units (cents)."""

    amount: int
    currency: str = DEFAULT_CURRENCY

    @staticmethod
    def of(amount: int, currency: str = DEFAULT_CURRENCY) -> "Money":
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise TypeError(f"money amount must be int minor units, got {amount!r}")
        return Money(amount, currency.lower())

    def __add__(self, other: "Money") -> "Money":
        self._assert_same_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, n: int) -> "Money":
        return Money(self.amount * n, self.currency)

    def format(self) -> str:
        return f"${self.amount / 100:.2f}"

    def _assert_same_currency(self, other: "Money") -> None:
        if self.currency != other.currency:
            raise ValueError(f"currency_mismatch: {self.currency} vs {other.currency}")


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not OrderStatus.PENDING


@dataclass(frozen=True)
class LineItem:
    item_id: CatalogItemId
    name: str
    unit_price: Money
    quantity: int
    image_url: str | None = None

    def subtotal(self) -> Money:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    customer_email: str
    customer_name: str | None
    items: Tuple[LineItem, ...]
    total: Money
    payment_intent_id: PaymentIntentId
    created_at: datetime
    updated_at: datetime
    status: OrderStatus = OrderStatus.PENDING
    payment_confirmation_id: str | None = None

    def with_status(
        self, status: OrderStatus, confirmation_id: str | None = None, at: datetime | None = None
    ) -> "Order":
        # pending -> paid | failed only; terminal orders are returned untouched
        if self.status.is_terminal or status is OrderStatus.PENDING:
            return self
        return replace(
            self,
            status=status,
            payment_confirmation_id=(
                confirmation_id if status is OrderStatus.PAID else self.payment_confirmation_id
            ),
            updated_at=at or now_utc(),
        )


def fold_money(values: Iterable[Money], currency: str = DEFAULT_CURRENCY) -> Money:
    total = Money.of(0, currency=currency)
    for v in values:
        total = total + v
    return total


def now_utc() -> datetime:
    return datetime.now(timezone.utc)
