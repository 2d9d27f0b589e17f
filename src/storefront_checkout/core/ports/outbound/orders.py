from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from returns.result import Result

from storefront_checkout.core.domain.model.errors import CheckoutError
from storefront_checkout.core.domain.model.order import (
    Order,
    OrderId,
    OrderStatus,
    PaymentIntentId,
)


@dataclass(frozen=True)
class TransitionOutcome:
    """Result of a conditional status update.

    ``applied`` is True only for the call that moved the order out of
    ``pending``. ``order`` is the stored order after the attempt, or None when
    no order carries the intent id.
    """

    order: Order | None
    applied: bool


class OrderLedger(Protocol):
    """
    Durable order store. ``create`` must reject a second order for the same
    payment intent, and ``transition`` must be a single atomic write guarded by
    ``status == pending``.
    """

    def create(self, order: Order) -> Result[OrderId, CheckoutError]: ...

    def get(self, order_id: OrderId) -> Result[Order, CheckoutError]: ...

    def get_by_intent(self, intent_id: PaymentIntentId) -> Result[Order, CheckoutError]: ...

    def transition(
        self,
        intent_id: PaymentIntentId,
        to_status: OrderStatus,
        confirmation_id: str | None = None,
    ) -> Result[TransitionOutcome, CheckoutError]: ...

    def list(
        self,
        offset: int,
        limit: int,
        status: OrderStatus | None = None,
        sort_by: str = "created_at",
        sort_dir: str = "desc",
    ) -> Result[Sequence[Order], CheckoutError]: ...
