from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, Sequence

from returns.result import Failure, Result, Success

from storefront_checkout.core.domain.model.errors import (
    CheckoutError,
    DuplicatePaymentIntent,
    OrderNotFound,
    PersistenceError,
)
from storefront_checkout.core.domain.model.order import (
    Order,
    OrderId,
    OrderStatus,
    PaymentIntentId,
    now_utc,
)
from storefront_checkout.core.ports.outbound.orders import OrderLedger, TransitionOutcome


@dataclass
class InMemoryOrderLedger(OrderLedger):
    _store: Dict[str, Order] = field(default_factory=dict)
    _by_intent: Dict[str, str] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def create(self, order: Order) -> Result[OrderId, CheckoutError]:
        key = str(order.order_id.value)
        intent = order.payment_intent_id.value
        with self._lock:
            if key in self._store:
                return Failure(PersistenceError(message="order_id already exists"))
            if intent in self._by_intent:
                return Failure(
                    DuplicatePaymentIntent(
                        message="an order already exists for this payment intent",
                        payment_intent_id=intent,
                    )
                )
            self._store[key] = order
            self._by_intent[intent] = key
        return Success(order.order_id)

    def get(self, order_id: OrderId) -> Result[Order, CheckoutError]:
        key = str(order_id.value)
        with self._lock:
            order = self._store.get(key)
        if order is None:
            return Failure(OrderNotFound(message="order not found", order_id=key))
        return Success(order)

    def get_by_intent(self, intent_id: PaymentIntentId) -> Result[Order, CheckoutError]:
        with self._lock:
            key = self._by_intent.get(intent_id.value)
            order = self._store.get(key) if key is not None else None
        if order is None:
            return Failure(OrderNotFound(message="order not found", order_id=intent_id.value))
        return Success(order)

    def transition(
        self,
        intent_id: PaymentIntentId,
        to_status: OrderStatus,
        confirmation_id: str | None = None,
    ) -> Result[TransitionOutcome, CheckoutError]:
        with self._lock:
            key = self._by_intent.get(intent_id.value)
            current = self._store.get(key) if key is not None else None
            if current is None:
                return Success(TransitionOutcome(order=None, applied=False))
            if current.status is not OrderStatus.PENDING:
                return Success(TransitionOutcome(order=current, applied=False))

            updated = current.with_status(to_status, confirmation_id, at=now_utc())
            self._store[key] = updated
        return Success(TransitionOutcome(order=updated, applied=True))

    def list(
        self,
        offset: int,
        limit: int,
        status: OrderStatus | None = None,
        sort_by: str = "created_at",
        sort_dir: str = "desc",
    ) -> Result[Sequence[Order], CheckoutError]:
        with self._lock:
            orders = list(self._store.values())  # insertion order

        if status is not None:
            orders = [o for o in orders if o.status is status]

        reverse = sort_dir == "desc"

        if sort_by == "created_at":
            orders = sorted(orders, key=lambda o: o.created_at, reverse=reverse)
        elif sort_by == "total":
            orders = sorted(orders, key=lambda o: o.total.amount, reverse=reverse)

        sliced = orders[offset : offset + limit]
        return Success(tuple(sliced))
