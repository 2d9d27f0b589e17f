from __future__ import annotations

from dataclasses import dataclass

from returns.result import Failure, Result

from storefront_checkout.core.domain.model.errors import CheckoutError, ValidationError
from storefront_checkout.core.domain.model.order import Order, OrderId, PaymentIntentId
from storefront_checkout.core.ports.inbound.get_order import (
    GetOrderByIntentQuery,
    GetOrderQuery,
    GetOrderUseCase,
    OrderLineView,
    OrderView,
)
from storefront_checkout.core.ports.outbound.orders import OrderLedger


@dataclass(frozen=True)
class GetOrderDeps:
    orders: OrderLedger


@dataclass(frozen=True)
class GetOrderService(GetOrderUseCase):
    deps: GetOrderDeps

    def get_order(self, query: GetOrderQuery) -> Result[OrderView, CheckoutError]:
        try:
            oid = OrderId.parse(query.order_id)
        except ValueError:
            return Failure(ValidationError(message="order_id must be a valid UUID"))

        return self.deps.orders.get(oid).map(_to_view)

    def get_order_by_intent(
        self, query: GetOrderByIntentQuery
    ) -> Result[OrderView, CheckoutError]:
        intent = query.payment_intent_id.strip()
        if not intent:
            return Failure(ValidationError(message="payment_intent_id is required"))

        return self.deps.orders.get_by_intent(PaymentIntentId(intent)).map(_to_view)


def _to_view(order: Order) -> OrderView:
    lines = tuple(
        OrderLineView(
            item_id=li.item_id.value,
            name=li.name,
            unit_price=li.unit_price,
            quantity=li.quantity,
            subtotal=li.subtotal(),
            image_url=li.image_url,
        )
        for li in order.items
    )
    return OrderView(
        order_id=order.order_id,
        customer_email=order.customer_email,
        customer_name=order.customer_name,
        status=order.status,
        total=order.total,
        payment_intent_id=order.payment_intent_id,
        payment_confirmation_id=order.payment_confirmation_id,
        created_at=order.created_at,
        updated_at=order.updated_at,
        lines=lines,
    )
