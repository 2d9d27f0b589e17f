from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from returns.result import Failure, Result

from storefront_checkout.core.domain.model.errors import CheckoutError, ValidationError
from storefront_checkout.core.domain.model.order import Order, OrderStatus
from storefront_checkout.core.ports.inbound.list_orders import (
    ListOrdersQuery,
    ListOrdersUseCase,
    OrderSummaryView,
)
from storefront_checkout.core.ports.outbound.orders import OrderLedger


@dataclass(frozen=True)
class ListOrdersDeps:
    orders: OrderLedger


@dataclass(frozen=True)
class ListOrdersService(ListOrdersUseCase):
    deps: ListOrdersDeps

    def list_orders(
        self, query: ListOrdersQuery
    ) -> Result[Sequence[OrderSummaryView], CheckoutError]:
        if query.offset < 0:
            return Failure(ValidationError(message="offset must be >= 0"))
        if query.limit <= 0:
            return Failure(ValidationError(message="limit must be > 0"))
        if query.limit > 100:
            return Failure(ValidationError(message="limit must be <= 100"))

        status: OrderStatus | None = None
        if query.status is not None:
            try:
                status = OrderStatus(query.status.strip().lower())
            except ValueError:
                return Failure(
                    ValidationError(message="status must be one of: pending, paid, failed")
                )

        if query.sort_by not in {"created_at", "total"}:
            return Failure(
                ValidationError(message="sort_by must be one of: created_at, total")
            )
        if query.sort_dir not in {"asc", "desc"}:
            return Failure(ValidationError(message="sort_dir must be 'asc' or 'desc'"))

        return self.deps.orders.list(
            query.offset,
            query.limit,
            status=status,
            sort_by=query.sort_by,
            sort_dir=query.sort_dir,
        ).map(_to_summaries)


def _to_summaries(orders: Sequence[Order]) -> Sequence[OrderSummaryView]:
    return tuple(
        OrderSummaryView(
            order_id=o.order_id,
            customer_email=o.customer_email,
            status=o.status,
            total=o.total,
            created_at=o.created_at,
        )
        for o in orders
    )
