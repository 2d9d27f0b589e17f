from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from returns.result import Failure, Result, Success
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from storefront_checkout.adapters.outbound.sqlalchemy_db import (
    OrderRow,
    as_utc,
    connection_guard,
)
from storefront_checkout.core.domain.model.errors import (
    CheckoutError,
    DuplicatePaymentIntent,
    OrderNotFound,
    PersistenceError,
)
from storefront_checkout.core.domain.model.order import (
    CatalogItemId,
    LineItem,
    Money,
    Order,
    OrderId,
    OrderStatus,
    PaymentIntentId,
    now_utc,
)
from storefront_checkout.core.ports.outbound.orders import OrderLedger, TransitionOutcome


@dataclass(frozen=True)
class SqlAlchemyOrderLedger(OrderLedger):
    """
    Ledger over the ``orders`` table. Status changes are issued as a single
    ``UPDATE ... WHERE status = 'pending'``; the affected row count tells the
    caller whether it won the transition.
    """

    session_factory: sessionmaker

    def create(self, order: Order) -> Result[OrderId, CheckoutError]:
        try:
            with connection_guard(self.session_factory), self.session_factory.begin() as session:
                session.add(_to_row(order))
        except IntegrityError as exc:
            return self._conflict(order, exc)
        except SQLAlchemyError as exc:
            return Failure(PersistenceError(message=f"order insert failed: {exc}"))
        return Success(order.order_id)

    def get(self, order_id: OrderId) -> Result[Order, CheckoutError]:
        key = str(order_id.value)
        return self._fetch_one(OrderRow.id == key, key)

    def get_by_intent(self, intent_id: PaymentIntentId) -> Result[Order, CheckoutError]:
        return self._fetch_one(
            OrderRow.stripe_payment_intent_id == intent_id.value, intent_id.value
        )

    def transition(
        self,
        intent_id: PaymentIntentId,
        to_status: OrderStatus,
        confirmation_id: str | None = None,
    ) -> Result[TransitionOutcome, CheckoutError]:
        if to_status is OrderStatus.PENDING:
            return Failure(PersistenceError(message="orders never move back to pending"))

        values: dict[str, Any] = {"status": to_status.value, "updated_at": now_utc()}
        if to_status is OrderStatus.PAID:
            values["stripe_payment_id"] = confirmation_id

        stmt = (
            update(OrderRow)
            .where(
                OrderRow.stripe_payment_intent_id == intent_id.value,
                OrderRow.status == OrderStatus.PENDING.value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            with connection_guard(self.session_factory), self.session_factory.begin() as session:
                applied = session.execute(stmt).rowcount == 1
                row = session.execute(
                    select(OrderRow).where(OrderRow.stripe_payment_intent_id == intent_id.value)
                ).scalar_one_or_none()
                order = _to_order(row) if row is not None else None
        except SQLAlchemyError as exc:
            return Failure(PersistenceError(message=f"order transition failed: {exc}"))

        return Success(TransitionOutcome(order=order, applied=applied))

    def list(
        self,
        offset: int,
        limit: int,
        status: OrderStatus | None = None,
        sort_by: str = "created_at",
        sort_dir: str = "desc",
    ) -> Result[Sequence[Order], CheckoutError]:
        column = OrderRow.total_amount if sort_by == "total" else OrderRow.created_at
        stmt = select(OrderRow).order_by(column.desc() if sort_dir == "desc" else column.asc())
        if status is not None:
            stmt = stmt.where(OrderRow.status == status.value)
        stmt = stmt.offset(offset).limit(limit)
        try:
            with connection_guard(self.session_factory), self.session_factory() as session:
                rows = session.execute(stmt).scalars().all()
        except SQLAlchemyError as exc:
            return Failure(PersistenceError(message=f"order list failed: {exc}"))
        return Success(tuple(_to_order(r) for r in rows))

    def _conflict(self, order: Order, exc: IntegrityError) -> Result[OrderId, CheckoutError]:
        # only an existing row for the intent makes this a duplicate intent
        existing = self.get_by_intent(order.payment_intent_id)
        if isinstance(existing, Success):
            return Failure(
                DuplicatePaymentIntent(
                    message="an order already exists for this payment intent",
                    payment_intent_id=order.payment_intent_id.value,
                )
            )
        return Failure(PersistenceError(message=f"order insert failed: {exc}"))

    def _fetch_one(self, clause, key: str) -> Result[Order, CheckoutError]:
        try:
            with connection_guard(self.session_factory), self.session_factory() as session:
                row = session.execute(select(OrderRow).where(clause)).scalar_one_or_none()
        except SQLAlchemyError as exc:
            return Failure(PersistenceError(message=f"order lookup failed: {exc}"))
        if row is None:
            return Failure(OrderNotFound(message="order not found", order_id=key))
        return Success(_to_order(row))


def _to_row(order: Order) -> OrderRow:
    return OrderRow(
        id=str(order.order_id.value),
        customer_email=order.customer_email,
        customer_name=order.customer_name,
        stripe_payment_id=order.payment_confirmation_id,
        stripe_payment_intent_id=order.payment_intent_id.value,
        total_amount=order.total.amount,
        currency=order.total.currency,
        items=[
            {
                "id": li.item_id.value,
                "name": li.name,
                "price": li.unit_price.amount,
                "quantity": li.quantity,
                "image_url": li.image_url,
            }
            for li in order.items
        ],
        status=order.status.value,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def _to_order(row: OrderRow) -> Order:
    items = tuple(
        LineItem(
            item_id=CatalogItemId(str(it["id"])),
            name=it["name"],
            unit_price=Money.of(int(it["price"]), row.currency),
            quantity=int(it["quantity"]),
            image_url=it.get("image_url"),
        )
        for it in row.items
    )
    return Order(
        order_id=OrderId.parse(row.id),
        customer_email=row.customer_email,
        customer_name=row.customer_name,
        items=items,
        total=Money.of(row.total_amount, row.currency),
        payment_intent_id=PaymentIntentId(row.stripe_payment_intent_id),
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
        status=OrderStatus(row.status),
        payment_confirmation_id=row.stripe_payment_id,
    )
