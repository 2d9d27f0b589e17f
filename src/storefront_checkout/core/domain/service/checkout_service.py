from __future__ import annotations

import json
from dataclasses import dataclass

import structlog
from returns.pipeline import flow
from returns.pointfree import bind, map_
from returns.result import Failure, Result, Success

from storefront_checkout.core.domain.model.errors import CheckoutError, DuplicatePaymentIntent
from storefront_checkout.core.domain.model.order import (
    DEFAULT_CURRENCY,
    Order,
    OrderId,
    OrderStatus,
    now_utc,
)
from storefront_checkout.core.domain.model.payment import PaymentIntent
from storefront_checkout.core.domain.service.pricing import PricedCart, price_cart
from storefront_checkout.core.ports.inbound.initiate_checkout import (
    CheckoutReceipt,
    InitiateCheckoutCommand,
    InitiateCheckoutUseCase,
)
from storefront_checkout.core.ports.outbound.catalog import CatalogReader
from storefront_checkout.core.ports.outbound.orders import OrderLedger
from storefront_checkout.core.ports.outbound.payment import IntentRequest, PaymentGateway

logger = structlog.get_logger(component="checkout")


@dataclass(frozen=True)
class CheckoutDeps:
    catalog: CatalogReader
    payment: PaymentGateway
    orders: OrderLedger
    currency: str = DEFAULT_CURRENCY


@dataclass(frozen=True)
class CheckoutContext:
    cart: PricedCart
    idempotency_key: str | None = None
    intent: PaymentIntent | None = None
    order: Order | None = None


@dataclass(frozen=True)
class CheckoutService(InitiateCheckoutUseCase):
    deps: CheckoutDeps

    def initiate(
        self, command: InitiateCheckoutCommand
    ) -> Result[CheckoutReceipt, CheckoutError]:
        result = flow(
            command,
            self._price,
            bind(self._create_intent),
            bind(self._persist),
            map_(_to_receipt),
        )
        if isinstance(result, Failure):
            err = result.failure()
            logger.warning(
                "checkout_rejected", error_type=type(err).__name__, error=str(err)
            )
        return result

    def _price(self, cmd: InitiateCheckoutCommand) -> Result[CheckoutContext, CheckoutError]:
        return price_cart(cmd, self.deps.catalog, currency=self.deps.currency).map(
            lambda cart: CheckoutContext(cart=cart, idempotency_key=cmd.idempotency_key)
        )

    def _create_intent(self, ctx: CheckoutContext) -> Result[CheckoutContext, CheckoutError]:
        req = IntentRequest(
            amount=ctx.cart.total,
            receipt_email=ctx.cart.customer_email,
            metadata=_intent_metadata(ctx.cart),
            idempotency_key=ctx.idempotency_key,
        )
        return self.deps.payment.create_intent(req).map(
            lambda intent: CheckoutContext(
                cart=ctx.cart, idempotency_key=ctx.idempotency_key, intent=intent
            )
        )

    def _persist(self, ctx: CheckoutContext) -> Result[CheckoutContext, CheckoutError]:
        assert ctx.intent is not None
        now = now_utc()
        order = Order(
            order_id=OrderId.new(),
            customer_email=ctx.cart.customer_email,
            customer_name=ctx.cart.customer_name,
            items=ctx.cart.items,
            total=ctx.cart.total,
            payment_intent_id=ctx.intent.intent_id,
            created_at=now,
            updated_at=now,
            status=OrderStatus.PENDING,
        )
        saved = self.deps.orders.create(order)
        if isinstance(saved, Failure):
            if isinstance(saved.failure(), DuplicatePaymentIntent):
                # replayed idempotency key: the processor handed back an intent
                # that already has its order
                return self._replay(ctx)
            # no order row references the intent, so take the intent out of play
            self._cancel_orphan(ctx.intent)
            return saved

        logger.info(
            "order_created",
            order_id=str(order.order_id.value),
            payment_intent_id=order.payment_intent_id.value,
            total_amount=order.total.amount,
            currency=order.total.currency,
        )
        return Success(
            CheckoutContext(
                cart=ctx.cart,
                idempotency_key=ctx.idempotency_key,
                intent=ctx.intent,
                order=order,
            )
        )

    def _replay(self, ctx: CheckoutContext) -> Result[CheckoutContext, CheckoutError]:
        assert ctx.intent is not None
        logger.info("checkout_replayed", payment_intent_id=ctx.intent.intent_id.value)
        return self.deps.orders.get_by_intent(ctx.intent.intent_id).map(
            lambda existing: CheckoutContext(
                cart=ctx.cart,
                idempotency_key=ctx.idempotency_key,
                intent=ctx.intent,
                order=existing,
            )
        )

    def _cancel_orphan(self, intent: PaymentIntent) -> None:
        cancelled = self.deps.payment.cancel_intent(intent.intent_id)
        if isinstance(cancelled, Failure):
            logger.error(
                "orphan_intent_cancel_failed",
                payment_intent_id=intent.intent_id.value,
                error=str(cancelled.failure()),
            )
        else:
            logger.warning("orphan_intent_cancelled", payment_intent_id=intent.intent_id.value)


def _intent_metadata(cart: PricedCart) -> dict[str, str]:
    return {
        "customer_email": cart.customer_email,
        "customer_name": cart.customer_name or "",
        "items": json.dumps(
            [{"id": it.item_id.value, "qty": it.quantity} for it in cart.items],
            separators=(",", ":"),
        ),
    }


def _to_receipt(ctx: CheckoutContext) -> CheckoutReceipt:
    assert ctx.intent is not None and ctx.order is not None
    return CheckoutReceipt(
        order_id=ctx.order.order_id,
        client_secret=ctx.intent.client_secret,
        total=ctx.order.total,
    )
