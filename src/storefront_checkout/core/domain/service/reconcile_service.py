"""Webhook reconciliation.

Deliveries are at-least-once and unordered relative to checkout. The ledger's
conditional transition decides the single winner among duplicates, and only
the winner enqueues the confirmation notification.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from returns.result import Failure, Result, Success

from storefront_checkout.core.domain.model.errors import CheckoutError
from storefront_checkout.core.domain.model.order import OrderStatus
from storefront_checkout.core.domain.model.payment import PaymentEvent, PaymentEventKind
from storefront_checkout.core.ports.inbound.reconcile_payment import (
    ReconcileAck,
    ReconcileOutcome,
    ReconcilePaymentUseCase,
    WebhookDelivery,
)
from storefront_checkout.core.ports.outbound.notifications import NotificationQueue, OrderPaid
from storefront_checkout.core.ports.outbound.orders import OrderLedger, TransitionOutcome
from storefront_checkout.core.ports.outbound.payment import PaymentGateway

logger = structlog.get_logger(component="reconciler")

_TARGET_STATUS = {
    PaymentEventKind.SUCCEEDED: OrderStatus.PAID,
    PaymentEventKind.FAILED: OrderStatus.FAILED,
}


@dataclass(frozen=True)
class ReconcileDeps:
    payment: PaymentGateway
    orders: OrderLedger
    notifications: NotificationQueue


@dataclass(frozen=True)
class ReconcileService(ReconcilePaymentUseCase):
    deps: ReconcileDeps

    def reconcile(self, delivery: WebhookDelivery) -> Result[ReconcileAck, CheckoutError]:
        verified = self.deps.payment.verify_webhook(delivery.payload, delivery.signature)
        if isinstance(verified, Failure):
            logger.warning("webhook_signature_invalid", error=str(verified.failure()))
            return verified
        return self.apply(verified.unwrap())

    def apply(self, event: PaymentEvent) -> Result[ReconcileAck, CheckoutError]:
        log = logger.bind(event_id=event.event_id, event_type=event.event_type)
        target = _TARGET_STATUS.get(event.kind)
        if target is None or event.payment_intent_id is None:
            log.info("webhook_ignored")
            return Success(_ack(event, ReconcileOutcome.IGNORED))

        log = log.bind(payment_intent_id=event.payment_intent_id.value)
        confirmation_id = event.confirmation_id if target is OrderStatus.PAID else None
        moved = self.deps.orders.transition(
            event.payment_intent_id, target, confirmation_id=confirmation_id
        )
        if isinstance(moved, Failure):
            log.error("ledger_transition_failed", error=str(moved.failure()))
            return moved

        return Success(self._after_transition(event, target, moved.unwrap(), log))

    def _after_transition(
        self,
        event: PaymentEvent,
        target: OrderStatus,
        outcome: TransitionOutcome,
        log,
    ) -> ReconcileAck:
        if outcome.order is None:
            # checkout may not have committed yet, or the intent belongs elsewhere
            log.warning("webhook_order_not_found")
            return _ack(event, ReconcileOutcome.ORDER_NOT_FOUND)

        log = log.bind(order_id=str(outcome.order.order_id.value))
        if not outcome.applied:
            log.info("webhook_duplicate", current_status=outcome.order.status.value)
            return _ack(event, ReconcileOutcome.ALREADY_TERMINAL)

        if target is OrderStatus.PAID:
            log.info("order_marked_paid", confirmation_id=outcome.order.payment_confirmation_id)
            self.deps.notifications.enqueue(OrderPaid(outcome.order))
            return _ack(event, ReconcileOutcome.MARKED_PAID)

        log.info("order_marked_failed")
        return _ack(event, ReconcileOutcome.MARKED_FAILED)


def _ack(event: PaymentEvent, outcome: ReconcileOutcome) -> ReconcileAck:
    return ReconcileAck(event_id=event.event_id, event_type=event.event_type, outcome=outcome)
