"""Shared pytest fixtures for checkout and reconciliation tests."""

import json
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional

import pytest

from storefront_checkout.adapters.outbound.dummy_payment import DummyPaymentGateway
from storefront_checkout.adapters.outbound.in_memory_catalog import InMemoryCatalog
from storefront_checkout.adapters.outbound.in_memory_orders import InMemoryOrderLedger
from storefront_checkout.adapters.outbound.log_mail import LogMailTransport
from storefront_checkout.core.domain.model.catalog import CatalogItem
from storefront_checkout.core.domain.model.order import (
    CatalogItemId,
    LineItem,
    Money,
    Order,
    OrderId,
    PaymentIntentId,
    now_utc,
)
from storefront_checkout.core.domain.service.checkout_service import (
    CheckoutDeps,
    CheckoutService,
)
from storefront_checkout.core.domain.service.reconcile_service import (
    ReconcileDeps,
    ReconcileService,
)
from storefront_checkout.core.ports.inbound.initiate_checkout import (
    CartLine,
    InitiateCheckoutCommand,
)
from storefront_checkout.core.ports.outbound.notifications import OrderPaid


@dataclass
class RecordingQueue:
    """Notification queue that keeps every enqueued event."""

    events: list = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def enqueue(self, event: OrderPaid) -> None:
        with self._lock:
            self.events.append(event)


@pytest.fixture
def catalog() -> InMemoryCatalog:
    return InMemoryCatalog.of(
        [
            CatalogItem(CatalogItemId("bread-1"), "Country Loaf", Money.of(900)),
            CatalogItem(CatalogItemId("bun-6"), "Milk Buns (6)", Money.of(1200)),
            CatalogItem(
                CatalogItemId("cake-old"), "Seasonal Cake", Money.of(3500), available=False
            ),
        ]
    )


@pytest.fixture
def ledger() -> InMemoryOrderLedger:
    return InMemoryOrderLedger()


@pytest.fixture
def gateway() -> DummyPaymentGateway:
    return DummyPaymentGateway(webhook_secret="whsec_test")


@pytest.fixture
def queue() -> RecordingQueue:
    return RecordingQueue()


@pytest.fixture
def mail() -> LogMailTransport:
    return LogMailTransport()


@pytest.fixture
def checkout(catalog, gateway, ledger) -> CheckoutService:
    return CheckoutService(CheckoutDeps(catalog=catalog, payment=gateway, orders=ledger))


@pytest.fixture
def reconciler(gateway, ledger, queue) -> ReconcileService:
    return ReconcileService(ReconcileDeps(payment=gateway, orders=ledger, notifications=queue))


@pytest.fixture
def command() -> Callable[..., InitiateCheckoutCommand]:
    """Build a checkout command from ``(item_id, quantity)`` pairs."""

    def _command(
        *lines,
        email: str = "ada@example.com",
        name: Optional[str] = "Ada",
        idempotency_key: Optional[str] = None,
    ) -> InitiateCheckoutCommand:
        return InitiateCheckoutCommand(
            customer_email=email,
            customer_name=name,
            lines=tuple(CartLine(item_id=i, quantity=q) for i, q in lines),
            idempotency_key=idempotency_key,
        )

    return _command


@pytest.fixture
def make_order() -> Callable[..., Order]:
    """Build a pending order for a payment intent id."""

    def _make_order(intent_id: str = "pi_test_1", quantity: int = 2) -> Order:
        line = LineItem(CatalogItemId("bread-1"), "Country Loaf", Money.of(900), quantity)
        now = now_utc()
        return Order(
            order_id=OrderId.new(),
            customer_email="ada@example.com",
            customer_name="Ada",
            items=(line,),
            total=line.subtotal(),
            payment_intent_id=PaymentIntentId(intent_id),
            created_at=now,
            updated_at=now,
        )

    return _make_order


@pytest.fixture
def stripe_event() -> Callable[..., bytes]:
    """Serialize a Stripe-shaped payment_intent event."""

    def _stripe_event(
        event_type: str,
        intent_id: str,
        event_id: str = "evt_1",
        latest_charge: Optional[str] = "ch_1",
    ) -> bytes:
        obj = {"id": intent_id, "object": "payment_intent", "status": "succeeded"}
        if latest_charge is not None:
            obj["latest_charge"] = latest_charge
        envelope = {"id": event_id, "object": "event", "type": event_type, "data": {"object": obj}}
        return json.dumps(envelope).encode()

    return _stripe_event
