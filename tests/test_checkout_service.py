import json
from dataclasses import dataclass

from returns.result import Failure, Success

from storefront_checkout.adapters.outbound.in_memory_orders import InMemoryOrderLedger
from storefront_checkout.core.domain.model.errors import (
    ItemUnavailable,
    PaymentProviderUnavailable,
    PersistenceError,
)
from storefront_checkout.core.domain.model.order import OrderStatus, PaymentIntentId
from storefront_checkout.core.domain.service.checkout_service import (
    CheckoutDeps,
    CheckoutService,
)


@dataclass
class FailingLedger(InMemoryOrderLedger):
    def create(self, order):
        return Failure(PersistenceError("database unavailable"))


def test_initiate_persists_pending_order(checkout, ledger, gateway, command):
    result = checkout.initiate(command(("bread-1", 2)))

    assert isinstance(result, Success)
    receipt = result.unwrap()
    assert receipt.total.amount == 1800
    assert receipt.client_secret

    order = ledger.get(receipt.order_id).unwrap()
    assert order.status is OrderStatus.PENDING
    assert order.total.amount == 1800
    assert order.payment_confirmation_id is None
    assert ledger.get_by_intent(order.payment_intent_id).unwrap().order_id == receipt.order_id


def test_intent_carries_server_side_amount_and_metadata(checkout, gateway, command):
    checkout.initiate(command(("bread-1", 2), ("bun-6", 1)))

    (request,) = gateway.created
    assert request.amount.amount == 2 * 900 + 1200
    assert request.receipt_email == "ada@example.com"
    assert request.metadata["customer_email"] == "ada@example.com"
    assert request.metadata["customer_name"] == "Ada"
    assert json.loads(request.metadata["items"]) == [
        {"id": "bread-1", "qty": 2},
        {"id": "bun-6", "qty": 1},
    ]


def test_unavailable_item_creates_nothing(checkout, ledger, gateway, command):
    result = checkout.initiate(command(("bread-1", 1), ("ghost-item", 1)))

    assert isinstance(result.failure(), ItemUnavailable)
    assert gateway.created == []
    assert ledger.list(0, 100).unwrap() == ()


def test_processor_down_creates_no_order(checkout, ledger, gateway, command):
    gateway.unavailable = True

    result = checkout.initiate(command(("bread-1", 1)))

    assert isinstance(result.failure(), PaymentProviderUnavailable)
    assert ledger.list(0, 100).unwrap() == ()


def test_persist_failure_cancels_intent(catalog, gateway, command):
    service = CheckoutService(
        CheckoutDeps(catalog=catalog, payment=gateway, orders=FailingLedger())
    )

    result = service.initiate(command(("bread-1", 1)))

    assert isinstance(result.failure(), PersistenceError)
    assert len(gateway.created) == 1
    assert len(gateway.cancelled) == 1


def test_replayed_idempotency_key_returns_existing_order(checkout, ledger, gateway, command):
    first = checkout.initiate(command(("bread-1", 1), idempotency_key="cart-42")).unwrap()
    second = checkout.initiate(command(("bread-1", 1), idempotency_key="cart-42")).unwrap()

    assert second.order_id == first.order_id
    assert second.client_secret == first.client_secret
    assert gateway.cancelled == []
    assert len(ledger.list(0, 100).unwrap()) == 1


def test_each_checkout_gets_its_own_intent(checkout, ledger, command):
    a = checkout.initiate(command(("bread-1", 1))).unwrap()
    b = checkout.initiate(command(("bread-1", 1))).unwrap()

    intent_a = ledger.get(a.order_id).unwrap().payment_intent_id
    intent_b = ledger.get(b.order_id).unwrap().payment_intent_id
    assert a.order_id != b.order_id
    assert intent_a != intent_b
    assert isinstance(intent_a, PaymentIntentId)
