"""Contract tests run against every OrderLedger implementation."""

import threading
from dataclasses import replace
from datetime import timedelta

import pytest
from returns.result import Failure, Success

from storefront_checkout.adapters.outbound.in_memory_orders import InMemoryOrderLedger
from storefront_checkout.adapters.outbound.sqlalchemy_db import (
    create_db_engine,
    create_session_factory,
    init_schema,
)
from storefront_checkout.adapters.outbound.sqlalchemy_orders import SqlAlchemyOrderLedger
from storefront_checkout.core.domain.model.errors import (
    DuplicatePaymentIntent,
    OrderNotFound,
    PersistenceError,
)
from storefront_checkout.core.domain.model.order import OrderId, OrderStatus, PaymentIntentId


def _sqlite_ledger(url: str = "sqlite://") -> SqlAlchemyOrderLedger:
    engine = create_db_engine(url)
    init_schema(engine)
    return SqlAlchemyOrderLedger(create_session_factory(engine))


@pytest.fixture(params=["memory", "sqlite_memory", "sqlite_file"])
def any_ledger(request, tmp_path):
    if request.param == "memory":
        return InMemoryOrderLedger()
    if request.param == "sqlite_file":
        return _sqlite_ledger(f"sqlite:///{tmp_path / 'orders.db'}")
    return _sqlite_ledger()


def test_create_and_read_back(any_ledger, make_order):
    order = make_order("pi_a")

    assert any_ledger.create(order) == Success(order.order_id)

    stored = any_ledger.get(order.order_id).unwrap()
    assert stored.order_id == order.order_id
    assert stored.status is OrderStatus.PENDING
    assert stored.total.amount == 1800
    assert stored.items == order.items
    assert any_ledger.get_by_intent(PaymentIntentId("pi_a")).unwrap().order_id == order.order_id


def test_second_order_for_same_intent_is_rejected(any_ledger, make_order):
    any_ledger.create(make_order("pi_a"))

    result = any_ledger.create(make_order("pi_a"))

    assert isinstance(result, Failure)
    assert isinstance(result.failure(), DuplicatePaymentIntent)


def test_missing_order_is_not_found(any_ledger):
    assert isinstance(any_ledger.get(OrderId.new()).failure(), OrderNotFound)
    assert isinstance(any_ledger.get_by_intent(PaymentIntentId("pi_none")).failure(), OrderNotFound)


def test_transition_to_paid_applies_once(any_ledger, make_order):
    any_ledger.create(make_order("pi_a"))

    first = any_ledger.transition(PaymentIntentId("pi_a"), OrderStatus.PAID, "ch_1").unwrap()
    second = any_ledger.transition(PaymentIntentId("pi_a"), OrderStatus.PAID, "ch_2").unwrap()

    assert first.applied is True
    assert first.order.status is OrderStatus.PAID
    assert first.order.payment_confirmation_id == "ch_1"
    assert second.applied is False
    assert second.order.payment_confirmation_id == "ch_1"


def test_paid_order_never_becomes_failed(any_ledger, make_order):
    order = make_order("pi_a")
    any_ledger.create(order)
    any_ledger.transition(PaymentIntentId("pi_a"), OrderStatus.PAID, "ch_1")

    outcome = any_ledger.transition(PaymentIntentId("pi_a"), OrderStatus.FAILED).unwrap()

    assert outcome.applied is False
    stored = any_ledger.get(order.order_id).unwrap()
    assert stored.status is OrderStatus.PAID
    assert stored.total == order.total


def test_failed_order_never_becomes_paid(any_ledger, make_order):
    any_ledger.create(make_order("pi_a"))
    any_ledger.transition(PaymentIntentId("pi_a"), OrderStatus.FAILED)

    outcome = any_ledger.transition(PaymentIntentId("pi_a"), OrderStatus.PAID, "ch_1").unwrap()

    assert outcome.applied is False
    assert outcome.order.status is OrderStatus.FAILED
    assert outcome.order.payment_confirmation_id is None


def test_transition_for_unknown_intent_reports_no_order(any_ledger):
    outcome = any_ledger.transition(PaymentIntentId("pi_ghost"), OrderStatus.PAID, "ch_1").unwrap()

    assert outcome.order is None
    assert outcome.applied is False


def test_list_filters_and_sorts(any_ledger, make_order):
    base = make_order("pi_a").created_at
    small = replace(make_order("pi_a", quantity=1), created_at=base)
    large = replace(make_order("pi_b", quantity=3), created_at=base + timedelta(seconds=1))
    for o in (small, large):
        any_ledger.create(o)
    any_ledger.transition(PaymentIntentId("pi_b"), OrderStatus.PAID, "ch_1")

    newest_first = any_ledger.list(0, 10).unwrap()
    assert [o.order_id for o in newest_first] == [large.order_id, small.order_id]

    by_total = any_ledger.list(0, 10, sort_by="total", sort_dir="asc").unwrap()
    assert [o.total.amount for o in by_total] == [900, 2700]

    paid = any_ledger.list(0, 10, status=OrderStatus.PAID).unwrap()
    assert [o.order_id for o in paid] == [large.order_id]

    assert len(any_ledger.list(1, 10).unwrap()) == 1


def test_reused_order_id_is_not_reported_as_duplicate_intent(any_ledger, make_order):
    order = make_order("pi_a")
    any_ledger.create(order)

    result = any_ledger.create(replace(order, payment_intent_id=PaymentIntentId("pi_b")))

    assert isinstance(result, Failure)
    assert isinstance(result.failure(), PersistenceError)
    assert not isinstance(result.failure(), DuplicatePaymentIntent)
    assert isinstance(any_ledger.get_by_intent(PaymentIntentId("pi_b")).failure(), OrderNotFound)


def test_concurrent_transitions_have_single_winner(any_ledger, make_order):
    any_ledger.create(make_order("pi_race"))
    barrier = threading.Barrier(16)
    results = []
    lock = threading.Lock()

    def worker(n: int) -> None:
        barrier.wait()
        target = OrderStatus.PAID if n % 2 == 0 else OrderStatus.FAILED
        result = any_ledger.transition(PaymentIntentId("pi_race"), target, f"ch_{n}")
        with lock:
            results.append(result)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 16
    assert [r for r in results if isinstance(r, Failure)] == []
    winners = [r.unwrap() for r in results if r.unwrap().applied]
    assert len(winners) == 1
    final = any_ledger.get_by_intent(PaymentIntentId("pi_race")).unwrap()
    assert final.status is winners[0].order.status
    assert final.payment_confirmation_id == winners[0].order.payment_confirmation_id
