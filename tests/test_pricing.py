from dataclasses import dataclass, field

from returns.result import Failure, Success

from storefront_checkout.core.domain.model.errors import (
    DuplicateCartItem,
    EmptyCart,
    InvalidQuantity,
    ItemUnavailable,
    MissingCustomerContact,
    PersistenceError,
)
from storefront_checkout.core.domain.model.order import Money
from storefront_checkout.core.domain.service.pricing import price_cart


@dataclass
class CountingCatalog:
    calls: list = field(default_factory=list)

    def lookup(self, item_ids):
        self.calls.append(tuple(item_ids))
        return Success(())


@dataclass
class BrokenCatalog:
    def lookup(self, item_ids):
        return Failure(PersistenceError("catalog offline"))


def test_prices_come_from_catalog(catalog, command):
    result = price_cart(command(("bread-1", 2)), catalog)

    assert isinstance(result, Success)
    cart = result.unwrap()
    assert cart.total == Money.of(1800)
    assert [(it.item_id.value, it.name, it.unit_price.amount, it.quantity) for it in cart.items] == [
        ("bread-1", "Country Loaf", 900, 2)
    ]


def test_total_is_sum_of_line_subtotals(catalog, command):
    cart = price_cart(command(("bread-1", 1), ("bun-6", 3)), catalog).unwrap()

    assert cart.total.amount == 900 + 3 * 1200
    assert sum(it.subtotal().amount for it in cart.items) == cart.total.amount


def test_unknown_item_fails_whole_cart(catalog, command):
    result = price_cart(command(("bread-1", 1), ("ghost-item", 1)), catalog)

    assert isinstance(result, Failure)
    err = result.failure()
    assert isinstance(err, ItemUnavailable)
    assert err.item_ids == ("ghost-item",)


def test_inactive_item_is_unavailable(catalog, command):
    err = price_cart(command(("cake-old", 1)), catalog).failure()

    assert isinstance(err, ItemUnavailable)
    assert err.item_ids == ("cake-old",)


def test_unavailable_ids_are_reported_together(catalog, command):
    err = price_cart(command(("ghost-item", 1), ("bread-1", 1), ("cake-old", 2)), catalog).failure()

    assert err.item_ids == ("ghost-item", "cake-old")


def test_empty_cart_is_rejected_before_catalog_lookup(command):
    counting = CountingCatalog()

    err = price_cart(command(), counting).failure()

    assert isinstance(err, EmptyCart)
    assert counting.calls == []


def test_missing_email_is_rejected(catalog, command):
    assert isinstance(
        price_cart(command(("bread-1", 1), email=""), catalog).failure(), MissingCustomerContact
    )
    assert isinstance(
        price_cart(command(("bread-1", 1), email="   "), catalog).failure(), MissingCustomerContact
    )


def test_non_positive_quantity_is_rejected(catalog, command):
    for qty in (0, -1):
        err = price_cart(command(("bread-1", qty)), catalog).failure()
        assert isinstance(err, InvalidQuantity)
        assert err.item_id == "bread-1"


def test_duplicate_item_ids_are_rejected(catalog, command):
    err = price_cart(command(("bread-1", 1), ("bread-1", 2)), catalog).failure()

    assert isinstance(err, DuplicateCartItem)
    assert err.item_id == "bread-1"


def test_catalog_failure_propagates(command):
    err = price_cart(command(("bread-1", 1)), BrokenCatalog()).failure()

    assert isinstance(err, PersistenceError)


def test_email_and_name_are_normalized(catalog, command):
    cart = price_cart(command(("bread-1", 1), email=" ada@example.com ", name="  "), catalog).unwrap()

    assert cart.customer_email == "ada@example.com"
    assert cart.customer_name is None
