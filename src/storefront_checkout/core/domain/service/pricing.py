"""Server-side cart pricing.

Prices always come from the catalog; the cart only contributes ids and
quantities. Any unknown or inactive id fails the whole cart.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence, Tuple

from returns.pipeline import flow
from returns.pointfree import bind
from returns.result import Failure, Result, Success

from storefront_checkout.core.domain.model.catalog import CatalogItem
from storefront_checkout.core.domain.model.errors import (
    CheckoutError,
    DuplicateCartItem,
    EmptyCart,
    InvalidQuantity,
    ItemUnavailable,
    MissingCustomerContact,
)
from storefront_checkout.core.domain.model.order import (
    DEFAULT_CURRENCY,
    CatalogItemId,
    LineItem,
    Money,
    fold_money,
)
from storefront_checkout.core.ports.inbound.initiate_checkout import InitiateCheckoutCommand
from storefront_checkout.core.ports.outbound.catalog import CatalogReader


@dataclass(frozen=True)
class PricedCart:
    customer_email: str
    customer_name: str | None
    items: Tuple[LineItem, ...]
    total: Money


def validate_cart(
    cmd: InitiateCheckoutCommand,
) -> Result[InitiateCheckoutCommand, CheckoutError]:
    if not cmd.lines:
        return Failure(EmptyCart("no items in cart"))
    if not cmd.customer_email or not cmd.customer_email.strip():
        return Failure(MissingCustomerContact("customer email is required"))

    seen: set[str] = set()
    for i, ln in enumerate(cmd.lines):
        if isinstance(ln.quantity, bool) or not isinstance(ln.quantity, int) or ln.quantity <= 0:
            return Failure(
                InvalidQuantity(f"lines[{i}].quantity must be a positive integer", item_id=ln.item_id)
            )
        if ln.item_id in seen:
            return Failure(
                DuplicateCartItem(f"lines[{i}] repeats an item already in the cart", item_id=ln.item_id)
            )
        seen.add(ln.item_id)

    return Success(cmd)


def price_cart(
    cmd: InitiateCheckoutCommand,
    catalog: CatalogReader,
    currency: str = DEFAULT_CURRENCY,
) -> Result[PricedCart, CheckoutError]:
    return flow(
        cmd,
        validate_cart,
        bind(lambda c: _lookup(c, catalog)),
        bind(lambda found: _price(cmd, found, currency)),
    )


def _lookup(
    cmd: InitiateCheckoutCommand, catalog: CatalogReader
) -> Result[Mapping[str, CatalogItem], CheckoutError]:
    ids = tuple(CatalogItemId(ln.item_id) for ln in cmd.lines)
    return catalog.lookup(ids).map(_index_available)


def _index_available(items: Sequence[CatalogItem]) -> Mapping[str, CatalogItem]:
    return {it.item_id.value: it for it in items if it.available}


def _price(
    cmd: InitiateCheckoutCommand,
    found: Mapping[str, CatalogItem],
    currency: str,
) -> Result[PricedCart, CheckoutError]:
    missing = tuple(ln.item_id for ln in cmd.lines if ln.item_id not in found)
    if missing:
        return Failure(ItemUnavailable("some products are unavailable", item_ids=missing))

    items = tuple(
        LineItem(
            item_id=found[ln.item_id].item_id,
            name=found[ln.item_id].name,
            unit_price=found[ln.item_id].unit_price,
            quantity=ln.quantity,
            image_url=found[ln.item_id].image_url,
        )
        for ln in cmd.lines
    )
    return Success(
        PricedCart(
            customer_email=cmd.customer_email.strip(),
            customer_name=(cmd.customer_name or "").strip() or None,
            items=items,
            total=fold_money((it.subtotal() for it in items), currency=currency),
        )
    )
