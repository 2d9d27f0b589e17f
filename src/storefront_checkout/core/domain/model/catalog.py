from __future__ import annotations

from dataclasses import dataclass

from storefront_checkout.core.domain.model.order import CatalogItemId, Money


@dataclass(frozen=True)
class CatalogItem:
    item_id: CatalogItemId
    name: str
    unit_price: Money
    available: bool = True
    image_url: str | None = None
