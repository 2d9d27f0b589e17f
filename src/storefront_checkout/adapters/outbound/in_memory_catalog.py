from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Sequence

from returns.result import Result, Success

from storefront_checkout.core.domain.model.catalog import CatalogItem
from storefront_checkout.core.domain.model.errors import CheckoutError
from storefront_checkout.core.domain.model.order import CatalogItemId
from storefront_checkout.core.ports.outbound.catalog import CatalogReader


@dataclass
class InMemoryCatalog(CatalogReader):
    items_by_id: Dict[str, CatalogItem] = field(default_factory=dict)

    @classmethod
    def of(cls, items: Iterable[CatalogItem]) -> "InMemoryCatalog":
        return cls({it.item_id.value: it for it in items})

    def lookup(
        self, item_ids: Sequence[CatalogItemId]
    ) -> Result[Sequence[CatalogItem], CheckoutError]:
        found = (self.items_by_id.get(i.value) for i in item_ids)
        return Success(tuple(it for it in found if it is not None))
