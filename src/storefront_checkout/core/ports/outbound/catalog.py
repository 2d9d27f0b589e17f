from __future__ import annotations

from typing import Protocol, Sequence

from returns.result import Result

from storefront_checkout.core.domain.model.catalog import CatalogItem
from storefront_checkout.core.domain.model.errors import CheckoutError
from storefront_checkout.core.domain.model.order import CatalogItemId


class CatalogReader(Protocol):
    def lookup(
        self, item_ids: Sequence[CatalogItemId]
    ) -> Result[Sequence[CatalogItem], CheckoutError]:
        """Return the records that exist for ``item_ids``; unknown ids are omitted."""
        ...
