from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from returns.result import Failure, Result, Success
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from storefront_checkout.adapters.outbound.sqlalchemy_db import ProductRow, connection_guard
from storefront_checkout.core.domain.model.catalog import CatalogItem
from storefront_checkout.core.domain.model.errors import CheckoutError, PersistenceError
from storefront_checkout.core.domain.model.order import DEFAULT_CURRENCY, CatalogItemId, Money
from storefront_checkout.core.ports.outbound.catalog import CatalogReader


@dataclass(frozen=True)
class SqlAlchemyCatalog(CatalogReader):
    session_factory: sessionmaker
    currency: str = DEFAULT_CURRENCY

    def lookup(
        self, item_ids: Sequence[CatalogItemId]
    ) -> Result[Sequence[CatalogItem], CheckoutError]:
        ids = [i.value for i in item_ids]
        if not ids:
            return Success(())
        try:
            with connection_guard(self.session_factory), self.session_factory() as session:
                rows = session.execute(
                    select(ProductRow).where(ProductRow.id.in_(ids))
                ).scalars().all()
        except SQLAlchemyError as exc:
            return Failure(PersistenceError(message=f"catalog lookup failed: {exc}"))

        return Success(tuple(self._to_item(r) for r in rows))

    def _to_item(self, row: ProductRow) -> CatalogItem:
        return CatalogItem(
            item_id=CatalogItemId(row.id),
            name=row.name,
            unit_price=Money.of(row.price, self.currency),
            available=bool(row.is_active),
            image_url=row.image_url,
        )
