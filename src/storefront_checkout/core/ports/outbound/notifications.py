from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from storefront_checkout.core.domain.model.order import Order


@dataclass(frozen=True)
class OrderPaid:
    order: Order


class NotificationQueue(Protocol):
    """Hand-off point between the reconciler and the notifier.

    ``enqueue`` must not block on delivery and must not raise.
    """

    def enqueue(self, event: OrderPaid) -> None: ...
