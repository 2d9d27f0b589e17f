from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CheckoutError(Exception):
    message: str

    def __str__(self) -> str:  # pragma: no cover
        return self.message


@dataclass(frozen=True)
class ValidationError(CheckoutError):
    pass


@dataclass(frozen=True)
class EmptyCart(ValidationError):
    pass


@dataclass(frozen=True)
class MissingCustomerContact(ValidationError):
    pass


@dataclass(frozen=True)
class InvalidQuantity(ValidationError):
    item_id: str

    def __str__(self) -> str:  # pragma: no cover
        return f"invalid_quantity: item={self.item_id} ({self.message})"


@dataclass(frozen=True)
class DuplicateCartItem(ValidationError):
    item_id: str

    def __str__(self) -> str:  # pragma: no cover
        return f"duplicate_cart_item: item={self.item_id} ({self.message})"


@dataclass(frozen=True)
class ItemUnavailable(ValidationError):
    item_ids: tuple[str, ...]

    def __str__(self) -> str:  # pragma: no cover
        return f"item_unavailable: items={','.join(self.item_ids)} ({self.message})"


@dataclass(frozen=True)
class PaymentProviderUnavailable(CheckoutError):
    pass


@dataclass(frozen=True)
class WebhookSignatureInvalid(CheckoutError):
    pass


@dataclass(frozen=True)
class PersistenceError(CheckoutError):
    pass


@dataclass(frozen=True)
class OrderNotFound(PersistenceError):
    order_id: str

    def __str__(self) -> str:  # pragma: no cover
        return f"order_not_found: {self.order_id} ({self.message})"


@dataclass(frozen=True)
class DuplicatePaymentIntent(PersistenceError):
    payment_intent_id: str

    def __str__(self) -> str:  # pragma: no cover
        return f"duplicate_payment_intent: {self.payment_intent_id} ({self.message})"


@dataclass(frozen=True)
class Unauthorized(CheckoutError):
    pass


@dataclass(frozen=True)
class NotificationError(CheckoutError):
    pass
