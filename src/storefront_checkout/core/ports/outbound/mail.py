from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from returns.result import Result

from storefront_checkout.core.domain.model.errors import CheckoutError


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    text_body: str
    html_body: str


class MailTransport(Protocol):
    def send(self, message: EmailMessage) -> Result[str, CheckoutError]:
        """Deliver ``message``; Success carries the transport's message id."""
        ...
