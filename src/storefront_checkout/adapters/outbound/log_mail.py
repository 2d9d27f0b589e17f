from __future__ import annotations

import uuid
from dataclasses import dataclass, field

import structlog
from returns.result import Result, Success

from storefront_checkout.core.domain.model.errors import CheckoutError
from storefront_checkout.core.ports.outbound.mail import EmailMessage, MailTransport

logger = structlog.get_logger(component="mail")


@dataclass
class LogMailTransport(MailTransport):
    """Development transport: logs the message instead of delivering it."""

    sent: list[EmailMessage] = field(default_factory=list)

    def send(self, message: EmailMessage) -> Result[str, CheckoutError]:
        message_id = f"log-{uuid.uuid4().hex[:16]}"
        self.sent.append(message)
        logger.info("mail_logged", to=message.to, subject=message.subject, message_id=message_id)
        return Success(message_id)
