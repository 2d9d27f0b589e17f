from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from returns.result import Failure, Result, Success

from storefront_checkout.core.domain.model.errors import CheckoutError, NotificationError
from storefront_checkout.core.ports.outbound.mail import EmailMessage, MailTransport


@dataclass(frozen=True)
class SesMailTransport(MailTransport):
    client: Any
    from_email: str

    @classmethod
    def create(cls, region: str, from_email: str) -> "SesMailTransport":
        return cls(client=boto3.client("ses", region_name=region), from_email=from_email)

    def send(self, message: EmailMessage) -> Result[str, CheckoutError]:
        try:
            response = self.client.send_email(
                Source=self.from_email,
                Destination={"ToAddresses": [message.to]},
                Message={
                    "Subject": {"Data": message.subject, "Charset": "UTF-8"},
                    "Body": {
                        "Text": {"Data": message.text_body, "Charset": "UTF-8"},
                        "Html": {"Data": message.html_body, "Charset": "UTF-8"},
                    },
                },
            )
        except (BotoCoreError, ClientError) as exc:
            return Failure(NotificationError(f"ses send failed: {exc}"))
        return Success(str(response.get("MessageId", "")))
