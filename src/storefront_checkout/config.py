from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from storefront_checkout.core.domain.model.order import DEFAULT_CURRENCY


def _flag(raw: str | None) -> bool:
    return (raw or "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Process configuration, read once from the environment at startup."""

    stripe_secret_key: str | None = None
    stripe_webhook_secret: str = "whsec_dev"
    currency: str = DEFAULT_CURRENCY
    database_url: str | None = None
    admin_api_token: str | None = None
    mail_backend: str = "log"  # log | ses
    aws_region: str = "us-east-1"
    ses_from_email: str = "orders@example.com"
    shop_name: str = "Storefront"
    pickup_address: str = "123 Bakery Lane, New York, NY"
    pickup_time: str = "Saturday, 10:00 AM - 2:00 PM"
    notifier_workers: int = 2
    log_level: str = "INFO"
    log_json: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if env is None else env
        d = cls()
        return cls(
            stripe_secret_key=env.get("STRIPE_SECRET_KEY") or None,
            stripe_webhook_secret=env.get("STRIPE_WEBHOOK_SECRET", d.stripe_webhook_secret),
            currency=env.get("CHECKOUT_CURRENCY", d.currency).lower(),
            database_url=env.get("DATABASE_URL") or None,
            admin_api_token=env.get("ADMIN_API_TOKEN") or None,
            mail_backend=env.get("MAIL_BACKEND", d.mail_backend).lower(),
            aws_region=env.get("AWS_REGION", d.aws_region),
            ses_from_email=env.get("SES_FROM_EMAIL", d.ses_from_email),
            shop_name=env.get("SHOP_NAME", d.shop_name),
            pickup_address=env.get("PICKUP_ADDRESS", d.pickup_address),
            pickup_time=env.get("PICKUP_TIME", d.pickup_time),
            notifier_workers=int(env.get("NOTIFIER_WORKERS", str(d.notifier_workers))),
            log_level=env.get("LOG_LEVEL", d.log_level).upper(),
            log_json=_flag(env.get("LOG_JSON")),
            host=env.get("HOST", d.host),
            port=int(env.get("PORT", str(d.port))),
        )
