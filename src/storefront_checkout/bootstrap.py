from __future__ import annotations

from dataclasses import dataclass

import structlog
from fastapi import FastAPI

from storefront_checkout.adapters.inbound.web.auth import AdminTokenGate
from storefront_checkout.adapters.inbound.web.fastapi_app import create_app
from storefront_checkout.adapters.outbound.background_notifications import (
    BackgroundNotificationQueue,
)
from storefront_checkout.adapters.outbound.dummy_payment import DummyPaymentGateway
from storefront_checkout.adapters.outbound.in_memory_catalog import InMemoryCatalog
from storefront_checkout.adapters.outbound.in_memory_orders import InMemoryOrderLedger
from storefront_checkout.adapters.outbound.log_mail import LogMailTransport
from storefront_checkout.adapters.outbound.ses_mail import SesMailTransport
from storefront_checkout.adapters.outbound.sqlalchemy_catalog import SqlAlchemyCatalog
from storefront_checkout.adapters.outbound.sqlalchemy_db import (
    create_db_engine,
    create_session_factory,
    init_schema,
)
from storefront_checkout.adapters.outbound.sqlalchemy_orders import SqlAlchemyOrderLedger
from storefront_checkout.adapters.outbound.stripe_payment import StripePaymentGateway
from storefront_checkout.config import Settings
from storefront_checkout.core.domain.model.catalog import CatalogItem
from storefront_checkout.core.domain.model.order import CatalogItemId, Money
from storefront_checkout.core.domain.service.checkout_service import (
    CheckoutDeps,
    CheckoutService,
)
from storefront_checkout.core.domain.service.get_order_service import (
    GetOrderDeps,
    GetOrderService,
)
from storefront_checkout.core.domain.service.list_orders_service import (
    ListOrdersDeps,
    ListOrdersService,
)
from storefront_checkout.core.domain.service.notification_service import (
    NotificationDeps,
    NotificationService,
    ShopProfile,
)
from storefront_checkout.core.domain.service.reconcile_service import (
    ReconcileDeps,
    ReconcileService,
)
from storefront_checkout.core.ports.outbound.catalog import CatalogReader
from storefront_checkout.core.ports.outbound.mail import MailTransport
from storefront_checkout.core.ports.outbound.orders import OrderLedger
from storefront_checkout.core.ports.outbound.payment import PaymentGateway
from storefront_checkout.logging_config import configure_logging

logger = structlog.get_logger(component="bootstrap")


@dataclass(frozen=True)
class UseCases:
    checkout: CheckoutService
    reconcile: ReconcileService
    get_order: GetOrderService
    list_orders: ListOrdersService
    notifications: BackgroundNotificationQueue

    def close(self) -> None:
        self.notifications.close()


def demo_catalog(currency: str) -> InMemoryCatalog:
    return InMemoryCatalog.of(
        [
            CatalogItem(CatalogItemId("bread-1"), "Country Loaf", Money.of(900, currency)),
            CatalogItem(CatalogItemId("bun-6"), "Milk Buns (6)", Money.of(1200, currency)),
            CatalogItem(
                CatalogItemId("cake-old"), "Seasonal Cake", Money.of(3500, currency), available=False
            ),
        ]
    )


def build_storage(settings: Settings) -> tuple[CatalogReader, OrderLedger]:
    if not settings.database_url:
        return demo_catalog(settings.currency), InMemoryOrderLedger()

    engine = create_db_engine(settings.database_url)
    init_schema(engine)
    sessions = create_session_factory(engine)
    return (
        SqlAlchemyCatalog(sessions, currency=settings.currency),
        SqlAlchemyOrderLedger(sessions),
    )


def build_payment(settings: Settings) -> PaymentGateway:
    if settings.stripe_secret_key:
        return StripePaymentGateway(
            api_key=settings.stripe_secret_key,
            webhook_secret=settings.stripe_webhook_secret,
        )
    logger.warning("stripe_not_configured", gateway="dummy")
    return DummyPaymentGateway(webhook_secret=settings.stripe_webhook_secret)


def build_mail(settings: Settings) -> MailTransport:
    if settings.mail_backend == "ses":
        return SesMailTransport.create(settings.aws_region, settings.ses_from_email)
    return LogMailTransport()


def build_usecases(
    settings: Settings,
    catalog: CatalogReader | None = None,
    orders: OrderLedger | None = None,
    payment: PaymentGateway | None = None,
    mail: MailTransport | None = None,
) -> UseCases:
    if catalog is None or orders is None:
        default_catalog, default_orders = build_storage(settings)
        catalog = catalog or default_catalog
        orders = orders or default_orders
    payment = payment or build_payment(settings)
    mail = mail or build_mail(settings)

    notifier = NotificationService(
        NotificationDeps(
            mail=mail,
            shop=ShopProfile(
                name=settings.shop_name,
                pickup_address=settings.pickup_address,
                pickup_time=settings.pickup_time,
            ),
        )
    )
    queue = BackgroundNotificationQueue(notifier, workers=settings.notifier_workers)

    return UseCases(
        checkout=CheckoutService(
            CheckoutDeps(
                catalog=catalog, payment=payment, orders=orders, currency=settings.currency
            )
        ),
        reconcile=ReconcileService(
            ReconcileDeps(payment=payment, orders=orders, notifications=queue)
        ),
        get_order=GetOrderService(GetOrderDeps(orders=orders)),
        list_orders=ListOrdersService(ListOrdersDeps(orders=orders)),
        notifications=queue,
    )


def build_app(settings: Settings, usecases: UseCases | None = None) -> FastAPI:
    usecases = usecases or build_usecases(settings)
    return create_app(
        usecases.checkout,
        usecases.reconcile,
        usecases.get_order,
        usecases.list_orders,
        admin_gate=AdminTokenGate(settings.admin_api_token),
        on_shutdown=usecases.close,
    )


def create_asgi_app() -> FastAPI:
    settings = Settings.from_env()
    configure_logging(settings.log_level, json=settings.log_json)
    return build_app(settings)
