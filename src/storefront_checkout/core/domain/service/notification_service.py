from __future__ import annotations

from dataclasses import dataclass
from html import escape

import structlog
from returns.result import Failure, Result, Success

from storefront_checkout.core.domain.model.errors import CheckoutError, NotificationError
from storefront_checkout.core.domain.model.order import Order, OrderStatus
from storefront_checkout.core.ports.outbound.mail import EmailMessage, MailTransport
from storefront_checkout.core.ports.outbound.notifications import OrderPaid

logger = structlog.get_logger(component="notifier")


@dataclass(frozen=True)
class ShopProfile:
    name: str = "Storefront"
    pickup_address: str = "123 Bakery Lane, New York, NY"
    pickup_time: str = "Saturday, 10:00 AM - 2:00 PM"


@dataclass(frozen=True)
class NotificationDeps:
    mail: MailTransport
    shop: ShopProfile = ShopProfile()


@dataclass(frozen=True)
class NotificationService:
    """Sends order confirmations. Never raises; failures are logged only."""

    deps: NotificationDeps

    def notify(self, event: OrderPaid) -> Result[str, CheckoutError]:
        order = event.order
        log = logger.bind(order_id=str(order.order_id.value))
        if order.status is not OrderStatus.PAID:
            log.warning("notification_skipped", status=order.status.value)
            return Failure(NotificationError("only paid orders are confirmed"))

        try:
            sent = self.deps.mail.send(render_confirmation(order, self.deps.shop))
        except Exception as exc:  # noqa: BLE001
            sent = Failure(NotificationError(f"mail transport crashed: {exc}"))

        if isinstance(sent, Success):
            log.info("confirmation_sent", to=order.customer_email, message_id=sent.unwrap())
        else:
            log.error("notification_failed", to=order.customer_email, error=str(sent.failure()))
        return sent


def render_confirmation(order: Order, shop: ShopProfile) -> EmailMessage:
    short_id = str(order.order_id.value)[:8]
    greeting = order.customer_name or "Valued Customer"
    lines = [
        f"• {it.name} x{it.quantity} - {it.subtotal().format()}" for it in order.items
    ]

    text = "\n".join(
        [
            f"Thank You for Your Order at {shop.name}!",
            "",
            f"Dear {greeting},",
            "",
            f"Order ID: {order.order_id.value}",
            "",
            "Items:",
            *lines,
            "",
            f"Total: {order.total.format()}",
            "",
            "PICKUP DETAILS:",
            f"Address: {shop.pickup_address}",
            f"Time: {shop.pickup_time}",
            "",
            "We can't wait to see you!",
            "",
            "With warmth,",
            f"The {shop.name} Team",
        ]
    )

    items_html = "".join(
        f'<div class="item">{escape(it.name)} &times; {it.quantity} &mdash; '
        f"{it.subtotal().format()}</div>"
        for it in order.items
    )
    html = (
        "<!DOCTYPE html><html><body>"
        f"<h1>Thank You for Your Order!</h1>"
        f"<p>Dear {escape(greeting)},</p>"
        f"<p>We're thrilled to confirm your order at {escape(shop.name)}!</p>"
        f'<div class="order-details"><div class="order-id">Order ID: {order.order_id.value}</div>'
        f'{items_html}<div class="total">Total: {order.total.format()}</div></div>'
        f'<div class="pickup-info"><h3>Pickup Details</h3>'
        f"<p><strong>Address:</strong> {escape(shop.pickup_address)}</p>"
        f"<p><strong>Time:</strong> {escape(shop.pickup_time)}</p></div>"
        f"<p>With warmth,<br><strong>The {escape(shop.name)} Team</strong></p>"
        "</body></html>"
    )

    return EmailMessage(
        to=order.customer_email,
        subject=f"Order Confirmed! {shop.name} #{short_id}",
        text_body=text,
        html_body=html,
    )
