from __future__ import annotations

import json
from typing import Any

from returns.result import Success

from storefront_checkout.core.domain.service.pricing import price_cart
from storefront_checkout.core.ports.inbound.initiate_checkout import (
    CartLine,
    InitiateCheckoutCommand,
)
from storefront_checkout.core.ports.outbound.catalog import CatalogReader


def run_quote(catalog: CatalogReader, raw: str, currency: str = "usd") -> int:
    """
    Price a cart against the catalog without touching the processor.

    raw: JSON string.
    Example:
      {"customer_email":"ada@example.com",
       "items":[{"id":"bread-1","quantity":2}]}
    """
    try:
        payload = json.loads(raw)
        cmd = _parse_command(payload)
    except (ValueError, TypeError, KeyError, AttributeError) as e:
        print(f"invalid_input: {e}")
        return 2

    result = price_cart(cmd, catalog, currency=currency)

    if isinstance(result, Success):
        cart = result.unwrap()
        print(
            "[ok]",
            json.dumps(
                {
                    "customer_email": cart.customer_email,
                    "items": [
                        {
                            "id": it.item_id.value,
                            "name": it.name,
                            "price": it.unit_price.amount,
                            "quantity": it.quantity,
                        }
                        for it in cart.items
                    ],
                    "total_amount": cart.total.amount,
                    "currency": cart.total.currency,
                }
            ),
        )
        return 0

    err = result.failure()
    print("[ng]", str(err))
    return 1


def _parse_command(payload: dict[str, Any]) -> InitiateCheckoutCommand:
    lines = [
        CartLine(item_id=str(x["id"]), quantity=int(x["quantity"]))
        for x in payload.get("items", [])
    ]
    return InitiateCheckoutCommand(
        customer_email=str(payload.get("customer_email") or ""),
        customer_name=payload.get("customer_name"),
        lines=tuple(lines),
    )
