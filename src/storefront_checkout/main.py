from __future__ import annotations

import sys

import uvicorn

from storefront_checkout.adapters.inbound.cli import run_quote
from storefront_checkout.bootstrap import build_storage
from storefront_checkout.config import Settings
from storefront_checkout.logging_config import configure_logging

USAGE = "usage: storefront-checkout serve | quote '<json cart>'"


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print(USAGE)
        return 2

    settings = Settings.from_env()
    configure_logging(settings.log_level, json=settings.log_json)

    command, rest = argv[0], argv[1:]
    if command == "serve":
        uvicorn.run(
            "storefront_checkout.bootstrap:create_asgi_app",
            factory=True,
            host=settings.host,
            port=settings.port,
            reload=False,
        )
        return 0
    if command == "quote" and len(rest) == 1:
        catalog, _ = build_storage(settings)
        return run_quote(catalog, rest[0], currency=settings.currency)

    print(USAGE)
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
