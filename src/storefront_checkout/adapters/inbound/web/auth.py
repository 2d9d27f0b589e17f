from __future__ import annotations

import hmac
from dataclasses import dataclass

from returns.result import Failure, Result, Success

from storefront_checkout.core.domain.model.errors import CheckoutError, Unauthorized


@dataclass(frozen=True)
class AdminTokenGate:
    """Bearer-token check for the admin order routes.

    Without a configured token every request is refused.
    """

    token: str | None = None

    def check(self, authorization: str | None) -> Result[None, CheckoutError]:
        if not self.token:
            return Failure(Unauthorized("admin access is not configured"))
        scheme, _, supplied = (authorization or "").partition(" ")
        if scheme.lower() != "bearer" or not supplied:
            return Failure(Unauthorized("bearer token required"))
        if not hmac.compare_digest(supplied.strip().encode(), self.token.encode()):
            return Failure(Unauthorized("invalid admin token"))
        return Success(None)
