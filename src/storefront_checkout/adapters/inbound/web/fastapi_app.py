from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Callable

import structlog
from fastapi import Depends, FastAPI, Header, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from returns.result import Failure, Success
from starlette.concurrency import run_in_threadpool

from storefront_checkout.adapters.inbound.web.auth import AdminTokenGate
from storefront_checkout.core.domain.model.errors import (
    CheckoutError,
    OrderNotFound,
    PaymentProviderUnavailable,
    PersistenceError,
    Unauthorized,
    ValidationError,
    WebhookSignatureInvalid,
)
from storefront_checkout.core.ports.inbound.get_order import (
    GetOrderByIntentQuery,
    GetOrderQuery,
    GetOrderUseCase,
    OrderView,
)
from storefront_checkout.core.ports.inbound.initiate_checkout import (
    CartLine,
    InitiateCheckoutCommand,
    InitiateCheckoutUseCase,
)
from storefront_checkout.core.ports.inbound.list_orders import (
    ListOrdersQuery,
    ListOrdersUseCase,
)
from storefront_checkout.core.ports.inbound.reconcile_payment import (
    ReconcilePaymentUseCase,
    WebhookDelivery,
)

logger = structlog.get_logger(component="web")

# ---- HTTP DTOs (adapter layer) ---------------------------------------------


class CartItemIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1, examples=["bread-1"])
    quantity: int = Field(examples=[2])


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    items: list[CartItemIn] = Field(default_factory=list)
    customer_email: str | None = Field(None, examples=["ada@example.com"])
    customer_name: str | None = Field(None, examples=["Ada"])


class CheckoutResponse(BaseModel):
    client_secret: str
    order_id: str
    total_amount: int
    currency: str


class WebhookAck(BaseModel):
    received: bool = True


class OrderLineOut(BaseModel):
    id: str
    name: str
    price: int
    quantity: int
    subtotal: int
    image_url: str | None


class OrderDetailsResponse(BaseModel):
    order_id: str
    customer_email: str
    customer_name: str | None
    status: str
    total_amount: int
    currency: str
    payment_intent_id: str
    payment_confirmation_id: str | None
    created_at: datetime
    updated_at: datetime
    items: list[OrderLineOut]


class OrderSummaryOut(BaseModel):
    order_id: str
    customer_email: str
    status: str
    total_amount: int
    currency: str
    created_at: datetime


class OrderListResponse(BaseModel):
    offset: int
    limit: int
    items: list[OrderSummaryOut]


class ErrorResponse(BaseModel):
    type: str
    message: str
    details: list[dict[str, Any]] | None = None


class DomainFailure(Exception):
    """Carries a domain error value from a route to the error handler."""

    def __init__(self, error: CheckoutError) -> None:
        super().__init__(str(error))
        self.error = error


def _map_error_to_http(err: CheckoutError) -> tuple[int, ErrorResponse]:
    if isinstance(err, (ValidationError, WebhookSignatureInvalid)):
        return 400, ErrorResponse(type=type(err).__name__, message=str(err))

    if isinstance(err, Unauthorized):
        return 401, ErrorResponse(type=type(err).__name__, message=str(err))

    if isinstance(err, OrderNotFound):
        return 404, ErrorResponse(type=type(err).__name__, message=str(err))

    if isinstance(err, PaymentProviderUnavailable):
        return 503, ErrorResponse(type=type(err).__name__, message=str(err))

    if isinstance(err, PersistenceError):
        return 500, ErrorResponse(type=type(err).__name__, message=str(err))

    return 500, ErrorResponse(type=type(err).__name__, message=str(err))


def _to_details(view: OrderView) -> OrderDetailsResponse:
    return OrderDetailsResponse(
        order_id=str(view.order_id.value),
        customer_email=view.customer_email,
        customer_name=view.customer_name,
        status=view.status.value,
        total_amount=view.total.amount,
        currency=view.total.currency,
        payment_intent_id=view.payment_intent_id.value,
        payment_confirmation_id=view.payment_confirmation_id,
        created_at=view.created_at,
        updated_at=view.updated_at,
        items=[
            OrderLineOut(
                id=ln.item_id,
                name=ln.name,
                price=ln.unit_price.amount,
                quantity=ln.quantity,
                subtotal=ln.subtotal.amount,
                image_url=ln.image_url,
            )
            for ln in view.lines
        ],
    )


def create_app(
    checkout_uc: InitiateCheckoutUseCase,
    reconcile_uc: ReconcilePaymentUseCase,
    get_order_uc: GetOrderUseCase,
    list_orders_uc: ListOrdersUseCase,
    admin_gate: AdminTokenGate,
    on_shutdown: Callable[[], None] | None = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        if on_shutdown is not None:
            on_shutdown()

    app = FastAPI(title="storefront_checkout", lifespan=lifespan)

    # --- exception handlers ---------------------------------------------------

    @app.exception_handler(DomainFailure)
    async def handle_domain_error(_: Request, exc: DomainFailure) -> JSONResponse:
        status, body = _map_error_to_http(exc.error)
        headers = {"WWW-Authenticate": "Bearer"} if status == 401 else None
        return JSONResponse(status_code=status, content=body.model_dump(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        _: Request, exc: RequestValidationError
    ) -> JSONResponse:
        body = ErrorResponse(
            type="RequestValidationError",
            message="invalid request",
            details=[
                {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
                for e in exc.errors()
            ],
        )
        return JSONResponse(status_code=400, content=body.model_dump())

    @app.exception_handler(Exception)
    async def handle_unexpected(_: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_error", error_type=type(exc).__name__)
        body = ErrorResponse(type=type(exc).__name__, message="internal server error")
        return JSONResponse(status_code=500, content=body.model_dump())

    def require_admin(authorization: str | None = Header(None)) -> None:
        checked = admin_gate.check(authorization)
        if isinstance(checked, Failure):
            raise DomainFailure(checked.failure())

    # --- routes -----------------------------------------------------------------

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post(
        "/checkout/initiate",
        response_model=CheckoutResponse,
        status_code=201,
        responses={
            400: {"model": ErrorResponse},
            500: {"model": ErrorResponse},
            503: {"model": ErrorResponse},
        },
    )
    def initiate_checkout(
        req: CheckoutRequest,
        response: Response,
        idempotency_key: str | None = Header(None, alias="Idempotency-Key"),
    ) -> Any:
        cmd = InitiateCheckoutCommand(
            customer_email=req.customer_email or "",
            customer_name=req.customer_name,
            idempotency_key=(idempotency_key or "").strip() or None,
            lines=tuple(CartLine(item_id=it.id, quantity=it.quantity) for it in req.items),
        )

        result = checkout_uc.initiate(cmd)

        if isinstance(result, Success):
            receipt = result.unwrap()
            order_id = str(receipt.order_id.value)
            response.headers["Location"] = f"/orders/{order_id}"
            return CheckoutResponse(
                client_secret=receipt.client_secret,
                order_id=order_id,
                total_amount=receipt.total.amount,
                currency=receipt.total.currency,
            )

        raise DomainFailure(result.failure())

    @app.post(
        "/webhook/payment",
        response_model=WebhookAck,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def payment_webhook(
        request: Request,
        stripe_signature: str | None = Header(None, alias="Stripe-Signature"),
    ) -> Any:
        delivery = WebhookDelivery(payload=await request.body(), signature=stripe_signature or "")
        result = await run_in_threadpool(reconcile_uc.reconcile, delivery)

        if isinstance(result, Success):
            return WebhookAck(received=True)

        raise DomainFailure(result.failure())

    @app.get(
        "/orders",
        response_model=OrderListResponse,
        dependencies=[Depends(require_admin)],
        responses={
            400: {"model": ErrorResponse},
            401: {"model": ErrorResponse},
            500: {"model": ErrorResponse},
        },
    )
    def list_orders(
        offset: int = Query(0, ge=0),
        limit: int = Query(50, ge=1, le=100),
        status: str | None = Query(None, min_length=1),
        sort_by: str = Query("created_at"),
        sort_dir: str = Query("desc"),
    ) -> Any:
        result = list_orders_uc.list_orders(
            ListOrdersQuery(
                offset=offset,
                limit=limit,
                status=status,
                sort_by=sort_by,
                sort_dir=sort_dir,
            )
        )

        if isinstance(result, Success):
            items = result.unwrap()
            return OrderListResponse(
                offset=offset,
                limit=limit,
                items=[
                    OrderSummaryOut(
                        order_id=str(v.order_id.value),
                        customer_email=v.customer_email,
                        status=v.status.value,
                        total_amount=v.total.amount,
                        currency=v.total.currency,
                        created_at=v.created_at,
                    )
                    for v in items
                ],
            )

        raise DomainFailure(result.failure())

    @app.get(
        "/orders/by-intent/{intent_id}",
        response_model=OrderDetailsResponse,
        dependencies=[Depends(require_admin)],
        responses={
            400: {"model": ErrorResponse},
            401: {"model": ErrorResponse},
            404: {"model": ErrorResponse},
        },
    )
    def get_order_by_intent(intent_id: str) -> Any:
        result = get_order_uc.get_order_by_intent(
            GetOrderByIntentQuery(payment_intent_id=intent_id)
        )

        if isinstance(result, Success):
            return _to_details(result.unwrap())

        raise DomainFailure(result.failure())

    @app.get(
        "/orders/{order_id}",
        response_model=OrderDetailsResponse,
        dependencies=[Depends(require_admin)],
        responses={
            400: {"model": ErrorResponse},
            401: {"model": ErrorResponse},
            404: {"model": ErrorResponse},
        },
    )
    def get_order(order_id: str) -> Any:
        result = get_order_uc.get_order(GetOrderQuery(order_id=order_id))

        if isinstance(result, Success):
            return _to_details(result.unwrap())

        raise DomainFailure(result.failure())

    return app
