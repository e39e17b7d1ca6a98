"""FastAPI routes for the Sales domain — carts, orders, payments and invoices.

Routes that reach collaborators or wait on keyed locks are plain ``def`` so
FastAPI runs them in its threadpool; the webhook reads the raw body
asynchronously and hands the blocking work to the threadpool itself.
"""

from fastapi import APIRouter, Depends, Header, Request
from fastapi.concurrency import run_in_threadpool

from sales.actors import Actor
from sales.api.dependencies import get_actor, get_customer_id, get_services
from sales.api.schemas import (
    AddCartItemRequest,
    CartResponse,
    HealthResponse,
    InvoiceResponse,
    OrderResponse,
    PaymentIntentResponse,
    TransitionOrderRequest,
    UpdateCartItemRequest,
    WebhookAckResponse,
)
from sales.domain import sales
from sales.services import SalesServices

# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
def view_cart(
    customer_id: str = Depends(get_customer_id),
    services: SalesServices = Depends(get_services),
) -> CartResponse:
    """Return the caller's cart; an empty cart when none exists yet."""
    return CartResponse.from_cart(customer_id, services.carts.view(customer_id))


@cart_router.post("/items", response_model=CartResponse)
def add_cart_item(
    body: AddCartItemRequest,
    customer_id: str = Depends(get_customer_id),
    services: SalesServices = Depends(get_services),
) -> CartResponse:
    cart = services.carts.add_item(customer_id, body.product_id, body.quantity)
    return CartResponse.from_cart(customer_id, cart)


@cart_router.patch("/items/{line_id}", response_model=CartResponse)
def update_cart_item(
    line_id: str,
    body: UpdateCartItemRequest,
    customer_id: str = Depends(get_customer_id),
    services: SalesServices = Depends(get_services),
) -> CartResponse:
    cart = services.carts.update_item(customer_id, line_id, body.quantity)
    return CartResponse.from_cart(customer_id, cart)


@cart_router.delete("/items/{line_id}", response_model=CartResponse)
def remove_cart_item(
    line_id: str,
    customer_id: str = Depends(get_customer_id),
    services: SalesServices = Depends(get_services),
) -> CartResponse:
    cart = services.carts.remove_item(customer_id, line_id)
    return CartResponse.from_cart(customer_id, cart)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
def place_order(
    customer_id: str = Depends(get_customer_id),
    services: SalesServices = Depends(get_services),
) -> OrderResponse:
    """Turn the caller's cart into an order."""
    return OrderResponse.from_order(services.orders.place_order(customer_id))


@order_router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: str,
    actor: Actor = Depends(get_actor),
    services: SalesServices = Depends(get_services),
) -> OrderResponse:
    return OrderResponse.from_order(services.orders.get_order(order_id, actor))


@order_router.patch("/{order_id}/status", response_model=OrderResponse)
def transition_order(
    order_id: str,
    body: TransitionOrderRequest,
    actor: Actor = Depends(get_actor),
    services: SalesServices = Depends(get_services),
) -> OrderResponse:
    """Move an order along its lifecycle."""
    return OrderResponse.from_order(services.lifecycle.transition(order_id, body.status, actor))


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/intents/{order_id}", response_model=PaymentIntentResponse)
def create_payment_intent(
    order_id: str,
    actor: Actor = Depends(get_actor),
    services: SalesServices = Depends(get_services),
) -> PaymentIntentResponse:
    """Create (or return the existing) gateway payment intent for a placed order."""
    services.orders.get_order(order_id, actor)
    return PaymentIntentResponse.from_ref(services.payments.create_payment_intent(order_id))


@payment_router.post("/webhook", response_model=WebhookAckResponse)
async def process_webhook(
    request: Request,
    x_gateway_signature: str = Header(default=""),
    services: SalesServices = Depends(get_services),
) -> WebhookAckResponse:
    """Receive a gateway event. The raw body is what the gateway signed."""
    payload = await request.body()
    outcome = await run_in_threadpool(services.payments.apply_gateway_event, payload, x_gateway_signature)
    return WebhookAckResponse.from_outcome(outcome)


# ---------------------------------------------------------------------------
# Invoice Router
# ---------------------------------------------------------------------------
invoice_router = APIRouter(prefix="/invoices", tags=["invoices"])


@invoice_router.get("/{order_id}", response_model=InvoiceResponse)
def get_invoice(
    order_id: str,
    actor: Actor = Depends(get_actor),
    services: SalesServices = Depends(get_services),
) -> InvoiceResponse:
    """Return the order's invoice, generating it on first request."""
    services.orders.get_order(order_id, actor)
    return InvoiceResponse.from_invoice(services.invoices.generate(order_id))


# ---------------------------------------------------------------------------
# Health Router
# ---------------------------------------------------------------------------
health_router = APIRouter(tags=["health"])


@health_router.get("/health", response_model=HealthResponse)
async def health(services: SalesServices = Depends(get_services)) -> HealthResponse:
    return HealthResponse(status="ok", domain=sales.name, gateway=type(services.gateway).__name__)
