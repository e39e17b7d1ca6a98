"""Pydantic request/response schemas for the Sales API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands. Amounts are rendered as decimal strings.
"""

from datetime import datetime

from pydantic import BaseModel, StrictInt

from sales.cart.cart import ShoppingCart
from sales.invoice.invoice import Invoice
from sales.order.order import Order
from sales.payment.reconciler import PaymentIntentRef, WebhookOutcome


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------
class AddCartItemRequest(BaseModel):
    product_id: str
    quantity: StrictInt

    model_config = {"json_schema_extra": {"examples": [{"product_id": "prod-001", "quantity": 2}]}}


class UpdateCartItemRequest(BaseModel):
    quantity: StrictInt


class TransitionOrderRequest(BaseModel):
    status: str

    model_config = {"json_schema_extra": {"examples": [{"status": "shipped"}]}}


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------
class CartItemResponse(BaseModel):
    line_id: str
    product_id: str
    quantity: int


class CartResponse(BaseModel):
    cart_id: str | None = None
    customer_id: str
    items: list[CartItemResponse] = []
    item_count: int = 0

    @classmethod
    def from_cart(cls, customer_id: str, cart: ShoppingCart | None) -> "CartResponse":
        if cart is None:
            return cls(customer_id=customer_id)
        items = [
            CartItemResponse(line_id=item["item_id"], product_id=item["product_id"], quantity=item["quantity"])
            for item in cart.snapshot()
        ]
        return cls(
            cart_id=str(cart.id),
            customer_id=str(cart.customer_id),
            items=items,
            item_count=sum(item.quantity for item in items),
        )


class OrderLineResponse(BaseModel):
    line_id: str
    product_id: str
    title: str | None = None
    quantity: int
    unit_price: str
    amount: str


class OrderResponse(BaseModel):
    order_id: str
    customer_id: str
    status: str
    total: str
    currency: str
    payment_intent_id: str | None = None
    lines: list[OrderLineResponse]
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            order_id=str(order.id),
            customer_id=str(order.customer_id),
            status=order.status,
            total=order.total,
            currency=order.currency,
            payment_intent_id=order.payment_intent_id,
            lines=[
                OrderLineResponse(
                    line_id=str(line.id),
                    product_id=str(line.product_id),
                    title=line.title,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    amount=str(line.amount),
                )
                for line in order.ordered_lines()
            ],
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class PaymentIntentResponse(BaseModel):
    order_id: str
    intent_id: str
    client_secret: str | None = None
    amount: str
    currency: str

    @classmethod
    def from_ref(cls, ref: PaymentIntentRef) -> "PaymentIntentResponse":
        return cls(
            order_id=ref.order_id,
            intent_id=ref.intent_id,
            client_secret=ref.client_secret,
            amount=ref.amount,
            currency=ref.currency,
        )


class WebhookAckResponse(BaseModel):
    status: str = "received"
    result: str
    reason: str = ""

    @classmethod
    def from_outcome(cls, outcome: WebhookOutcome) -> "WebhookAckResponse":
        return cls(result=outcome.result.value, reason=outcome.reason)


class InvoiceCustomer(BaseModel):
    id: str
    name: str | None = None
    email: str | None = None


class InvoiceLineResponse(BaseModel):
    product_id: str
    description: str
    quantity: int
    unit_price: str
    amount: str


class InvoiceResponse(BaseModel):
    invoice_number: str
    order_id: str
    issued_at: str | None = None
    customer: InvoiceCustomer
    lines: list[InvoiceLineResponse]
    total: str
    currency: str

    @classmethod
    def from_invoice(cls, invoice: Invoice) -> "InvoiceResponse":
        return cls(**invoice.as_document())


class HealthResponse(BaseModel):
    status: str
    domain: str
    gateway: str
