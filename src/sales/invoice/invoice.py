"""Invoice aggregate (CQRS) — a point-in-time financial snapshot of an order.

An invoice copies the order's frozen lines and total together with the
customer's name and e-mail as known when it was generated. It is written
once per order and never changes afterwards, so every later read renders
the same document.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from sales.domain import sales
from sales.invoice.events import InvoiceGenerated
from sales.money import sum_lines, to_money


def invoice_number_for(order_id) -> str:
    return "INV-" + str(order_id).replace("-", "")[:12].upper()


@sales.entity(part_of="Invoice")
class InvoiceLine:
    """A line item on an invoice."""

    position = Integer(default=0)
    product_id = Identifier(required=True)
    description = String(required=True, max_length=500)
    quantity = Integer(required=True, min_value=1)
    unit_price = String(required=True, max_length=32)
    amount = String(required=True, max_length=32)


@sales.aggregate
class Invoice:
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    invoice_number = String(required=True, max_length=50)
    customer_name = String(max_length=255)
    customer_email = String(max_length=255)
    lines = HasMany(InvoiceLine)
    total = String(required=True, max_length=32)
    currency = String(max_length=3, default="USD")
    issued_at = DateTime()

    @invariant.post
    def total_must_equal_sum_of_lines(self):
        if not self.lines:
            return
        expected = sum_lines((line.quantity, line.unit_price) for line in self.lines)
        if to_money(self.total) != expected:
            raise ValidationError({"total": [f"Invoice total {self.total} does not match its lines ({expected})"]})

    @classmethod
    def generate(cls, order, customer):
        """Snapshot ``order`` for ``customer`` (a ``CustomerProfile``)."""
        now = datetime.now(UTC)
        invoice_number = invoice_number_for(order.id)

        invoice = cls(
            order_id=str(order.id),
            customer_id=str(order.customer_id),
            invoice_number=invoice_number,
            customer_name=customer.name,
            customer_email=customer.email,
            lines=[
                InvoiceLine(
                    position=position,
                    product_id=line.product_id,
                    description=line.title or str(line.product_id),
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    amount=str(line.amount),
                )
                for position, line in enumerate(order.ordered_lines())
            ],
            total=order.total,
            currency=order.currency,
            issued_at=now,
        )

        invoice.raise_(
            InvoiceGenerated(
                invoice_id=str(invoice.id),
                order_id=str(order.id),
                customer_id=str(order.customer_id),
                invoice_number=invoice_number,
                total=order.total,
                currency=order.currency,
                issued_at=now,
            )
        )
        return invoice

    def as_document(self) -> dict:
        """Render the invoice with keys and lines in a stable order."""
        return {
            "invoice_number": self.invoice_number,
            "order_id": str(self.order_id),
            "issued_at": self.issued_at.isoformat() if self.issued_at else None,
            "customer": {
                "id": str(self.customer_id),
                "name": self.customer_name,
                "email": self.customer_email,
            },
            "lines": [
                {
                    "product_id": str(line.product_id),
                    "description": line.description,
                    "quantity": line.quantity,
                    "unit_price": line.unit_price,
                    "amount": line.amount,
                }
                for line in sorted(self.lines, key=lambda line: line.position)
            ],
            "total": self.total,
            "currency": self.currency,
        }
