"""Domain events for the Invoice aggregate."""

from protean.fields import DateTime, Identifier, String

from sales.domain import sales


@sales.event(part_of="Invoice")
class InvoiceGenerated:
    """An invoice snapshot was taken for an order."""

    __version__ = 1

    invoice_id = Identifier(required=True)
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    invoice_number = String(required=True)
    total = String(required=True, max_length=32)
    currency = String(required=True, max_length=3)
    issued_at = DateTime(required=True)
