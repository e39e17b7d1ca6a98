"""Invoice generation — command, handler and the Invoice Generator service.

Only orders that have been paid (or moved past paid) are invoiced. The
first call writes the invoice; later calls return the stored one.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from sales.collaborators.port import AccountDirectory, CustomerProfile
from sales.config import Settings
from sales.domain import sales
from sales.errors import InvalidState
from sales.invoice.invoice import Invoice
from sales.locking import KeyedLocks
from sales.order.order import Order, OrderStatus
from sales.order.placement import load_order
from sales.validation import require_identifier, require_timeout

logger = structlog.get_logger(__name__)

_NOT_INVOICEABLE = {OrderStatus.PLACED.value, OrderStatus.CANCELLED.value}


@sales.command(part_of="Invoice")
class GenerateInvoice:
    """Generate the invoice for an order."""

    order_id = Identifier(required=True)
    customer_name = String(max_length=255)
    customer_email = String(max_length=255)


@sales.command_handler(part_of=Invoice)
class GenerateInvoiceHandler:
    @handle(GenerateInvoice)
    def generate_invoice(self, command):
        order = current_domain.repository_for(Order).get(command.order_id)
        customer = CustomerProfile(
            customer_id=str(order.customer_id),
            name=command.customer_name,
            email=command.customer_email,
        )
        invoice = Invoice.generate(order, customer)
        current_domain.repository_for(Invoice).add(invoice)
        return str(invoice.id)


def find_invoice(order_id: str) -> Invoice | None:
    repo = current_domain.repository_for(Invoice)
    invoices = repo._dao.query.filter(order_id=order_id).all().items
    if not invoices:
        return None
    return repo.get(invoices[0].id)


class InvoiceGenerator:
    def __init__(self, accounts: AccountDirectory, locks: KeyedLocks, settings: Settings) -> None:
        self.accounts = accounts
        self.locks = locks
        self.settings = settings

    def generate(self, order_id, timeout=None) -> Invoice:
        order_id = require_identifier(order_id, "order_id")
        timeout = require_timeout(timeout, self.settings.dependency_timeout)

        with self.locks.hold(f"invoice:{order_id}"):
            order = load_order(order_id)
            if order.status in _NOT_INVOICEABLE:
                raise InvalidState(
                    f"Order {order_id} is {order.status} and cannot be invoiced",
                    entity="Order",
                    id=order_id,
                    current=order.status,
                )

            existing = find_invoice(order_id)
            if existing is not None:
                return existing

            customer = self.accounts.fetch_customer(str(order.customer_id), timeout)
            invoice_id = current_domain.process(
                GenerateInvoice(
                    order_id=order_id,
                    customer_name=customer.name,
                    customer_email=customer.email,
                ),
                asynchronous=False,
            )

        logger.info("Invoice generated", order_id=order_id, invoice_id=invoice_id, total=order.total)
        return current_domain.repository_for(Invoice).get(invoice_id)
