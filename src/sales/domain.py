"""Sales bounded context — Shopping Cart, Orders, Payments and Invoicing.

Turns a customer's cart into an immutable order, drives the order through
its fulfillment lifecycle, reconciles payment-gateway webhooks against
orders and snapshots paid orders into invoices.
"""

from protean.domain import Domain

# Domain Composition Root
sales = Domain(name="sales")
