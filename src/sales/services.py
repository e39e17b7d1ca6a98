"""Wiring of collaborators and application services.

``build_services`` is the single place where adapters are chosen. Tests pass
fakes explicitly; the application passes nothing and gets what ``Settings``
names: HTTP collaborators when their URLs are set, in-memory fakes otherwise.
"""

from dataclasses import dataclass

import structlog

from sales.cart.store import CartStore
from sales.collaborators.fake_adapter import FakeAccountDirectory, FakeCatalogue
from sales.collaborators.http_adapter import HTTPAccountDirectory, HTTPCatalogue
from sales.collaborators.port import AccountDirectory, Catalogue
from sales.config import Settings
from sales.gateway import build_gateway
from sales.gateway.port import PaymentGateway
from sales.invoice.generation import InvoiceGenerator
from sales.locking import KeyedLocks
from sales.order.lifecycle import OrderStateMachine
from sales.order.placement import OrderBuilder
from sales.payment.reconciler import PaymentReconciler

logger = structlog.get_logger(__name__)


@dataclass
class SalesServices:
    settings: Settings
    catalogue: Catalogue
    accounts: AccountDirectory
    gateway: PaymentGateway
    locks: KeyedLocks
    carts: CartStore
    orders: OrderBuilder
    lifecycle: OrderStateMachine
    payments: PaymentReconciler
    invoices: InvoiceGenerator


def build_services(
    settings: Settings | None = None,
    catalogue: Catalogue | None = None,
    accounts: AccountDirectory | None = None,
    gateway: PaymentGateway | None = None,
) -> SalesServices:
    settings = settings or Settings.from_env()

    if catalogue is None:
        catalogue = (
            HTTPCatalogue(settings.catalogue_service_url) if settings.catalogue_service_url else FakeCatalogue()
        )
    if accounts is None:
        accounts = (
            HTTPAccountDirectory(settings.account_service_url)
            if settings.account_service_url
            else FakeAccountDirectory()
        )
    if gateway is None:
        gateway = build_gateway(settings)

    locks = KeyedLocks(timeout=settings.lock_timeout)
    carts = CartStore(catalogue, accounts, locks, settings)
    lifecycle = OrderStateMachine(locks, settings)

    logger.info(
        "Sales services configured",
        catalogue=type(catalogue).__name__,
        accounts=type(accounts).__name__,
        gateway=type(gateway).__name__,
        currency=settings.currency,
    )
    return SalesServices(
        settings=settings,
        catalogue=catalogue,
        accounts=accounts,
        gateway=gateway,
        locks=locks,
        carts=carts,
        orders=OrderBuilder(carts, catalogue, locks, settings),
        lifecycle=lifecycle,
        payments=PaymentReconciler(gateway, lifecycle, locks, settings),
        invoices=InvoiceGenerator(accounts, locks, settings),
    )
