"""In-memory collaborators for development and testing.

Both fakes keep a ``calls`` list and accept a ``latency`` (seconds). A call
whose latency exceeds the caller's timeout fails with ``DependencyTimeout``
without sleeping, so tests can exercise slow collaborators instantly.
"""

import time

from sales.collaborators.port import (
    AccountDirectory,
    Catalogue,
    CustomerProfile,
    ProductSnapshot,
)
from sales.errors import DependencyTimeout, NotFound
from sales.money import to_money


def _simulate_latency(latency: float, timeout: float, service: str) -> None:
    if latency > timeout:
        raise DependencyTimeout(
            f"{service} did not respond within {timeout}s",
            service=service,
            timeout=timeout,
        )
    if latency:
        time.sleep(latency)


class FakeCatalogue(Catalogue):
    """Configurable product catalogue."""

    def __init__(self, latency: float = 0.0) -> None:
        self.latency = latency
        self.products: dict[str, ProductSnapshot] = {}
        self.calls: list[dict] = []

    def add_product(self, product_id: str, title: str, price) -> ProductSnapshot:
        product = ProductSnapshot(product_id=product_id, title=title, price=to_money(price))
        self.products[product_id] = product
        return product

    def set_price(self, product_id: str, price) -> None:
        current = self.products[product_id]
        self.products[product_id] = ProductSnapshot(current.product_id, current.title, to_money(price))

    def remove_product(self, product_id: str) -> None:
        self.products.pop(product_id, None)

    def fetch_product(self, product_id: str, timeout: float) -> ProductSnapshot:
        self.calls.append({"method": "fetch_product", "product_id": product_id, "timeout": timeout})
        _simulate_latency(self.latency, timeout, "catalogue")

        product = self.products.get(product_id)
        if product is None:
            raise NotFound(f"Product {product_id} does not exist", entity="Product", id=product_id)
        return product


class FakeAccountDirectory(AccountDirectory):
    """Configurable customer directory."""

    def __init__(self, latency: float = 0.0) -> None:
        self.latency = latency
        self.customers: dict[str, CustomerProfile] = {}
        self.calls: list[dict] = []

    def add_customer(self, customer_id: str, name: str, email: str) -> CustomerProfile:
        profile = CustomerProfile(customer_id=customer_id, name=name, email=email)
        self.customers[customer_id] = profile
        return profile

    def fetch_customer(self, customer_id: str, timeout: float) -> CustomerProfile:
        self.calls.append({"method": "fetch_customer", "customer_id": customer_id, "timeout": timeout})
        _simulate_latency(self.latency, timeout, "accounts")

        profile = self.customers.get(customer_id)
        if profile is None:
            raise NotFound(f"Customer {customer_id} does not exist", entity="Customer", id=customer_id)
        return profile
