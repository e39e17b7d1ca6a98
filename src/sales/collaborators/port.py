"""Ports for the collaborators the Sales domain reads from.

The catalogue and the account directory are owned by other services. Sales
only needs a point-in-time snapshot of a product (title and price) and of a
customer (name and e-mail), fetched under a caller-supplied timeout.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class ProductSnapshot:
    """A product as the catalogue describes it right now."""

    product_id: str
    title: str
    price: Decimal


@dataclass(frozen=True)
class CustomerProfile:
    customer_id: str
    name: str
    email: str


class Catalogue(ABC):
    @abstractmethod
    def fetch_product(self, product_id: str, timeout: float) -> ProductSnapshot:
        """Return the product, or raise ``NotFound`` / ``DependencyTimeout``."""
        ...


class AccountDirectory(ABC):
    @abstractmethod
    def fetch_customer(self, customer_id: str, timeout: float) -> CustomerProfile:
        """Return the customer, or raise ``NotFound`` / ``DependencyTimeout``."""
        ...
