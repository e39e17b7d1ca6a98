"""HTTP adapters for the catalogue and account services.

Connection failures are retried (up to three attempts, exponential backoff)
as long as the next attempt still fits in the caller's timeout. Timeouts
are never retried. Whatever is left after that, a timeout, an unreachable
host or a 5xx answer, surfaces as ``DependencyTimeout``; a 404 surfaces as
``NotFound``.
"""

import time

import requests
import structlog
from tenacity import (
    Retrying,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    stop_before_delay,
    wait_exponential,
)

from sales.collaborators.port import (
    AccountDirectory,
    Catalogue,
    CustomerProfile,
    ProductSnapshot,
)
from sales.errors import DependencyTimeout, NotFound
from sales.money import to_money

logger = structlog.get_logger(__name__)


def http_retry(budget: float) -> Retrying:
    return Retrying(
        reraise=True,
        stop=stop_after_attempt(3) | stop_before_delay(budget),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type(requests.ConnectionError) & retry_if_not_exception_type(requests.Timeout),
    )


class _JSONService:
    service = "service"

    def __init__(self, base_url: str, session: requests.Session | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def _get(self, path: str, deadline: float) -> requests.Response:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise requests.Timeout(f"no time left for {path}")
        url = f"{self.base_url}{path}"
        logger.debug("Collaborator request", service=self.service, url=url)
        return self.session.get(url, timeout=remaining)

    def _unavailable(self, path: str, timeout: float, reason: str) -> DependencyTimeout:
        logger.warning("Collaborator unavailable", service=self.service, path=path, timeout=timeout, reason=reason)
        return DependencyTimeout(
            f"{self.service} did not respond within {timeout}s",
            service=self.service,
            timeout=timeout,
            reason=reason,
        )

    def get_json(self, path: str, timeout: float, entity: str, identifier: str) -> dict:
        deadline = time.monotonic() + timeout
        try:
            response = http_retry(timeout)(self._get, path, deadline)
        except requests.Timeout as exc:
            raise self._unavailable(path, timeout, "timeout") from exc
        except requests.RequestException as exc:
            raise self._unavailable(path, timeout, "unreachable") from exc

        if response.status_code == 404:
            raise NotFound(f"{entity} {identifier} does not exist", entity=entity, id=identifier)
        if response.status_code >= 500:
            raise self._unavailable(path, timeout, f"status {response.status_code}")
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise self._unavailable(path, timeout, f"status {response.status_code}") from exc
        return response.json()


class HTTPCatalogue(_JSONService, Catalogue):
    service = "catalogue"

    def fetch_product(self, product_id: str, timeout: float) -> ProductSnapshot:
        data = self.get_json(f"/products/{product_id}", timeout, "Product", product_id)
        return ProductSnapshot(
            product_id=str(data.get("id", product_id)),
            title=data["title"],
            price=to_money(data["price"]),
        )


class HTTPAccountDirectory(_JSONService, AccountDirectory):
    service = "accounts"

    def fetch_customer(self, customer_id: str, timeout: float) -> CustomerProfile:
        data = self.get_json(f"/customers/{customer_id}", timeout, "Customer", customer_id)
        return CustomerProfile(
            customer_id=str(data.get("id", customer_id)),
            name=data["name"],
            email=data["email"],
        )
