"""Runtime settings for the Sales domain, read from environment variables."""

import os

from pydantic import BaseModel, Field


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Service configuration.

    Timeouts are in seconds. ``dependency_timeout`` bounds every call to the
    catalogue, account and payment-gateway collaborators unless the caller
    passes its own; ``lock_timeout`` bounds the wait for a per-entity lock
    before the request fails with ``Conflict``.
    """

    model_config = {"frozen": True}

    currency: str = Field(default="USD", min_length=3, max_length=3)
    dependency_timeout: float = Field(default=2.0, gt=0)
    lock_timeout: float = Field(default=5.0, gt=0)
    admin_api_key: str = "dev-admin-key"

    payment_gateway: str = Field(default="fake", pattern="^(fake|stripe)$")
    webhook_secret: str = "whsec_test"
    stripe_api_key: str | None = None
    stripe_webhook_secret: str | None = None

    catalogue_service_url: str | None = None
    account_service_url: str | None = None

    log_json: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            currency=os.environ.get("SALES_CURRENCY", "USD").upper(),
            dependency_timeout=float(os.environ.get("SALES_DEPENDENCY_TIMEOUT", "2.0")),
            lock_timeout=float(os.environ.get("SALES_LOCK_TIMEOUT", "5.0")),
            admin_api_key=os.environ.get("SALES_ADMIN_API_KEY", "dev-admin-key"),
            payment_gateway=os.environ.get("SALES_PAYMENT_GATEWAY", "fake").lower(),
            webhook_secret=os.environ.get("SALES_WEBHOOK_SECRET", "whsec_test"),
            stripe_api_key=os.environ.get("STRIPE_API_KEY"),
            stripe_webhook_secret=os.environ.get("STRIPE_WEBHOOK_SECRET"),
            catalogue_service_url=os.environ.get("CATALOGUE_SERVICE_URL"),
            account_service_url=os.environ.get("ACCOUNT_SERVICE_URL"),
            log_json=_env_bool("SALES_LOG_JSON", False),
        )
