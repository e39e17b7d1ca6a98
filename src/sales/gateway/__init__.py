"""Payment gateway factory.

``build_gateway(settings)`` selects the adapter named by
``Settings.payment_gateway``:
- FakeGateway for development and testing
- StripeGateway for production
"""

from sales.config import Settings
from sales.gateway.fake_adapter import FakeGateway
from sales.gateway.port import PaymentGateway
from sales.gateway.stripe_adapter import StripeGateway


def build_gateway(settings: Settings) -> PaymentGateway:
    if settings.payment_gateway == "stripe":
        if not settings.stripe_api_key or not settings.stripe_webhook_secret:
            raise ValueError("STRIPE_API_KEY and STRIPE_WEBHOOK_SECRET are required for the stripe gateway")
        return StripeGateway(
            api_key=settings.stripe_api_key,
            webhook_secret=settings.stripe_webhook_secret,
            timeout=settings.dependency_timeout,
        )
    return FakeGateway(webhook_secret=settings.webhook_secret)
