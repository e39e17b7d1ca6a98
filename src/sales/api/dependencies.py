"""Request-scoped dependencies: the wired services and the calling actor."""

import hmac

from fastapi import Depends, Header, Request

from sales.actors import Actor
from sales.errors import Unauthorized
from sales.services import SalesServices


def get_services(request: Request) -> SalesServices:
    return request.app.state.sales


def get_actor(
    x_customer_id: str = Header(default=""),
    x_admin_key: str = Header(default=""),
    services: SalesServices = Depends(get_services),
) -> Actor:
    """Administrators present X-Admin-Key; customers identify with X-Customer-Id."""
    if x_admin_key:
        if not hmac.compare_digest(x_admin_key, services.settings.admin_api_key):
            raise Unauthorized("Invalid administrator key")
        return Actor.administrator()
    if x_customer_id.strip():
        return Actor.customer(x_customer_id.strip())
    raise Unauthorized("X-Customer-Id header is required")


def get_customer_id(x_customer_id: str = Header(default="")) -> str:
    if not x_customer_id.strip():
        raise Unauthorized("X-Customer-Id header is required")
    return x_customer_id.strip()
