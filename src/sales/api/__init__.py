"""HTTP surface of the Sales domain.

``install(app, services)`` mounts the routers, the exception handlers and
the per-request domain context on a FastAPI application.
"""

from fastapi import FastAPI, Request

from sales.api.errors import install_exception_handlers
from sales.api.routes import cart_router, health_router, invoice_router, order_router, payment_router
from sales.domain import sales
from sales.services import SalesServices

routers = (cart_router, order_router, payment_router, invoice_router, health_router)


def install(app: FastAPI, services: SalesServices) -> FastAPI:
    app.state.sales = services

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the Sales domain context for each request."""
        with sales.domain_context():
            response = await call_next(request)
        return response

    for router in routers:
        app.include_router(router)
    install_exception_handlers(app)
    return app
