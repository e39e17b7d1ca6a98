"""Storefront Sales FastAPI application.

Serves carts, orders, payment webhooks and invoices. Commands are processed
synchronously within the request; every request runs inside the Sales
domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied.
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sales.api import install
from sales.config import Settings
from sales.domain import sales
from sales.services import build_services
from sales.utils.logging import configure_logging

settings = Settings.from_env()
configure_logging(json_output=settings.log_json)

sales.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront Sales API",
    description="Shopping carts, orders, payment reconciliation and invoices",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

services = build_services(settings)

install(app, services)
