"""Exception handlers mapping domain failures to HTTP responses.

Every error body has the shape ``{"error", "message", "context"}``.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ValidationError
from protean.integrations.fastapi import register_exception_handlers

from sales.errors import SalesError

logger = structlog.get_logger(__name__)


async def sales_error_handler(request: Request, exc: SalesError) -> JSONResponse:
    log = logger.warning if exc.http_status < 500 else logger.error
    log(
        "Request failed",
        path=request.url.path,
        error=exc.kind,
        status=exc.http_status,
        message=exc.message,
    )
    return JSONResponse(status_code=exc.http_status, content=exc.as_dict())


async def domain_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.warning("Domain validation failed", path=request.url.path, messages=exc.messages)
    return JSONResponse(
        status_code=400,
        content={"error": "invalid_argument", "message": "Validation failed", "context": exc.messages},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in error["loc"][1:]), "message": error["msg"]} for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"error": "invalid_argument", "message": "Malformed request", "context": {"errors": errors}},
    )


def install_exception_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    app.add_exception_handler(SalesError, sales_error_handler)
    app.add_exception_handler(ValidationError, domain_validation_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
