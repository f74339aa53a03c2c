"""
Account Ledger: FastAPI application.

This is the entry point for the application. All routers and
the ledger error handler are registered here.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from account_ledger.config import get_settings, configure_logging
from account_ledger.exceptions import ErrorKind, LedgerError
from account_ledger.models.base import init_db
from account_ledger.api.health import router as health_router
from account_ledger.api.accounts import router as accounts_router
from account_ledger.api.transactions import router as transactions_router

settings = get_settings()
configure_logging(settings.LOG_LEVEL)

logger = logging.getLogger(__name__)

# One place that decides how each error kind looks over HTTP
STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INSUFFICIENT_FUNDS: 422,
    ErrorKind.STORAGE: 503,
}


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", "")}
        for e in exc.errors()
    ]


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("%s %s started", settings.APP_NAME, settings.APP_VERSION)
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Accounts and transactions with consistent balances",
    lifespan=lifespan,
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    status_code = STATUS_BY_KIND.get(exc.kind, 500)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.kind.value, "detail": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
):
    """Malformed request bodies are reported like any other validation error."""
    return JSONResponse(
        status_code=STATUS_BY_KIND[ErrorKind.VALIDATION],
        content={
            "error": ErrorKind.VALIDATION.value,
            "detail": jsonable_errors(exc),
        },
    )


# Register routers
app.include_router(health_router)
app.include_router(accounts_router)
app.include_router(transactions_router)
