"""
Cash Ledger: FastAPI application.

This is the entry point for the application.
All routers and the error handler are registered here.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cash_ledger.config import get_settings
from cash_ledger.exceptions import (
    CashLedgerError,
    ConcurrencyConflict,
    NotAuthorized,
    NotFound,
    PartialBatchRejected,
    PersistenceFailure,
    ValidationError,
)
from cash_ledger.logging_config import configure_logging
from cash_ledger.api.health import router as health_router
from cash_ledger.api.accounts import router as accounts_router
from cash_ledger.api.transactions import income_router, outcome_router
from cash_ledger.api.denominations import router as denominations_router
from cash_ledger.api.reconciliation import router as reconciliation_router
from cash_ledger.api.reports import router as reports_router

settings = get_settings()
configure_logging(settings.LOG_LEVEL)

logger = logging.getLogger(__name__)

# First match wins, so subclasses come before their bases
STATUS_CODES: list[tuple[type[CashLedgerError], int]] = [
    (PartialBatchRejected, 400),
    (ValidationError, 400),
    (NotFound, 404),
    (ConcurrencyConflict, 409),
    (NotAuthorized, 403),
    (PersistenceFailure, 503),
]


def status_code_for(exc: CashLedgerError) -> int:
    for error_type, status_code in STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 500


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Cash accounts, income and outcome ledger, "
                "and physical cash reconciliation",
)


@app.exception_handler(CashLedgerError)
async def handle_cash_ledger_error(request: Request, exc: CashLedgerError):
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


# Register routers
app.include_router(health_router)
app.include_router(accounts_router)
app.include_router(income_router)
app.include_router(outcome_router)
app.include_router(denominations_router)
app.include_router(reconciliation_router)
app.include_router(reports_router)
