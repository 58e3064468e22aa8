"""
Maps brokerage domain errors to HTTP responses.

Every error response has the shape ``{"error": ..., "detail": ...}``.
Unexpected exceptions become a bare 500 without internals.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from brokerage.core.errors import (
    AlreadyExistsError,
    BrokerageError,
    ConcurrencyConflictError,
    ConcurrentInsertError,
    ForbiddenError,
    InsufficientBalanceError,
    InvalidCredentialsError,
    InvalidQuantityError,
    InvalidStateError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

# most specific first; the first isinstance match wins
ERROR_STATUS: list[tuple[type[BrokerageError], int, str]] = [
    (NotFoundError, 404, "Not found"),
    (ForbiddenError, 403, "Forbidden"),
    (InvalidStateError, 409, "Invalid order state"),
    (InsufficientBalanceError, 400, "Insufficient balance"),
    (InvalidQuantityError, 400, "Invalid quantity"),
    (AlreadyExistsError, 409, "Already exists"),
    (InvalidCredentialsError, 401, "Unauthorized"),
    (ConcurrencyConflictError, 409, "Concurrent update conflict"),
    (ConcurrentInsertError, 409, "Concurrent update conflict"),
]


def _error_response(status_code: int, error: str, detail: str | None = None) -> JSONResponse:
    body: dict[str, str | None] = {"error": error}
    if detail:
        body["detail"] = detail
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def status_for(exc: BrokerageError) -> tuple[int, str]:
    for error_type, status_code, label in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code, label
    return 500, "Internal server error"


def register_error_handlers(app: FastAPI) -> None:
    """Register domain and catch-all error handlers on the application."""

    @app.exception_handler(BrokerageError)
    async def handle_brokerage_error(_request: Request, exc: BrokerageError) -> JSONResponse:
        status_code, label = status_for(exc)
        if status_code >= 500:
            logger.error("Unmapped brokerage error: %s", exc.message)
            return _error_response(status_code, label)
        logger.warning("%s: %s", type(exc).__name__, exc.message)
        return _error_response(status_code, label, exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unexpected error: %s", type(exc).__name__)
        return _error_response(500, "Internal server error")
