"""HTTP status mapping for the marketplace error taxonomy."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers as register_protean_handlers

from marketplace.exceptions import (
    AuthenticationError,
    ConflictError,
    ExternalServiceError,
    InsufficientStockError,
    InvalidStateTransitionError,
    MarketplaceError,
    NotFoundError,
)

STATUS_CODES = {
    NotFoundError: 404,
    InsufficientStockError: 409,
    InvalidStateTransitionError: 409,
    ConflictError: 409,
    AuthenticationError: 401,
    ExternalServiceError: 502,
}


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:  # noqa: ARG001
    status_code = next((code for cls, code in STATUS_CODES.items() if isinstance(exc, cls)), 400)
    return JSONResponse(status_code=status_code, content={"error": exc.messages})


def register_exception_handlers(app: FastAPI) -> None:
    """Protean's handlers (ValidationError -> 400 and friends) plus the marketplace errors."""
    register_protean_handlers(app)
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
