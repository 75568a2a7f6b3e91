"""Custom exception handlers for the API."""
from fastapi import Request
from fastapi.responses import JSONResponse

from portfolio_ask.exceptions import AllTiersFailedError, ContentError, StorageException
from portfolio_ask.logging_config import get_logger

log = get_logger(__name__)

PROVIDER_ERROR = {"error": "provider_error"}


async def all_tiers_failed_handler(request: Request, exc: AllTiersFailedError) -> JSONResponse:
    """Every answer tier failed: the assistant is temporarily unavailable."""
    log.error(
        "all_tiers_failed",
        path=request.url.path,
        failures=[f"{f.tier}:{f.reason}" for f in exc.failures],
    )
    return JSONResponse(status_code=503, content=PROVIDER_ERROR)


async def content_error_handler(request: Request, exc: ContentError) -> JSONResponse:
    """Handle an unreadable or invalid content snapshot."""
    log.error("content_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=503, content=PROVIDER_ERROR)


async def storage_error_handler(request: Request, exc: StorageException) -> JSONResponse:
    """Handle database/storage errors."""
    log.error("storage_error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=503,
        content={"detail": "Database service unavailable.", "error_type": exc.__class__.__name__}
    )
