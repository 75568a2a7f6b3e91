"""
FastAPI application for the portfolio assistant.
"""
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from portfolio_ask.api.exception_handlers import (
    all_tiers_failed_handler,
    content_error_handler,
    storage_error_handler,
)
from portfolio_ask.api.routers.ask import router as ask_router
from portfolio_ask.api.routers.reindex import router as reindex_router
from portfolio_ask.bootstrap import AppComponents, build_components
from portfolio_ask.config import Settings, get_settings
from portfolio_ask.exceptions import AllTiersFailedError, ContentError, StorageException
from portfolio_ask.logging_config import bind_request_context, configure_logging, get_logger
from portfolio_ask.observability import configure_observability

log = get_logger(__name__)


def _launch_reindex_workflow(components: AppComponents) -> None:
    """Launch DBOS for re-indexing when a token and a database are configured."""
    settings = components.settings
    if not settings.ingest.reindex_token or components.db is None:
        log.info("dbos_skipped", reason="reindex_disabled")
        return
    # Importing the workflow module registers it with DBOS
    from dbos import DBOS
    from portfolio_ask.ingestion.workflow import configure_reindex
    configure_reindex(components.db)
    DBOS.launch()
    log.info("dbos_initialized")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    settings: Settings = get_settings()
    configure_logging(log_level=settings.log_level, json_format=settings.json_logs)
    configure_observability()
    log.info("api_startup", tiers=settings.tier_config().model_dump())

    components = build_components(settings)
    app.state.components = components
    _launch_reindex_workflow(components)
    yield
    await components.close()
    log.info("api_shutdown")


app = FastAPI(
    title="Portfolio Ask API",
    description="Grounded question answering over a personal portfolio",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(ask_router)
app.include_router(reindex_router)

# Exception handlers
app.add_exception_handler(AllTiersFailedError, all_tiers_failed_handler)
app.add_exception_handler(ContentError, content_error_handler)
app.add_exception_handler(StorageException, storage_error_handler)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Bind a request id to every log line emitted while handling the request."""
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
    bind_request_context(request_id=request_id, path=request.url.path)
    response = await call_next(request)
    response.headers["x-request-id"] = request_id
    return response


@app.get("/health")
async def health_check(request: Request):
    """Health check with dependency verification."""
    components: AppComponents = request.app.state.components
    checks = {"api": "healthy"}

    # Check database (only when one is configured)
    if components.db is not None:
        try:
            async with components.db.get_session() as session:
                await session.execute(text("SELECT 1"))
            checks["database"] = "healthy"
        except Exception as e:
            checks["database"] = f"unhealthy: {str(e)}"

    # Overall status
    all_healthy = all(v == "healthy" for v in checks.values())
    status_code = 200 if all_healthy else 503

    return JSONResponse(
        content={
            "status": "healthy" if all_healthy else "degraded",
            "checks": checks,
            "tiers": components.tier_config().model_dump(),
        },
        status_code=status_code
    )
