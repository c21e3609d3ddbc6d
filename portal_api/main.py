"""API Service - FastAPI over the engagement engine."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import structlog

from portal_shared.logging_config import (
    bind_request_context,
    clear_request_context,
    setup_logging,
)

from . import routers
from .config import get_settings
from .database import get_engine
from .engagement import EngagementError, resolve_capabilities


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    settings = get_settings()
    setup_logging(
        service_name=settings.service_name if settings.service_name != "unknown" else "api",
        log_format=settings.log_format,
        log_level=settings.log_level,
    )
    engine = get_engine()
    app.state.capabilities = await resolve_capabilities(
        engine,
        detect=settings.schema_detect_on_startup,
        has_cancellation_audit=settings.schema_has_cancellation_audit,
        accepts_cancelled_status=settings.schema_accepts_cancelled_status,
        has_budget_columns=settings.schema_has_budget_columns,
    )
    yield
    # Shutdown
    await engine.dispose()


app = FastAPI(
    title="Agency Portal API",
    description="Project lifecycle, budget negotiation and client dashboards",
    version="0.1.0",
    lifespan=lifespan,
)


@app.middleware("http")
async def correlation_middleware(request: Request, call_next):
    correlation_id = request.headers.get("X-Correlation-ID", f"req_{uuid.uuid4().hex[:8]}")
    bind_request_context(correlation_id, method=request.method, path=request.url.path)

    start = time.time()
    logger = structlog.get_logger()

    try:
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000

        if response.status_code >= 500:  # noqa: PLR2004
            logger.error(
                "http_request_failed",
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )
        else:
            logger.info(
                "http_request", status_code=response.status_code, duration_ms=round(duration_ms, 2)
            )

        response.headers["X-Correlation-ID"] = correlation_id
        return response
    except Exception as e:
        duration_ms = (time.time() - start) * 1000
        logger.error(
            "http_request_exception",
            error=str(e),
            error_type=type(e).__name__,
            duration_ms=round(duration_ms, 2),
            exc_info=True,
        )
        raise
    finally:
        clear_request_context()


@app.exception_handler(EngagementError)
async def engagement_error_handler(request: Request, exc: EngagementError) -> JSONResponse:
    structlog.get_logger().info(
        "engagement_error",
        error_type=type(exc).__name__,
        status_code=int(exc.status_code),
        error=exc.message,
    )
    return JSONResponse(status_code=int(exc.status_code), content={"detail": exc.message})


@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": "Agency Portal API",
        "version": "0.1.0",
        "description": "Project lifecycle, budget negotiation and client dashboards",
    }


app.include_router(routers.health.router)
app.include_router(routers.projects.router, prefix="/api")
app.include_router(routers.budget.router, prefix="/api")
app.include_router(routers.deliverables.router, prefix="/api")
app.include_router(routers.dashboard.router, prefix="/api")
app.include_router(routers.clients.router, prefix="/api")
