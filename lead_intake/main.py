# lead_intake/main.py
from __future__ import annotations

import time
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration
from starlette.exceptions import HTTPException as StarletteHTTPException

from lead_intake import __version__
from lead_intake.core.config import settings
from lead_intake.core.exceptions import BaseAPIException
from lead_intake.core.logging import configure_structlog, get_structlog_logger
from lead_intake.middleware.logging import LoggingMiddleware
from lead_intake.middleware.request_id import RequestIdMiddleware
from lead_intake.routes import health, lead
from lead_intake.services.store import close_store, get_store

NO_STORE_HEADERS = {"Cache-Control": "no-store"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    logger.info("application.starting", environment=settings.environment)

    # Connection parameters are a hard precondition for serving
    settings.require_store_credentials()
    await get_store()
    logger.info("store.ready", backend=settings.store_backend)

    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            integrations=[
                AsyncioIntegration(),
                FastApiIntegration(),
                StarletteIntegration(),
            ],
            traces_sample_rate=1.0 if settings.is_development else 0.1,
            send_default_pii=False,
        )
        logger.info("sentry.initialized")

    logger.info("application.started")
    yield

    logger.info("application.shutting_down")
    await close_store()
    logger.info("application.shutdown_complete")


# Configure logging before creating app
configure_structlog()
logger = get_structlog_logger(__name__)

app = FastAPI(
    title="Lead Intake API",
    version=__version__,
    description="Landing-page lead submission intake",
    docs_url="/docs" if settings.is_development else None,
    redoc_url=None,
    openapi_url="/openapi.json" if settings.is_development else None,
    lifespan=lifespan,
)

# Landing pages post from the browser
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins(),
    allow_credentials=False,
    allow_methods=settings.methods(),
    allow_headers=settings.headers(),
    expose_headers=["X-Request-ID", "Retry-After"],
)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIdMiddleware)


@app.exception_handler(BaseAPIException)
async def api_exception_handler(request: Request, exc: BaseAPIException):
    """Render intake errors as {ok: false, error: code}."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "api.exception",
        status_code=exc.status_code,
        code=exc.code,
        path=request.url.path,
        method=request.method,
        cause=type(exc.__cause__).__name__ if exc.__cause__ else None,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": exc.code},
        headers={**NO_STORE_HEADERS, **exc.headers},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Framework errors (wrong method, unknown path) carry no error code."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False},
        headers={**NO_STORE_HEADERS, **(exc.headers or {})},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    error_id = f"err_{int(time.time())}_{hash(str(exc)) % 10000:04d}"

    logger.error(
        "unhandled.exception",
        error_id=error_id,
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        exc_info=exc,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"ok": False, "error": "internal_error"},
        headers={**NO_STORE_HEADERS, "X-Error-ID": error_id},
    )


app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(lead.router, prefix=settings.api_prefix, tags=["leads"])

if not settings.is_testing:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


logger.info("application.configured", environment=settings.environment)
