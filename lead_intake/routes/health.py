# lead_intake/routes/health.py
from __future__ import annotations

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from lead_intake import __version__
from lead_intake.core.config import settings
from lead_intake.core.exceptions import StoreError
from lead_intake.core.logging import get_structlog_logger
from lead_intake.services.store import RowStore, get_store

logger = get_structlog_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(store: RowStore = Depends(get_store)) -> JSONResponse:
    """Readiness: the store answers a trivial query."""
    start = time.perf_counter()
    try:
        await store.ping()
        store_check = {"status": "healthy"}
    except StoreError as e:
        logger.warning("health.store_unhealthy", code=e.code)
        store_check = {"status": "unhealthy"}
    store_check["response_time_ms"] = f"{(time.perf_counter() - start) * 1000:.2f}"

    healthy = store_check["status"] == "healthy"
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "service": "lead_intake",
            "environment": settings.environment,
            "version": __version__,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": {"store": store_check},
        },
        headers={"Cache-Control": "no-store"},
    )


@router.get("/health/live", status_code=status.HTTP_200_OK)
async def liveness_probe():
    return {"status": "alive"}
