############################################################
#
# requestbooth - Live Event Song Request Service
#
# health.py: Health check and Prometheus metrics endpoints
#
############################################################

"""Health check and metrics endpoints."""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, Gauge, generate_latest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db import crud
from backend.app.db.session import get_async_db
from backend.app.logging_config import get_logger
from backend.app.settings import get_settings

logger = get_logger(__name__)
router = APIRouter(tags=["health"])

# Prometheus metrics; the counters live in backend.app.core.metrics
PENDING_REQUESTS = Gauge(
    "requestbooth_pending_requests",
    "Requests waiting for the DJ",
)


@router.get("/healthz")
async def liveness_probe() -> Dict[str, str]:
    """
    Liveness probe - checks if the application is running.

    Returns 200 if the application is alive.
    """
    return {"status": "alive", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/readyz")
async def readiness_probe(db: AsyncSession = Depends(get_async_db)) -> JSONResponse:
    """
    Readiness probe - checks if the application is ready to serve traffic.

    Returns 503 when the database cannot be reached.
    """
    checks = {"database": False}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = True
    except SQLAlchemyError as exc:
        logger.warning("readiness_database_unreachable", error=str(exc))

    all_ready = all(checks.values())
    body: Dict[str, Any] = {
        "status": "ready" if all_ready else "not_ready",
        "checks": checks,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    return JSONResponse(
        status_code=status.HTTP_200_OK if all_ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body,
    )


@router.get("/metrics")
async def prometheus_metrics(db: AsyncSession = Depends(get_async_db)) -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    if not get_settings().metrics_enabled:
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    try:
        counts = await crud.count_requests_by_status(db)
        PENDING_REQUESTS.set(counts["pending"])
    except SQLAlchemyError as exc:
        logger.warning("metrics_queue_count_failed", error=str(exc))

    metrics = generate_latest()
    return Response(content=metrics, media_type=CONTENT_TYPE_LATEST)
