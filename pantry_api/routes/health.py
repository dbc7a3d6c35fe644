"""
Pantry Lookup API — Health Check Route
========================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Checks both dependencies (database, identity provider) and returns status.
Who:   Called by container health checks, load balancers, and monitoring systems.

Status levels:
    - healthy:   Database and identity provider reachable (HTTP 200)
    - degraded:  Identity provider unreachable; every lookup would answer 401/500
    - unhealthy: Database unreachable
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text

from pantry_api import __version__
from pantry_api.schemas.lookup import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Track when the service started for uptime reporting
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description=(
        "Returns the health status of the service and its dependencies. "
        "Does not require authentication."
    ),
)
async def health_check() -> HealthResponse:
    """
    Check the health of the service and all dependencies.

    Check details:
        Database: Executes SELECT 1 to verify connection and query execution
        Identity provider: GET /auth/v1/health with the public key
    """
    db_status = "connected"
    auth_status = "available"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    try:
        from pantry_api.database import engine
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Identity Provider ───────────────────────────────────────────
    try:
        from pantry_api.services.backend_client import check_auth_health
        if not await check_auth_health():
            auth_status = "unavailable"
            overall = "degraded" if overall != "unhealthy" else overall
    except Exception as e:
        auth_status = "unavailable"
        overall = "degraded" if overall != "unhealthy" else overall
        logger.warning("Health check: identity provider unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        auth=auth_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
