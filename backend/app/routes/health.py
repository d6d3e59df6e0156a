"""
Blogging API — Health Check Route
===================================

What:  Health check endpoint for monitoring and load balancer probes.
Why:   A backend that cannot reach its database is effectively down, so the
       check runs a lightweight query instead of just answering "alive".
How:   SELECT 1 through the app's Database handle.

Status levels:
    OK:        database reachable (HTTP 200)
    DEGRADED:  database unreachable (HTTP 503, stop routing traffic)
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request, Response

from app import __version__
from app.schemas.post import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    """Probes the database and reports aggregate status and uptime."""
    db_status = "connected"
    overall = "OK"
    message = "API de Blogging funcionando corretamente"

    database = getattr(request.app.state, "database", None)
    try:
        if database is None:
            raise RuntimeError("database handle not initialised")
        await database.ping()
    except Exception as e:
        db_status = "disconnected"
        overall = "DEGRADED"
        message = "Banco de dados indisponível"
        response.status_code = 503
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        message=message,
        version=__version__,
        database=db_status,
        timestamp=datetime.now(timezone.utc),
        uptime_seconds=round(time.time() - _start_time, 2),
    )
