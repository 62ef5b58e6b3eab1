"""
LinkShelf Backend — Health Check Route
========================================

What:  Liveness/readiness endpoint for load balancers and container probes.
How:   Asks the active backend to ping its store. The mock backend is always
       reachable; the SQL backend runs `SELECT 1`.

Status levels:
    healthy:   store reachable (HTTP 200)
    degraded:  store unreachable (HTTP 503, stop routing traffic)
"""

import time

from fastapi import APIRouter, Depends, Request, Response

from linkshelf import __version__
from linkshelf.backends.base import BookmarkBackend
from linkshelf.dependencies import get_backend
from linkshelf.schemas.common import HealthResponse

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    request: Request,
    response: Response,
    backend: BookmarkBackend = Depends(get_backend),
) -> HealthResponse:
    reachable = await backend.ping()
    if not reachable:
        response.status_code = 503

    started_at = getattr(request.app.state, "started_at", time.time())
    return HealthResponse(
        status="healthy" if reachable else "degraded",
        version=__version__,
        backend=backend.kind,
        uptime_seconds=round(time.time() - started_at, 2),
    )
