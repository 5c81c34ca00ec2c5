"""
NoteBoard Backend - Health Check Route
======================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Reports local resources only. The managed platform is not probed:
       every platform call needs a user session, and the platform has its
       own status reporting.

Status levels:
    - healthy:   Preview directory writable
    - degraded:  Previews cannot be stored (image selection will fail)
"""

import logging
import time

from fastapi import APIRouter, Depends

from noteboard import __version__
from noteboard.routes.dependencies import get_registry
from noteboard.schemas.note import HealthResponse
from noteboard.services.preview_service import preview_service
from noteboard.services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    registry: SessionRegistry = Depends(get_registry),
) -> HealthResponse:
    writable = preview_service.is_writable()
    if not writable:
        logger.warning("Health check: preview directory %s is not writable", preview_service.preview_dir)

    return HealthResponse(
        status="healthy" if writable else "degraded",
        version=__version__,
        preview_storage="writable" if writable else "unwritable",
        active_sessions=len(registry),
        uptime_seconds=round(time.time() - _start_time, 2),
    )
