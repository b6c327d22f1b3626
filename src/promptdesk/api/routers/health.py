"""
Health check endpoints for monitoring and diagnostics.

These need no session: load balancers and container probes call them.
"""

import logging
import time

from fastapi import APIRouter, Request

from ... import __version__
from ..models.common import HealthStatus

logger = logging.getLogger(__name__)

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()

SERVICES = ("project_service", "dataset_service", "prompt_service", "evaluation_service")


@router.get("/", response_model=HealthStatus)
def health_check(request: Request):
    """
    Basic health check endpoint.

    Reports the status of the storage backend and of the services built at
    startup. A failing database shows up here rather than as an error.
    """
    state = request.app.state
    dependencies = {}

    database = getattr(state, "database", None)
    if database is None:
        dependencies["database"] = "in-memory"
    else:
        try:
            database.ping()
            dependencies["database"] = "ok"
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            dependencies["database"] = "unavailable"

    for name in SERVICES:
        dependencies[name] = "ok" if getattr(state, name, None) is not None else "not initialized"

    healthy = all(status in ("ok", "in-memory") for status in dependencies.values())
    return HealthStatus(
        status="healthy" if healthy else "degraded",
        version=__version__,
        uptime=time.time() - _server_start_time,
        dependencies=dependencies,
    )


@router.get("/ready")
def readiness_check(request: Request):
    """
    Readiness probe for container deployments.

    Ready once startup has built every service.
    """
    missing = [name for name in SERVICES if getattr(request.app.state, name, None) is None]
    if missing:
        return {"ready": False, "reason": f"Not initialized: {', '.join(missing)}"}
    return {"ready": True, "message": "Service ready to handle requests"}
