from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from starlette.responses import Response

from busybox.models.schemas import HealthStatus
from busybox.responses import write_response
from busybox.runtime import Runtime, get_runtime


# RFC 1123, always rendered in UTC
TIMESTAMP_FORMAT = "%a, %d %b %Y %H:%M:%S GMT"

router = APIRouter(tags=["health"])


def health_status(runtime: Runtime) -> HealthStatus:
    """Liveness only: no downstream dependency is consulted."""

    return HealthStatus(
        healthy=True,
        timestamp=datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT),
        version=runtime.settings.app_version,
        uptime_seconds=runtime.uptime_seconds(),
    )


@router.get("/health")
async def health(runtime: Runtime = Depends(get_runtime)) -> Response:
    return write_response(health_status(runtime))
