from __future__ import annotations

from fastapi import APIRouter, Depends
from starlette.responses import Response

from busybox.responses import write_response
from busybox.runtime import Runtime, get_runtime


router = APIRouter(tags=["metrics"])


@router.get("/metrics")
async def metrics(runtime: Runtime = Depends(get_runtime)) -> Response:
    return write_response(runtime.metrics.snapshot())
