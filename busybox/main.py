from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI

from busybox import __version__
from busybox.api.debug import router as debug_router
from busybox.api.health import router as health_router
from busybox.api.metrics import router as default_metrics_router
from busybox.observability.middleware import RequestInterceptorMiddleware
from busybox.runtime import Runtime


def create_app(runtime: Runtime, metrics_router: APIRouter | None = None) -> FastAPI:
    """Wire the interception middleware and the endpoint routers around ``runtime``."""

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        # In-flight requests have finished by now, so their spans are queued.
        runtime.shutdown()

    app = FastAPI(
        title="Busybox",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.runtime = runtime

    app.include_router(health_router)
    app.include_router(debug_router)
    app.include_router(metrics_router or default_metrics_router)

    app.add_middleware(RequestInterceptorMiddleware, runtime=runtime)
    return app
