from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import structlog
from httpx import ASGITransport, AsyncClient
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from busybox.config import Settings
from busybox.main import create_app
from busybox.runtime import Runtime


@pytest.fixture(autouse=True)
def test_environment() -> None:
    structlog.contextvars.clear_contextvars()

    yield

    structlog.contextvars.clear_contextvars()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        listen_addr="127.0.0.1:0",
        env="test",
        app_version="1.2.3",
        trace_collector_url="",
    )


@pytest.fixture
def runtime(settings: Settings) -> Runtime:
    return Runtime(settings=settings)


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def traced_runtime(settings: Settings, span_exporter: InMemorySpanExporter) -> Runtime:
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return Runtime(settings=settings, tracer_provider=provider)


@pytest.fixture
async def api_client(runtime: Runtime) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=create_app(runtime))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def traced_client(traced_runtime: Runtime) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=create_app(traced_runtime))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
