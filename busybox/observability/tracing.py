from __future__ import annotations

import structlog
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter
from opentelemetry.sdk.trace.sampling import ALWAYS_ON

from busybox.config import Settings
from busybox.errors import StartupError


TRACER_NAME = "http-interceptor"


def build_tracer_provider(service_name: str, exporter: SpanExporter) -> TracerProvider:
    """Always-sampling provider that batches spans into ``exporter``."""

    provider = TracerProvider(
        sampler=ALWAYS_ON,
        resource=Resource.create({SERVICE_NAME: service_name}),
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    return provider


def init_tracer(settings: Settings) -> TracerProvider | None:
    """Create the OTLP tracer provider, or ``None`` when no collector is configured."""

    if not settings.tracing_enabled:
        return None

    endpoint = settings.trace_collector_url.strip()
    try:
        exporter = OTLPSpanExporter(endpoint=endpoint, insecure=settings.trace_insecure)
    except Exception as exc:  # noqa: BLE001
        raise StartupError(f"cannot create trace exporter for {endpoint!r}: {exc}") from exc

    provider = build_tracer_provider(settings.service_name, exporter)
    structlog.get_logger("busybox.tracing").debug(
        "tracing_initialized",
        collector_url=endpoint,
        service_name=settings.service_name,
    )
    return provider


def shutdown_tracer(provider: TracerProvider, timeout_seconds: float) -> None:
    """Flush buffered spans (bounded by ``timeout_seconds``) and close the exporter."""

    flushed = provider.force_flush(timeout_millis=int(timeout_seconds * 1000))
    provider.shutdown()
    structlog.get_logger("busybox.tracing").info("tracer_shutdown", flushed=flushed)
