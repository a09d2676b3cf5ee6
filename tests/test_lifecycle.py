from __future__ import annotations

import signal

import pytest
import uvicorn
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from structlog.testing import capture_logs

from busybox import runtime as runtime_module
from busybox.errors import StartupError
from busybox.lifecycle import BusyboxServer, signal_name
from busybox.main import create_app
from busybox.observability import tracing
from busybox.runtime import Runtime, start_runtime


def test_start_runtime_without_collector_has_no_tracer(settings) -> None:
    runtime = start_runtime(settings)
    assert runtime.tracer_provider is None
    assert runtime.tracer is None
    runtime.shutdown()


def test_start_runtime_rejects_bad_log_level(settings) -> None:
    with pytest.raises(StartupError, match="log level"):
        start_runtime(settings.model_copy(update={"log_level": "CHATTY"}))


def test_start_runtime_builds_otlp_tracer(settings) -> None:
    traced = settings.model_copy(update={"trace_collector_url": "localhost:4317"})
    with capture_logs() as logs:
        runtime = start_runtime(traced)
    try:
        assert isinstance(runtime.tracer_provider, TracerProvider)
        assert runtime.tracer is not None
        assert runtime.tracer_provider.resource.attributes["service.name"] == "busybox-test"
        assert any(entry["event"] == "tracing_initialized" for entry in logs)
    finally:
        runtime.shutdown()


def test_exporter_failure_is_a_startup_error(settings, monkeypatch: pytest.MonkeyPatch) -> None:
    def _broken_exporter(**_kwargs):
        raise RuntimeError("no transport")

    monkeypatch.setattr(tracing, "OTLPSpanExporter", _broken_exporter)
    traced = settings.model_copy(update={"trace_collector_url": "localhost:4317"})
    with pytest.raises(StartupError, match="no transport"):
        start_runtime(traced)


def test_shutdown_flushes_batched_spans(settings) -> None:
    exporter = InMemorySpanExporter()
    provider = tracing.build_tracer_provider("busybox-test", exporter)
    runtime = Runtime(settings=settings, tracer_provider=provider)

    with runtime.tracer.start_as_current_span("queued"):
        pass

    runtime.shutdown()
    assert [s.name for s in exporter.get_finished_spans()] == ["queued"]


def test_shutdown_is_idempotent(settings, monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[float] = []
    monkeypatch.setattr(runtime_module, "shutdown_tracer", lambda _provider, timeout: calls.append(timeout))

    provider = TracerProvider()
    provider.add_span_processor(BatchSpanProcessor(InMemorySpanExporter()))
    runtime = Runtime(settings=settings, tracer_provider=provider)

    runtime.shutdown()
    runtime.shutdown()
    assert calls == [settings.shutdown_timeout_seconds]
    provider.shutdown()


async def test_lifespan_shutdown_releases_tracer(traced_runtime) -> None:
    app = create_app(traced_runtime)
    async with app.router.lifespan_context(app):
        assert not traced_runtime._closed.is_set()
    assert traced_runtime._closed.is_set()


def test_server_logs_termination_signal(runtime) -> None:
    server = BusyboxServer(uvicorn.Config(create_app(runtime)), runtime)
    with capture_logs() as logs:
        server.handle_exit(signal.SIGTERM, None)

    assert server.should_exit is True
    assert server.received_signal == "SIGTERM"
    assert logs == [{"event": "shutdown_signal_received", "signal": "SIGTERM", "log_level": "warning"}]


def test_signal_name_falls_back_to_number() -> None:
    assert signal_name(signal.SIGINT) == "SIGINT"
    assert signal_name(999) == "999"
