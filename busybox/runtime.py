from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field

from fastapi import Request
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.trace import Tracer

from busybox.config import Settings
from busybox.observability.logging import configure_logging
from busybox.observability.metrics import InMemoryMetrics
from busybox.observability.tracing import TRACER_NAME, init_tracer, shutdown_tracer


@dataclass(frozen=True)
class Runtime:
    """Process-wide handles built once at startup and passed into the app.

    The tracer provider, when present, owns a background export queue and must
    be released through :meth:`shutdown`.
    """

    settings: Settings
    tracer_provider: TracerProvider | None = None
    metrics: InMemoryMetrics = field(default_factory=InMemoryMetrics)
    started_at: float = field(default_factory=time.time)
    _closed: threading.Event = field(default_factory=threading.Event, repr=False, compare=False)

    @property
    def tracer(self) -> Tracer | None:
        if self.tracer_provider is None:
            return None
        return self.tracer_provider.get_tracer(TRACER_NAME)

    def uptime_seconds(self) -> int:
        return max(0, int(time.time() - self.started_at))

    def shutdown(self) -> None:
        """Flush and close the tracer provider. Subsequent calls are no-ops."""

        if self._closed.is_set():
            return
        self._closed.set()
        if self.tracer_provider is not None:
            shutdown_tracer(self.tracer_provider, self.settings.shutdown_timeout_seconds)


def start_runtime(settings: Settings) -> Runtime:
    """Initialize logging, then tracing if a collector is configured.

    Raises :class:`~busybox.errors.StartupError` on either failure.
    """

    configure_logging(settings.log_level, json_logs=settings.log_json, stacktrace=settings.log_stacktrace)
    return Runtime(settings=settings, tracer_provider=init_tracer(settings))


def get_runtime(request: Request) -> Runtime:
    return request.app.state.runtime
