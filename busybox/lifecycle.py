from __future__ import annotations

import signal
from types import FrameType

import structlog
import uvicorn
from fastapi import APIRouter

from busybox.config import Settings, parse_listen_addr
from busybox.main import create_app
from busybox.runtime import Runtime, start_runtime


def signal_name(sig: int) -> str:
    try:
        return signal.Signals(sig).name
    except ValueError:
        return str(sig)


class BusyboxServer(uvicorn.Server):
    """uvicorn server that reports the termination signal it received.

    The tracer flush itself runs in the app's lifespan shutdown, after in-flight
    requests complete.
    """

    def __init__(self, config: uvicorn.Config, runtime: Runtime) -> None:
        super().__init__(config)
        self.runtime = runtime
        self.received_signal: str | None = None

    def handle_exit(self, sig: int, frame: FrameType | None) -> None:
        self.received_signal = signal_name(sig)
        structlog.get_logger("busybox").warning("shutdown_signal_received", signal=self.received_signal)
        super().handle_exit(sig, frame)


def run(settings: Settings, metrics_router: APIRouter | None = None) -> None:
    """Start logging and tracing, then serve until a termination signal arrives.

    Raises :class:`~busybox.errors.StartupError` before serving any traffic when
    the listen address, logging or tracing configuration is unusable.
    """

    host, port = parse_listen_addr(settings.listen_addr)
    runtime = start_runtime(settings)
    app = create_app(runtime, metrics_router=metrics_router)

    config = uvicorn.Config(app, host=host, port=port, log_config=None, access_log=False, lifespan="on")
    server = BusyboxServer(config, runtime)

    structlog.get_logger("busybox").info(
        "starting_http_server",
        listen_addr=settings.listen_addr,
        env=settings.env,
        version=settings.app_version,
        tracing=settings.tracing_enabled,
    )
    try:
        server.run()
    finally:
        runtime.shutdown()
