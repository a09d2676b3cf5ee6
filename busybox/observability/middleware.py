from __future__ import annotations

from contextlib import nullcontext
from dataclasses import replace
from time import perf_counter
from typing import Any, Callable

import structlog
from opentelemetry.trace import SpanKind
from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import PlainTextResponse, Response

from busybox.context import attach_request_context, build_request_context
from busybox.cors import negotiate_cors_headers
from busybox.runtime import Runtime


def span_name(path: str) -> str:
    return path.removeprefix("/")


class RequestInterceptorMiddleware:
    """Single entry point for every HTTP request.

    Negotiates CORS (answering preflights directly), binds the request context,
    opens the request span, logs the request, then hands over to the router.
    Also records access logs and basic HTTP metrics.
    """

    def __init__(self, app: Callable[..., Any], runtime: Runtime) -> None:
        self.app = app
        self.runtime = runtime
        # Avoid self-observing the observability endpoint.
        self._excluded_metric_paths = {"/metrics"}

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        request_headers = Headers(scope=scope)
        cors_headers = negotiate_cors_headers(request_headers.get("origin"))

        if scope.get("method") == "OPTIONS":
            await Response(status_code=200, headers=cors_headers)(scope, receive, send)
            return

        path = scope.get("path", "")
        method = scope.get("method", "")
        query = scope.get("query_string", b"").decode("latin-1")

        ctx = build_request_context(scope)
        structlog.contextvars.bind_contextvars(
            host=ctx.host,
            path=path,
            method=method,
            forwarded_for=ctx.forwarded_for,
        )

        start = perf_counter()
        status_code: int = 500
        response_started = False
        span = None

        async def send_wrapper(message: dict[str, Any]) -> None:
            nonlocal status_code, response_started

            if message.get("type") == "http.response.start":
                response_started = True
                status_code = int(message.get("status", 500))
                headers = MutableHeaders(scope=message)
                for name, value in cors_headers.items():
                    headers[name] = value
                if span is not None and span.is_recording():
                    span.set_attribute("http.status_code", status_code)

            await send(message)

        tracer = self.runtime.tracer
        span_cm = (
            tracer.start_as_current_span(
                span_name(path),
                kind=SpanKind.SERVER,
                attributes={"host": ctx.host, "method": method, "path": path},
            )
            if tracer is not None
            else nullcontext(None)
        )

        try:
            with span_cm as span:
                attach_request_context(scope, replace(ctx, span=span))

                structlog.get_logger("busybox.request").info(
                    "handling_request",
                    method=method,
                    path=path,
                    query=query,
                )

                await self.app(scope, receive, send_wrapper)
        except Exception:
            structlog.get_logger("busybox.request").exception("request_failed")
            # Answer here so the error response still carries CORS headers;
            # the server error middleware sees a started response and only re-raises.
            if not response_started:
                await PlainTextResponse("Internal Server Error", status_code=500)(scope, receive, send_wrapper)
            raise
        finally:
            elapsed_ms = (perf_counter() - start) * 1000.0

            # Update metrics first so they update even if logging misbehaves.
            if path not in self._excluded_metric_paths:
                self.runtime.metrics.observe_http_request(elapsed_ms=elapsed_ms, status_code=status_code)

            structlog.get_logger("busybox.access").info(
                "http_request",
                status_code=status_code,
                elapsed_ms=round(elapsed_ms, 2),
            )

            structlog.contextvars.clear_contextvars()
