from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import Request
from opentelemetry.trace import Span
from starlette.datastructures import Headers


STATE_KEY = "request_context"


@dataclass(frozen=True)
class RequestContext:
    """Request-scoped facts derived once by the interception middleware."""

    host: str
    path: str
    remote_addr: str
    forwarded_for: str = ""
    span: Span | None = None


def format_remote_addr(client: Any) -> str:
    """Render an ASGI ``client`` tuple as ``ip:port`` (empty when unknown)."""

    if not client:
        return ""
    host, port = client[0], client[1]
    if ":" in str(host):
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def build_request_context(scope: dict[str, Any], span: Span | None = None) -> RequestContext:
    headers = Headers(scope=scope)
    return RequestContext(
        host=headers.get("host", ""),
        path=scope.get("path", ""),
        remote_addr=format_remote_addr(scope.get("client")),
        forwarded_for=headers.get("x-forwarded-for", ""),
        span=span,
    )


def attach_request_context(scope: dict[str, Any], ctx: RequestContext) -> None:
    scope.setdefault("state", {})[STATE_KEY] = ctx


def get_request_context(request: Request) -> RequestContext:
    """FastAPI dependency returning the context bound by the middleware.

    Falls back to deriving one from the request when the middleware is not installed.
    """

    ctx = getattr(request.state, STATE_KEY, None)
    if ctx is None:
        ctx = build_request_context(request.scope)
    return ctx
