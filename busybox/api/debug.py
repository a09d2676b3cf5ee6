from __future__ import annotations

import json
import math
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request
from starlette.responses import Response

from busybox.context import RequestContext, get_request_context
from busybox.errors import BodyDecodeError
from busybox.models.schemas import EchoResult, HeaderEntry
from busybox.responses import write_response


# Well under the response serializer's own nesting limit.
MAX_BODY_DEPTH = 128

router = APIRouter(tags=["debug"])


def canonical_header_name(name: str) -> str:
    """``x-forwarded-for`` -> ``X-Forwarded-For``."""

    return "-".join(part[:1].upper() + part[1:].lower() for part in name.split("-"))


def collect_headers(raw_headers: list[tuple[bytes, bytes]]) -> list[HeaderEntry]:
    """Group raw headers by name keeping every value, in order of first appearance."""

    grouped: dict[str, list[str]] = {}
    for raw_name, raw_value in raw_headers:
        name = canonical_header_name(raw_name.decode("latin-1"))
        grouped.setdefault(name, []).append(raw_value.decode("latin-1"))
    return [HeaderEntry(name=name, values=values) for name, values in grouped.items()]


def _is_json_media_type(content_type: str) -> bool:
    mime = content_type.split(";", 1)[0].strip().lower()
    return mime == "application/json" or mime.endswith("+json")


def _reject_constant(value: str) -> Any:
    raise ValueError(f"invalid JSON constant {value}")


def _parse_finite_float(value: str) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"number {value} is out of range")
    return number


def json_depth(value: Any) -> int:
    """Nesting depth of a decoded JSON value; scalars are depth 0."""

    depth = 0
    stack = [(value, 1)]
    while stack:
        node, level = stack.pop()
        if isinstance(node, dict):
            children = node.values()
        elif isinstance(node, list):
            children = node
        else:
            continue
        depth = max(depth, level)
        stack.extend((child, level + 1) for child in children)
    return depth


def decode_json_object(body: bytes, content_type: str | None = None) -> dict[str, Any]:
    """Decode a request body that must hold a JSON object.

    A missing content type is tolerated; a declared non-JSON one is not.
    """

    if content_type and not _is_json_media_type(content_type):
        raise BodyDecodeError(f"unsupported content type {content_type!r}, expected application/json")
    if not body.strip():
        raise BodyDecodeError("empty request body")

    try:
        data = json.loads(body, parse_constant=_reject_constant, parse_float=_parse_finite_float)
    except ValueError as exc:
        raise BodyDecodeError(f"invalid JSON body: {exc}") from exc
    except RecursionError as exc:
        raise BodyDecodeError(f"JSON body nested deeper than {MAX_BODY_DEPTH} levels") from exc

    if json_depth(data) > MAX_BODY_DEPTH:
        raise BodyDecodeError(f"JSON body nested deeper than {MAX_BODY_DEPTH} levels")

    if not isinstance(data, dict):
        raise BodyDecodeError(f"expected a JSON object, got {type(data).__name__}")
    return data


async def build_echo_result(request: Request, ctx: RequestContext) -> EchoResult:
    result = EchoResult(
        headers=collect_headers(request.headers.raw),
        url=str(request.url),
        user_agent=request.headers.get("user-agent", ""),
        remote_addr=ctx.remote_addr,
    )

    if request.method != "POST":
        return result

    body = await request.body()
    try:
        result.body = decode_json_object(body, request.headers.get("content-type"))
    except BodyDecodeError as exc:
        structlog.get_logger("busybox.debug").error(
            "body_decode_failed",
            error=str(exc),
            remote_addr=ctx.remote_addr,
            forwarded_for=ctx.forwarded_for,
        )
        result.body_decoding_error = str(exc)
    return result


@router.api_route("/debug", methods=["GET", "POST"])
@router.api_route("/debug/", methods=["GET", "POST"], include_in_schema=False)
async def debug_echo(request: Request, ctx: RequestContext = Depends(get_request_context)) -> Response:
    return write_response(await build_echo_result(request, ctx))
