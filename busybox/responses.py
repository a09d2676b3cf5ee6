from __future__ import annotations

import json
from typing import Any

import structlog
from pydantic import BaseModel
from starlette.responses import PlainTextResponse, Response


JSON_CONTENT_TYPE = "application/json; charset=utf-8"


def render_json(value: Any) -> bytes:
    """Encode ``value`` as UTF-8 JSON. Models are dumped by alias, unset fields omitted."""

    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json", by_alias=True, exclude_unset=True)
    return json.dumps(value, ensure_ascii=False, allow_nan=False, separators=(",", ":")).encode("utf-8")


def write_response(value: Any, status_code: int = 200) -> Response:
    """Serialize a handler result into a JSON response.

    Values that cannot be represented as JSON produce a plain-text 500 diagnostic.
    """

    try:
        body = render_json(value)
    except (TypeError, ValueError) as exc:
        structlog.get_logger("busybox.response").error("response_marshal_failed", error=str(exc))
        return PlainTextResponse(f"Cannot marshal response: {exc}", status_code=500)

    return Response(content=body, status_code=status_code, media_type=JSON_CONTENT_TYPE)
