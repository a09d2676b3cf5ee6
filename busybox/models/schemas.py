from __future__ import annotations

from pydantic import BaseModel, ConfigDict, JsonValue
from pydantic.alias_generators import to_camel


class _Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthStatus(_Schema):
    healthy: bool
    timestamp: str
    version: str
    uptime_seconds: int


class HeaderEntry(_Schema):
    name: str
    values: list[str]


class EchoResult(_Schema):
    headers: list[HeaderEntry]
    url: str
    user_agent: str
    remote_addr: str
    # Only one of these is ever set, and only for POST requests.
    body: dict[str, JsonValue] | None = None
    body_decoding_error: str | None = None
