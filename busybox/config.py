from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from busybox.errors import StartupError


DEFAULT_HOST = "0.0.0.0"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", populate_by_name=True)

    listen_addr: str = Field(default=":8081", alias="LISTEN_ADDR")
    env: str = Field(default="dev", alias="ENV")
    app_version: str = Field(default="", alias="APP_VERSION")

    trace_collector_url: str = Field(default="", alias="TRACE_COLLECTOR_URL")
    trace_insecure: bool = Field(default=True, alias="TRACE_INSECURE")

    log_json: bool = Field(default=False, alias="LOG_JSON")
    log_stacktrace: bool = Field(default=True, alias="LOG_STACKTRACE")
    log_level: str = Field(default="DEBUG", alias="LOG_LEVEL")

    shutdown_timeout_seconds: float = Field(default=5.0, alias="SHUTDOWN_TIMEOUT_SECONDS")

    @property
    def tracing_enabled(self) -> bool:
        return bool(self.trace_collector_url.strip())

    @property
    def service_name(self) -> str:
        return f"busybox-{self.env}"


def parse_listen_addr(addr: str) -> tuple[str, int]:
    """Split a ``host:port`` listen address; an empty host binds every interface."""

    host, sep, port = addr.strip().rpartition(":")
    if not sep:
        raise StartupError(f"invalid listen address {addr!r}: missing port")
    try:
        port_number = int(port)
    except ValueError as exc:
        raise StartupError(f"invalid listen address {addr!r}: bad port") from exc
    if not 0 <= port_number <= 65535:
        raise StartupError(f"invalid listen address {addr!r}: port out of range")

    # [::1]:8080 style IPv6 literals
    host = host.strip("[]")
    return host or DEFAULT_HOST, port_number


def load_settings(env_file: str | None = None, **overrides: Any) -> Settings:
    """Build settings from the environment, an optional env file and explicit overrides.

    ``None`` overrides are ignored so unset CLI flags fall through to the environment.
    """

    values = {key: value for key, value in overrides.items() if value is not None}
    if env_file:
        return Settings(_env_file=env_file, **values)
    return Settings(**values)

