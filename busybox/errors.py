from __future__ import annotations


class BusyboxError(Exception):
    """Base class for errors raised by busybox."""


class StartupError(BusyboxError):
    """Raised when the server cannot be brought up (bad logging or tracing config)."""


class BodyDecodeError(BusyboxError):
    """Raised when a request body cannot be decoded as a JSON object."""
