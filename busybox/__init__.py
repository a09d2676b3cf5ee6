"""Busybox: an HTTP request debugging server."""

__version__ = "0.1.0"
