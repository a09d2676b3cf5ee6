"""Observability helpers: structlog setup, request interception, OTLP tracing
and an in-memory metrics snapshot served on ``/metrics``.
"""
