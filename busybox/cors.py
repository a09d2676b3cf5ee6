from __future__ import annotations

HEADERS_SEP = ", "

ALLOWED_METHODS: tuple[str, ...] = (
    "OPTIONS",
    "GET",
    "PUT",
    "PATCH",
    "POST",
    "DELETE",
)

ALLOWED_HEADERS: tuple[str, ...] = (
    "Accept",
    "Content-Type",
    "Content-Length",
    "Cookie",
    "Accept-Encoding",
    "Authorization",
    "X-CSRF-Token",
    "X-Requested-With",
    "X-Forwarded-For",
    "CF-Connecting-IP",
    "CF-Real-IP",
)


def negotiate_cors_headers(origin: str | None) -> dict[str, str]:
    """Response headers for a cross-origin request.

    Any origin is reflected back as allowed; this is a debugging tool, not a
    security boundary. Requests without an ``Origin`` get no CORS headers.
    """

    if not origin:
        return {}
    return {
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Methods": HEADERS_SEP.join(ALLOWED_METHODS),
        "Access-Control-Allow-Headers": HEADERS_SEP.join(ALLOWED_HEADERS),
    }
