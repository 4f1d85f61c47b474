"""Security headers, origin checks and client identification for API routes."""

import os
from typing import Dict, Iterable, Optional
from urllib.parse import urlsplit

from fastapi import Request
from fastapi.responses import Response

SITE_ORIGIN = os.environ.get("SITE_ORIGIN", "https://johnciresi.com")

# Comma-separated origins accepted by the CSRF check
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("ALLOWED_ORIGINS", f"{SITE_ORIGIN},https://www.johnciresi.com").split(",")
    if origin.strip()
]

PREFLIGHT_METHODS = "POST, OPTIONS"
PREFLIGHT_HEADERS = "Content-Type"

_BASE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
}

SECURITY_HEADERS: Dict[str, Dict[str, str]] = {
    "api": {
        **_BASE_HEADERS,
        "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
        "Cache-Control": "no-store",
    },
    "page": {
        **_BASE_HEADERS,
        "Content-Security-Policy": "default-src 'self'; img-src 'self' data: https:; frame-ancestors 'none'",
    },
}


def apply_security_headers(response: Response, context: str = "api") -> Response:
    """Add the security headers for `context` ('api' or 'page') to a response."""
    if context not in SECURITY_HEADERS:
        raise ValueError(f"Unknown security header context: {context}")
    for name, value in SECURITY_HEADERS[context].items():
        response.headers[name] = value
    return response


def _normalize_origin(origin: str) -> str:
    return origin.strip().rstrip("/").lower()


def validate_origin(request: Request, allowed_origins: Optional[Iterable[str]] = None) -> bool:
    """
    Check the Origin header for CSRF protection.

    Accepts origins on the allow-list and same-host requests. Requests
    without an Origin header are rejected.
    """
    origin = request.headers.get("origin")
    if not origin or origin.strip().lower() == "null":
        return False

    origin = _normalize_origin(origin)
    allowed = {_normalize_origin(o) for o in (ALLOWED_ORIGINS if allowed_origins is None else allowed_origins)}
    if origin in allowed:
        return True

    host = request.headers.get("host")
    return bool(host) and urlsplit(origin).netloc == host.strip().lower()


def get_client_ip(request: Request) -> str:
    """Extracts client IP address, considering common proxy headers."""
    x_forwarded_for = request.headers.get("X-Forwarded-For")
    if x_forwarded_for:
        first_hop = x_forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop
    client = request.client
    if client and client.host:
        return client.host
    return "unknown"


def preflight_response(allow_origin: str) -> Response:
    """Empty 200 response answering a CORS preflight."""
    return Response(
        status_code=200,
        headers={
            "Access-Control-Allow-Origin": allow_origin,
            "Access-Control-Allow-Methods": PREFLIGHT_METHODS,
            "Access-Control-Allow-Headers": PREFLIGHT_HEADERS,
        },
    )
