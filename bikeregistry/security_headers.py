"""
Security Headers Middleware for FastAPI

Adds security headers to every API response:
- X-Frame-Options, X-Content-Type-Options, Referrer-Policy
- Content-Security-Policy (restrictive, the API only serves JSON, PDFs and PNGs)
- Strict-Transport-Security (production only)
- Permissions-Policy
- Cache-Control for authenticated data
"""

import logging
import os
from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)

IS_PRODUCTION = os.getenv("ENVIRONMENT", "development").lower() == "production"


def get_csp_policy() -> str:
    """Content-Security-Policy for an API backend"""
    directives = [
        "default-src 'none'",
        "frame-ancestors 'self'",
        "img-src 'self' data:",
        "style-src 'self' 'unsafe-inline'",  # Swagger UI
        "script-src 'self' https://cdn.jsdelivr.net",  # Swagger UI bundle
        "base-uri 'none'",
        "form-action 'self'",
    ]
    return "; ".join(directives)


def get_permissions_policy() -> str:
    """Disable browser features that an API never needs"""
    features = [
        "accelerometer=()",
        "camera=()",
        "geolocation=()",
        "gyroscope=()",
        "microphone=()",
        "payment=()",
        "usb=()",
    ]
    return ", ".join(features)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware that adds security headers to all responses except excluded paths"""

    def __init__(self, app, exclude_paths: Optional[list[str]] = None):
        super().__init__(app)
        self.exclude_paths = exclude_paths or []

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        path = request.url.path
        if any(path.startswith(excluded) for excluded in self.exclude_paths):
            return response

        response.headers["X-Frame-Options"] = "SAMEORIGIN"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = get_csp_policy()
        response.headers["Permissions-Policy"] = get_permissions_policy()
        response.headers["X-Permitted-Cross-Domain-Policies"] = "none"

        if IS_PRODUCTION:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains; preload"
            )

        # Public verification lookups may be cached by the CDN; everything else may not
        if "Cache-Control" not in response.headers:
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"

        return response
