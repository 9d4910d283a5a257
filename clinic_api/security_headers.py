"""
Security Headers Middleware for FastAPI

Adds the usual hardening headers to every response. The API only serves JSON,
so the Content-Security-Policy is locked down completely.
"""
import logging
from typing import Callable, Optional, Sequence

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)

CSP_POLICY = "; ".join([
    "default-src 'self'",
    "base-uri 'self'",
    "frame-ancestors 'self'",
    "object-src 'none'",
    "form-action 'self'",
])


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, is_production: bool = False, exclude_paths: Optional[Sequence[str]] = None):
        super().__init__(app)
        self.is_production = is_production
        self.exclude_paths = tuple(exclude_paths or ())

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        if self.exclude_paths and request.url.path.startswith(self.exclude_paths):
            return response

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "SAMEORIGIN"
        response.headers["X-DNS-Prefetch-Control"] = "off"
        response.headers["X-Permitted-Cross-Domain-Policies"] = "none"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Cross-Origin-Resource-Policy"] = "same-origin"
        response.headers["Content-Security-Policy"] = CSP_POLICY

        # HSTS only makes sense behind HTTPS
        if self.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=15552000; includeSubDomains"

        return response
