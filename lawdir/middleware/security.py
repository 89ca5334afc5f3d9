"""
Security Middleware
====================

Response hardening for a JSON-only API, plus optional HTTPS redirect.
"""

import os
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response, RedirectResponse

ENFORCE_HTTPS = os.environ.get("ENFORCE_HTTPS", "false").lower() in ("true", "1", "yes")
HSTS_MAX_AGE = int(os.environ.get("HSTS_MAX_AGE", "31536000"))

API_CSP = "default-src 'none'; frame-ancestors 'none'"
DOCS_PATHS = ("/docs", "/redoc", "/openapi.json")


def _is_https(request: Request) -> bool:
    return request.url.scheme == "https" or request.headers.get("x-forwarded-proto", "") == "https"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Headers added to every response:
    - X-Content-Type-Options / X-Frame-Options / Referrer-Policy
    - Content-Security-Policy (skipped for the interactive docs)
    - Cache-Control: no-store on /api (responses may carry private data)
    - Strict-Transport-Security when served over HTTPS
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if ENFORCE_HTTPS and not _is_https(request):
            url = str(request.url).replace("http://", "https://", 1)
            return RedirectResponse(url, status_code=301)

        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        path = request.url.path
        if not path.startswith(DOCS_PATHS):
            response.headers["Content-Security-Policy"] = API_CSP
        if path.startswith("/api/"):
            response.headers.setdefault("Cache-Control", "no-store")

        if _is_https(request):
            response.headers["Strict-Transport-Security"] = f"max-age={HSTS_MAX_AGE}; includeSubDomains"

        return response
