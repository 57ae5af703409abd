"""
HTTP hardening: response headers, CORS and trusted hosts.
"""
from typing import Dict, Iterable, Optional

from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

DEFAULT_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

DEFAULT_METHODS = ["GET", "POST", "PATCH", "OPTIONS", "HEAD"]


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Stamp fixed security headers on every response, and mark responses under
    ``private_prefixes`` as uncacheable since they carry per-user data.
    """

    def __init__(
        self,
        app,
        headers: Optional[Dict[str, str]] = None,
        private_prefixes: Iterable[str] = ("/api/",),
    ):
        super().__init__(app)
        self.headers = dict(headers or DEFAULT_SECURITY_HEADERS)
        self.private_prefixes = tuple(private_prefixes)

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in self.headers.items():
            response.headers[name] = value
        if request.url.path.startswith(self.private_prefixes):
            response.headers.setdefault("Cache-Control", "private, no-store")
        return response


def setup_cors(app, allowed_origins: list[str], allowed_methods: list[str] = None):
    """
    Register CORS.

    Args:
        app: FastAPI application
        allowed_origins: Origins to allow; a "*" entry allows any origin
        allowed_methods: HTTP methods to allow (defaults to the API's verbs)
    """
    allow_any = "*" in allowed_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_any else allowed_origins,
        # Credentialed responses cannot carry a wildcard origin
        allow_credentials=not allow_any,
        allow_methods=allowed_methods or DEFAULT_METHODS,
        allow_headers=["Authorization", "Content-Type"],
    )


def setup_trusted_hosts(app, allowed_hosts: list[str]):
    """Reject requests whose Host header is not in ``allowed_hosts``."""
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=[h.strip() for h in allowed_hosts if h.strip()])
