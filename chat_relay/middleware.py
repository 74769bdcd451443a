"""
HTTP middleware: security headers and per-client rate limiting.
"""
import math
import time
import logging
from typing import Callable

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


# Same defaults helmet applies
SECURITY_HEADERS = {
    "Content-Security-Policy": (
        "default-src 'self';base-uri 'self';font-src 'self' https: data:;"
        "form-action 'self';frame-ancestors 'self';img-src 'self' data:;"
        "object-src 'none';script-src 'self';script-src-attr 'none';"
        "style-src 'self' https: 'unsafe-inline';upgrade-insecure-requests"
    ),
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds security headers to every response, keeping any a route already set."""
    
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Fixed-window rate limiter keyed by client address.
    
    Each client gets max_requests per window; the window starts at the
    client's first request and resets once it has elapsed. State is
    in-process only, so limits are per worker.
    """
    
    def __init__(
        self,
        app,
        max_requests: int = 50,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        # client -> (window_start, count)
        self._hits: dict[str, tuple[float, int]] = {}
        self._next_sweep = 0.0
    
    def _client_key(self, request: Request) -> str:
        return request.client.host if request.client else "unknown"
    
    def _sweep(self, now: float):
        """Drop clients whose window has expired."""
        expired = [
            key for key, (start, _) in self._hits.items()
            if now - start >= self.window_seconds
        ]
        for key in expired:
            del self._hits[key]
        self._next_sweep = now + self.window_seconds
    
    def hit(self, key: str) -> tuple[bool, int, int]:
        """
        Count a request for key.
        
        Returns:
            Tuple of (allowed, remaining, seconds_until_reset)
        """
        now = self._clock()
        if now >= self._next_sweep:
            self._sweep(now)
        
        start, count = self._hits.get(key, (now, 0))
        if now - start >= self.window_seconds:
            start, count = now, 0
        count += 1
        self._hits[key] = (start, count)
        
        reset = max(0, math.ceil(start + self.window_seconds - now))
        remaining = max(0, self.max_requests - count)
        return count <= self.max_requests, remaining, reset
    
    async def dispatch(self, request: Request, call_next):
        key = self._client_key(request)
        allowed, remaining, reset = self.hit(key)
        
        headers = {
            "RateLimit-Limit": str(self.max_requests),
            "RateLimit-Remaining": str(remaining),
            "RateLimit-Reset": str(reset),
        }
        
        if not allowed:
            logger.warning("Rate limit exceeded: client=%s", key)
            headers["Retry-After"] = str(reset)
            return JSONResponse(
                status_code=429,
                content={"error": RATE_LIMIT_MESSAGE},
                headers=headers,
            )
        
        response = await call_next(request)
        response.headers.update(headers)
        return response
