"""
Request-level protections: per-IP rate limiting, security headers, CORS and trusted hosts.
"""
import time
from collections import defaultdict, deque
from typing import Deque, Dict

from fastapi import Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from core.logger import logger

# Never throttled: monitoring probes and CORS preflights
RATE_LIMIT_EXEMPT_PATHS = {"/health"}


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Sliding-window limits per client IP, one window per minute and one per hour.

    Over-limit requests get 429 and are not counted.
    """

    def __init__(self, app, requests_per_minute: int = 60, requests_per_hour: int = 1000):
        super().__init__(app)
        self.limits = {60: requests_per_minute, 3600: requests_per_hour}
        self.hits: Dict[str, Deque[float]] = defaultdict(deque)
        self.cleanup_interval = 300
        self.last_cleanup = time.time()

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS" or request.url.path in RATE_LIMIT_EXEMPT_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        if now - self.last_cleanup > self.cleanup_interval:
            self._sweep(now)
            self.last_cleanup = now
        if not self._allow(client_ip, now):
            logger.warning(f"Rate limit exceeded for IP: {client_ip} ({request.method} {request.url.path})")
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"detail": "Rate limit exceeded. Please try again later."}
            )
        return await call_next(request)

    def _prune(self, hits: Deque[float], now: float) -> None:
        # Hits older than the longest window can never count again
        longest = max(self.limits)
        while hits and now - hits[0] >= longest:
            hits.popleft()

    def _sweep(self, now: float) -> None:
        """Drop clients with no hits inside the longest window."""
        for ip in list(self.hits):
            self._prune(self.hits[ip], now)
            if not self.hits[ip]:
                del self.hits[ip]

    def _allow(self, client_ip: str, now: float) -> bool:
        hits = self.hits[client_ip]
        self._prune(hits, now)

        for window, limit in self.limits.items():
            if sum(1 for t in hits if now - t < window) >= limit:
                return False

        hits.append(now)
        return True


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds browser hardening headers to every response."""

    HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "X-XSS-Protection": "1; mode=block",
        "Referrer-Policy": "strict-origin-when-cross-origin",
    }

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.update(self.HEADERS)
        return response


def setup_cors(app, allowed_origins: list[str]):
    """CORS for the web client. Credentials are allowed so the session cookie travels."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["*"],
    )


def setup_trusted_hosts(app, allowed_hosts: list[str]):
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=allowed_hosts)
