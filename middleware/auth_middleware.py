"""
Authentication middleware: early check on protected routes.
Actual session validation is done by FastAPI dependencies.
"""
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from typing import List

from core.logger import logger
import config

# Public routes that don't require authentication
PUBLIC_ROUTES: List[str] = [
    "/docs",
    "/openapi.json",
    "/redoc",
    "/health",
    "/api/auth/login",
    "/api/auth/register",
    "/api/auth/session",
    "/api/auth/logout",
    "/api/districts/stats",
    "/api/metadata",
]


def is_public_path(path: str, public_routes: List[str]) -> bool:
    """Root, listed prefixes, and the public per-district stats endpoint."""
    if path == "/":
        return True
    if path.startswith("/api/districts/") and path.endswith("/stats"):
        return True
    return any(path == route or path.startswith(route + "/") for route in public_routes)


class AuthRequiredMiddleware(BaseHTTPMiddleware):
    """
    Logs requests to protected routes that arrive without a session cookie.

    Never blocks: the dependencies return the proper 401.
    """

    def __init__(self, app, public_routes: List[str] = None):
        """
        Initialize authentication middleware.

        Args:
            app: FastAPI application
            public_routes: List of public routes (paths) that don't require auth
        """
        super().__init__(app)
        self.public_routes = public_routes or PUBLIC_ROUTES

    async def dispatch(self, request: Request, call_next):
        """Process request with authentication check."""
        path = request.url.path

        if is_public_path(path, self.public_routes) or request.method == "OPTIONS":
            return await call_next(request)

        if not request.cookies.get(config.SESSION_COOKIE_NAME):
            logger.warning(f"Request without session cookie: {request.method} {path} from {request.client.host if request.client else 'unknown'}")

        return await call_next(request)
