# backend/equipdb/middleware.py
"""
HTTP middleware installed by create_app():

- RateLimitMiddleware: per-IP sliding window, 429 when exceeded.
- SecurityHeadersMiddleware: conservative browser security headers.
- AccessLogMiddleware: one log line per request on "equipdb.access".
- UnhandledErrorMiddleware: turns uncaught exceptions into the JSON 500
  response inside the stack, so the outer middleware still decorates it.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Dict, List

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from .errors import unexpected_error_response

access_logger = logging.getLogger("equipdb.access")

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."

SECURITY_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-DNS-Prefetch-Control": "off",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
}


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class RateLimiter:
    """Sliding-window attempt counter keyed by client IP."""

    def __init__(self, window_sec: int, max_attempts: int) -> None:
        self.window_sec = window_sec
        self.max_attempts = max_attempts
        self._state: Dict[str, List[float]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> bool:
        """Record one attempt. False when the key is over its limit."""
        now = time.monotonic()
        cutoff = now - self.window_sec
        with self._lock:
            attempts = [ts for ts in self._state.get(key, []) if ts >= cutoff]
            if len(attempts) >= self.max_attempts:
                self._state[key] = attempts
                return False
            attempts.append(now)
            self._state[key] = attempts
            return True

    def reset(self) -> None:
        with self._lock:
            self._state.clear()


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limiter: RateLimiter) -> None:
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next):
        ip = client_ip(request)
        if not self.limiter.hit(ip):
            access_logger.warning("Rate limit exceeded", extra={"client_ip": ip})
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"message": RATE_LIMIT_MESSAGE},
            )
        return await call_next(request)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    """
    Development: "GET /api/clients 200 3.1ms".
    Production: combined-style line with client IP and user agent.
    """

    def __init__(self, app, production: bool = False) -> None:
        super().__init__(app)
        self.production = production

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query}"

        if self.production:
            access_logger.info(
                '%s "%s %s HTTP/%s" %s %.1fms "%s"',
                client_ip(request),
                request.method,
                path,
                request.scope.get("http_version", "1.1"),
                response.status_code,
                elapsed_ms,
                request.headers.get("user-agent", "-"),
            )
        else:
            access_logger.info(
                "%s %s %s %.1fms",
                request.method,
                path,
                response.status_code,
                elapsed_ms,
            )
        return response


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, production: bool = False) -> None:
        super().__init__(app)
        self.production = production

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            return unexpected_error_response(request, exc, production=self.production)
