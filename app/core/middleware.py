"""
Custom middleware for rate limiting, security headers and request logging
"""

import logging
import time
from collections import defaultdict, deque
from datetime import datetime

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

UNLIMITED_PATHS = ("/", "/api/v1/health", "/docs", "/openapi.json")


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window, in-memory rate limit per client IP"""

    def __init__(self, app, calls: int = 10, period: int = 60):
        super().__init__(app)
        self.calls = calls
        self.period = period
        self.clients = defaultdict(deque)
        self._last_sweep = time.time()

    def _evict_idle(self, now: float) -> None:
        """Drop clients with no request inside the current window."""
        cutoff = now - self.period
        for ip in list(self.clients):
            window = self.clients[ip]
            while window and window[0] <= cutoff:
                window.popleft()
            if not window:
                del self.clients[ip]
        self._last_sweep = now

    async def dispatch(self, request: Request, call_next):
        client_ip = request.client.host if request.client is not None else "unknown"

        # Health checks, docs and served images are never limited
        path = request.url.path
        if path in UNLIMITED_PATHS or path.startswith("/images/"):
            return await call_next(request)

        now = time.time()
        if now - self._last_sweep >= self.period:
            self._evict_idle(now)
        client_requests = self.clients[client_ip]

        while client_requests and client_requests[0] <= now - self.period:
            client_requests.popleft()

        if len(client_requests) >= self.calls:
            logger.warning("Rate limit exceeded for IP: %s", client_ip)
            retry_after = max(1, int(client_requests[0] + self.period - now))
            return JSONResponse(
                status_code=429,
                headers={"Retry-After": str(retry_after)},
                content={
                    "success": False,
                    "error": f"Too many requests. Maximum {self.calls} requests per {self.period} seconds",
                    "code": "RATE_LIMIT_EXCEEDED",
                    "timestamp": datetime.now().isoformat(),
                },
            )

        client_requests.append(now)
        return await call_next(request)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to responses"""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Stored images are embedded cross-origin
        response.headers["Cross-Origin-Resource-Policy"] = "cross-origin"

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log all requests for monitoring"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        client_host = request.client.host if request.client is not None else "unknown"
        logger.info(
            "Request: %s %s from %s", request.method, request.url.path, client_host
        )

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info("Response: %d in %.3fs", response.status_code, process_time)

        return response
