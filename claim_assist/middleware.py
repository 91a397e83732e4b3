"""
Claim Assist — HTTP Middleware

Stack applied by configure_security(), outermost first:

  RequestLogMiddleware        X-Request-ID + one access-log line per request
  RateLimitMiddleware         sliding window per client IP (429 + Retry-After)
  SecurityHeadersMiddleware   nosniff / frame deny / no-store / optional HSTS
  CORSMiddleware              origins from settings.allowed_origins

Rate-limit windows are process-local: they reset on restart and each
replica counts separately.
"""

from __future__ import annotations

import logging
import math
import time
import uuid
from collections import defaultdict, deque

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from claim_assist.config import settings

logger = logging.getLogger(__name__)

# Never throttled
RATE_LIMIT_EXEMPT_PATHS = frozenset({"/health"})


def configure_cors(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Responses carry PHI, so nothing may be cached or framed."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        headers = response.headers
        headers.setdefault("X-Content-Type-Options", "nosniff")
        headers.setdefault("X-Frame-Options", "DENY")
        headers.setdefault("Referrer-Policy", "no-referrer")
        headers["Cache-Control"] = "no-store"
        if settings.enable_hsts:
            headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains"
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Allows settings.rate_limit_max_requests per
    settings.rate_limit_window_seconds for each client IP.
    A limit of 0 or less turns limiting off.
    """

    def __init__(self, app: FastAPI):
        super().__init__(app)
        self._hits: dict[str, deque[float]] = defaultdict(deque)

    def _retry_after(self, hits: deque[float], now: float, window: int) -> int:
        return max(1, math.ceil(hits[0] + window - now))

    async def dispatch(self, request: Request, call_next):
        limit = settings.rate_limit_max_requests
        if (
            limit <= 0
            or request.method == "OPTIONS"
            or request.url.path in RATE_LIMIT_EXEMPT_PATHS
        ):
            return await call_next(request)

        window = settings.rate_limit_window_seconds
        client = request.client.host if request.client else "unknown"
        now = time.monotonic()
        hits = self._hits[client]
        while hits and now - hits[0] >= window:
            hits.popleft()

        if len(hits) >= limit:
            retry_after = self._retry_after(hits, now, window)
            logger.warning(
                "Rate limit hit for %s on %s (retry in %ds)",
                client, request.url.path, retry_after,
            )
            return JSONResponse(
                {"error": "Rate limit exceeded. Please try again shortly."},
                status_code=429,
                headers={"Retry-After": str(retry_after)},
            )

        hits.append(now)
        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(limit - len(hits))
        return response


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id and logs method, path, status and latency."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:16]
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = request_id
        logger.info(
            "%s %s -> %d (%.0f ms) [%s]",
            request.method, request.url.path, response.status_code,
            elapsed_ms, request_id,
        )
        return response


def configure_security(app: FastAPI) -> None:
    """Install the middleware stack (add_middleware wraps, so the last added runs first)."""
    configure_cors(app)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLogMiddleware)
    logger.info(
        "Middleware configured (CORS for %d origin(s), rate limit %d/%ds)",
        len(settings.allowed_origins),
        settings.rate_limit_max_requests,
        settings.rate_limit_window_seconds,
    )
