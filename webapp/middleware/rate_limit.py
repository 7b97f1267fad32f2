"""
Rate limiting middleware.

Uses a sliding one-minute window per client IP, with a stricter limit for
the batch endpoints since one batch request can carry thousands of ways.
"""

import logging
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from config import RATE_LIMIT_BATCH_PER_MINUTE, RATE_LIMIT_REQUESTS_PER_MINUTE

logger = logging.getLogger(__name__)

# POST endpoints that compile many ways per request
BATCH_PATHS = frozenset({"/api/ways/compile-batch", "/api/overpass/process"})

WINDOW = timedelta(minutes=1)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Middleware that enforces rate limits per client IP.

    Features:
    - General rate limit for /api/* requests
    - Stricter rate limit for POST batch endpoints
    - Health check is never limited
    """

    def __init__(
        self,
        app,
        requests_per_minute: Optional[int] = None,
        batch_per_minute: Optional[int] = None,
    ):
        super().__init__(app)
        self.requests_per_minute = requests_per_minute or RATE_LIMIT_REQUESTS_PER_MINUTE
        self.batch_per_minute = batch_per_minute or RATE_LIMIT_BATCH_PER_MINUTE
        self.request_counts: dict[str, list[datetime]] = defaultdict(list)
        self.batch_counts: dict[str, list[datetime]] = defaultdict(list)

    def _get_rate_limit_key(self, request: Request) -> str:
        """Client IP, honouring the first X-Forwarded-For hop behind a proxy."""
        forwarded_for = request.headers.get("X-Forwarded-For", "")
        if forwarded_for:
            return f"ip:{forwarded_for.split(',')[0].strip()}"

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return f"ip:{real_ip}"

        if request.client:
            return f"ip:{request.client.host}"

        return "ip:unknown"

    def _clean_old_requests(self, timestamps: list[datetime]) -> list[datetime]:
        """Remove timestamps older than the window."""
        cutoff = datetime.now(timezone.utc) - WINDOW
        return [t for t in timestamps if t > cutoff]

    @staticmethod
    def _too_many(detail: str) -> JSONResponse:
        return JSONResponse(status_code=429, content={"detail": detail})

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path

        # Only rate-limit API endpoints
        if not path.startswith("/api/"):
            return await call_next(request)

        # Health check is internal, never rate-limit it
        if path == "/api/health":
            return await call_next(request)

        key = self._get_rate_limit_key(request)
        now = datetime.now(timezone.utc)

        self.request_counts[key] = self._clean_old_requests(self.request_counts[key])
        if len(self.request_counts[key]) >= self.requests_per_minute:
            logger.warning(f"Rate limit exceeded for {key}: general limit")
            return self._too_many("Too many requests. Please slow down.")

        if path in BATCH_PATHS and request.method == "POST":
            self.batch_counts[key] = self._clean_old_requests(self.batch_counts[key])
            if len(self.batch_counts[key]) >= self.batch_per_minute:
                logger.warning(f"Rate limit exceeded for {key}: batch limit")
                return self._too_many(
                    f"Batch limit reached ({self.batch_per_minute}/minute). Please try again later."
                )
            self.batch_counts[key].append(now)

        self.request_counts[key].append(now)

        response = await call_next(request)
        remaining = self.requests_per_minute - len(self.request_counts[key])
        response.headers["X-RateLimit-Limit"] = str(self.requests_per_minute)
        response.headers["X-RateLimit-Remaining"] = str(max(0, remaining))

        return response
