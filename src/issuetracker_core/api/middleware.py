"""Per-client rate limiting middleware."""
import logging

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ..ratelimit import RateLimiter

logger = logging.getLogger("issuetracker-core.api.middleware")


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests once the client's token bucket is empty."""

    def __init__(self, app, limiter: RateLimiter):
        super().__init__(app)
        self.limiter = limiter

    def _client_key(self, request: Request) -> str:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    async def dispatch(self, request: Request, call_next) -> Response:
        key = self._client_key(request)
        if not self.limiter.allow(key):
            logger.info(f"Rate limit exceeded for {key}")
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"error": "rate limit exceeded"},
            )
        return await call_next(request)
