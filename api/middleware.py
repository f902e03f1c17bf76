"""
Request gatekeeping middleware: origin allow-list and rate limiting
"""

from typing import Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from api.error_handlers import error_response
from utils.errors import OriginRejectedError, RateLimitedError
from utils.logging_utils import get_logger
from utils.rate_limiter import RateLimiter

logger = get_logger(__name__)


class OriginAllowListMiddleware(BaseHTTPMiddleware):
    """
    Rejects browser requests whose Origin is not allow-listed.
    Requests without an Origin header (server-to-server, curl) pass.
    """

    def __init__(self, app, allowed_origins: Iterable[str]):
        super().__init__(app)
        self.allowed_origins = set(allowed_origins)

    async def dispatch(self, request: Request, call_next):
        origin = request.headers.get("origin")
        if origin and origin not in self.allowed_origins:
            logger.warning("⚠️ Origin rejected: %s", origin)
            return error_response(OriginRejectedError(origin))
        return await call_next(request)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Answers 429 once a client exceeds its request quota"""

    def __init__(self, app, limiter: RateLimiter, trust_proxy: bool = False):
        super().__init__(app)
        self.limiter = limiter
        self.trust_proxy = trust_proxy

    def client_key(self, request: Request) -> str:
        if self.trust_proxy:
            forwarded = request.headers.get("x-forwarded-for")
            if forwarded:
                return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    async def dispatch(self, request: Request, call_next):
        client = self.client_key(request)
        if not self.limiter.hit(client):
            logger.warning("⚠️ Rate limit exceeded for %s", client)
            return error_response(RateLimitedError())
        return await call_next(request)
