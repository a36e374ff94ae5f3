"""Wager placement rate limiting.

Fixed-window counter in Redis, per caller:
    key   = "ratelimit:{account_id_or_ip}:wagers"
    count = INCR key; EXPIRE key 60 on the first hit
    count > WAGER_RATE_LIMIT_PER_MINUTE  ->  429 RATE_LIMITED

Only POST /wagers is limited; every other request passes straight through.
"""

import logging
from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from config.settings import settings
from src.pm_common.errors import RateLimitError
from src.pm_common.redis_client import get_redis
from src.pm_common.response import error_response

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60


def _client_key(request: Request) -> str:
    account_id = request.headers.get("X-Account-Id")
    if account_id:
        return account_id.strip()
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        limit: int | None = None,
        redis_factory: Callable[[], Awaitable[aioredis.Redis]] = get_redis,
    ) -> None:
        super().__init__(app)
        self._limit = limit if limit is not None else settings.WAGER_RATE_LIMIT_PER_MINUTE
        self._redis_factory = redis_factory

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method != "POST" or not request.url.path.rstrip("/").endswith("/wagers"):
            return await call_next(request)

        key = f"ratelimit:{_client_key(request)}:wagers"
        try:
            redis = await self._redis_factory()
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, WINDOW_SECONDS)
        except RedisError:
            # Limiter unavailable: fail open, wagers are still guarded by the wallet
            logger.warning("Rate limiter unavailable, admitting %s", key, exc_info=True)
            return await call_next(request)

        if count > self._limit:
            exc = RateLimitError()
            resp = error_response(exc.code, exc.message, exc.payload())
            resp.request_id = getattr(request.state, "request_id", resp.request_id)
            return JSONResponse(
                status_code=exc.http_status,
                content=resp.model_dump(),
                headers={"Retry-After": str(WINDOW_SECONDS)},
            )
        return await call_next(request)
