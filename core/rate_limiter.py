import time

from fastapi import Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from core.exceptions import InvalidTokenError
from utils.jwt_handler import TokenIssuer
from utils.logger import get_logger

logger = get_logger("RedisRateLimit")


class RedisRateLimitMiddleware(BaseHTTPMiddleware):

    def __init__(
        self,
        app,
        redis,
        tokens: TokenIssuer,
        requests: int = 100,
        window_seconds: int = 60
    ):
        super().__init__(app)
        self.redis = redis
        self.tokens = tokens
        self.requests = requests
        self.window = window_seconds
        self.exclude_paths = {
            "/",
            "/docs",
            "/openapi.json"
        }

    def _get_identity(self, request: Request) -> str:
        """
        Priority:
        1. token subject (logged-in user)
        2. Client IP
        """
        client_host = request.client.host if request.client else "unknown"
        auth = request.headers.get("Authorization")
        if not auth or not auth.lower().startswith("bearer "):
            return client_host

        try:
            payload = self.tokens.verify_access(auth.split(" ", 1)[1])
            return f"user:{payload['sub']}"
        except InvalidTokenError:
            return client_host

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.exclude_paths:
            return await call_next(request)

        identity = self._get_identity(request)
        now = int(time.time())
        window_key = now // self.window
        redis_key = f"rate:{identity}:{window_key}"

        try:
            current_count = await self.redis.incr(redis_key)

            if current_count == 1:
                await self.redis.expire(redis_key, self.window)

            if current_count > self.requests:
                logger.warning(
                    "Rate limit exceeded",
                    extra={"identity": identity, "count": current_count}
                )
                return JSONResponse(
                    status_code=429,
                    content={"message": "Too many requests, please slow down"}
                )
        except RedisError as e:
            # fail open: a cache outage must not take the API down
            logger.error("Redis rate limit error", exc_info=e)

        return await call_next(request)
