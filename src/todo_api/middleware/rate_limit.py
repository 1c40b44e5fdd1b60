import math
from collections import deque
from collections.abc import Callable
from time import monotonic

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from todo_api.shared.config import RateLimit as RateLimitConfig
from todo_api.shared.http import api_response
from todo_api.shared.logger import Logger

logger = Logger(__name__).get_logger()

AUTH_PATH_PREFIX = "/api/auth/"
TOO_MANY_REQUESTS = "Too many requests, please try again later"


class RateLimited(Exception):
    def __init__(self, scope: str, retry_after: float):
        super().__init__(TOO_MANY_REQUESTS)
        self.scope = scope
        self.retry_after = retry_after


class RateLimit(BaseHTTPMiddleware):
    """Rate Limit middleware for FastApi endpoints
    Sliding window rate limiting per client address.
    Authentication endpoints are counted in a second, stricter bucket.
    Every response carries the standard ``RateLimit`` and ``RateLimit-Policy``
    headers of the most restrictive bucket involved.
    """

    def __init__(
        self,
        app,
        config: RateLimitConfig,
        dispatch=None,
        clock: Callable[[], float] = monotonic,
    ):
        super().__init__(app, dispatch)

        # Params
        self.__window_s = config.window_seconds
        self.__timeout_period_s = config.timeout_period
        self.__limits = {"general": config.general_max, "auth": config.auth_max}

        # Checks
        self.__bucket: dict[tuple[str, str], deque[float]] = {}
        self.__timeout_club: dict[tuple[str, str], float] = {}

        # Time
        self.__clock = clock
        self.__now = clock()
        self.__last_sweep = self.__now

    def __len__(self) -> int:
        """Number of (scope, client) pairs currently tracked."""
        return len(self.__bucket.keys() | self.__timeout_club.keys())

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        # Skip rate limiting for OPTIONS requests (CORS preflight)
        if request.method == "OPTIONS":
            return await call_next(request)

        host = request.client.host if request.client else "unknown"
        scopes = ["general"]
        if request.url.path.startswith(AUTH_PATH_PREFIX):
            scopes.append("auth")

        self.__now = self.__clock()
        if self.__now - self.__last_sweep >= self.__window_s:
            self.__sweep()

        try:
            states = [self.__check((scope, host)) for scope in scopes]
        except RateLimited as e:
            logger.warning(
                "Rate limit exceeded by %s on %s %s", host, request.method, request.url.path
            )
            reset = max(1, math.ceil(e.retry_after))
            response = JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content=api_response(message=TOO_MANY_REQUESTS),
                headers={"Retry-After": str(reset)},
            )
            self.__set_headers(response, e.scope, 0, reset)
            return response

        response = await call_next(request)
        scope, remaining, reset = min(states, key=lambda state: state[1])
        self.__set_headers(response, scope, remaining, reset)
        return response

    def __set_headers(self, response: Response, scope: str, remaining: int, reset: int):
        # draft-7 of the IETF RateLimit header fields
        limit = self.__limits[scope]
        response.headers["RateLimit-Policy"] = f"{limit};w={self.__window_s}"
        response.headers["RateLimit"] = f"limit={limit}, remaining={remaining}, reset={reset}"

    def __check(self, key: tuple[str, str]) -> tuple[str, int, int]:
        # if key is in timeout; then reject
        # record the request timestamp
        # lazily prune records older than the window
        # after pruning, if records exceed the limit then reject
        # otherwise report (scope, remaining, seconds until the oldest record expires)

        self.__timeout_check(key)

        queue = self.__bucket.setdefault(key, deque())
        queue.append(self.__now)

        while self.__now - queue[0] >= self.__window_s:
            queue.popleft()

        scope = key[0]
        reset = self.__window_s - (self.__now - queue[0])
        if len(queue) > self.__limits[scope]:
            queue.pop()
            self.__timeout(key)
            raise RateLimited(scope, retry_after=reset)

        return scope, self.__limits[scope] - len(queue), max(1, math.ceil(reset))

    def __timeout_check(self, key: tuple[str, str]):
        if key not in self.__timeout_club:
            return

        timeout_timestamp = self.__timeout_club[key]
        elapsed = self.__now - timeout_timestamp

        if elapsed > self.__timeout_period_s:
            del self.__timeout_club[key]
        else:
            raise RateLimited(key[0], retry_after=self.__timeout_period_s - elapsed)

    def __timeout(self, key: tuple[str, str]):
        if self.__timeout_period_s:
            self.__timeout_club[key] = self.__now

    def __sweep(self):
        # forget clients whose every record has left the window
        stale = [
            key
            for key, queue in self.__bucket.items()
            if not queue or self.__now - queue[-1] >= self.__window_s
        ]
        for key in stale:
            del self.__bucket[key]

        expired = [
            key
            for key, timestamp in self.__timeout_club.items()
            if self.__now - timestamp > self.__timeout_period_s
        ]
        for key in expired:
            del self.__timeout_club[key]

        self.__last_sweep = self.__now
        if stale or expired:
            logger.debug("Dropped %d idle rate limit entries", len(stale) + len(expired))
