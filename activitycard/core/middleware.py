from collections import deque
from collections.abc import Awaitable
from collections.abc import Callable
from threading import RLock
from time import monotonic

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response


class BadgeRateLimitMiddleware(BaseHTTPMiddleware):
    """Simple in-memory rate limiter for GET /api/* card requests."""

    def __init__(
        self,
        app,
        requests_per_window: int = 30,
        window_seconds: int = 60,
        path_prefix: str = "/api/",
    ) -> None:
        super().__init__(app)
        self.max_requests = max(1, requests_per_window)
        self.window_seconds = max(1, window_seconds)
        self.path_prefix = path_prefix
        # One queue of request timestamps per client key. Keys with no
        # timestamps inside the window are removed.
        self._ip_buckets: dict[str, deque[float]] = {}
        self._lock = RLock()
        self._next_sweep = 0.0

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        # Only card rendering reaches GitHub; everything else passes through.
        if request.method != "GET" or not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        ip = self._client_ip(request)
        now = monotonic()

        with self._lock:
            cutoff = now - self.window_seconds
            if now >= self._next_sweep:
                self._sweep(cutoff)
                self._next_sweep = now + self.window_seconds

            bucket = self._ip_buckets.get(ip)
            if bucket is not None:
                while bucket and bucket[0] <= cutoff:
                    bucket.popleft()

                if len(bucket) >= self.max_requests:
                    retry_after = max(1, int(self.window_seconds - (now - bucket[0])))
                    return JSONResponse(
                        status_code=429,
                        content={"detail": "Too Many Requests"},
                        headers={"Retry-After": str(retry_after)},
                    )
            else:
                bucket = self._ip_buckets[ip] = deque()

            bucket.append(now)

        return await call_next(request)

    def _sweep(self, cutoff: float) -> None:
        stale = [ip for ip, bucket in self._ip_buckets.items() if bucket[-1] <= cutoff]
        for ip in stale:
            del self._ip_buckets[ip]

    @staticmethod
    def _client_ip(request: Request) -> str:
        # Reverse proxies usually set X-Forwarded-For.
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip() or "unknown"

        if request.client and request.client.host:
            return request.client.host

        return "unknown"
