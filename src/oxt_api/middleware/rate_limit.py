"""Fixed-window rate limiting for the APR endpoints."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse
from starlette.types import ASGIApp

from oxt_api.responses import error_response

LIMITED_PREFIX = "/v1/apr"


@dataclass
class RateWindow:
    count: int = 0
    window_start: float = 0.0


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        *,
        max_requests: int = 60,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, RateWindow] = {}
        self._lock = threading.Lock()

    def _prune(self, now: float) -> None:
        """Drop every window that has run out. Caller holds the lock."""
        stale = [
            key
            for key, window in self._windows.items()
            if now - window.window_start >= self.window_seconds
        ]
        for key in stale:
            del self._windows[key]

    def _get_key(self, request: Request) -> str:
        client = request.client
        return client.host if client else "unknown"

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not request.url.path.startswith(LIMITED_PREFIX):
            return await call_next(request)

        key = self._get_key(request)
        now = self._clock()

        with self._lock:
            window = self._windows.get(key)
            if window is None or now - window.window_start >= self.window_seconds:
                self._prune(now)
                window = self._windows.setdefault(key, RateWindow(window_start=now))

            reset_in = max(1, int(window.window_start + self.window_seconds - now))
            if window.count >= self.max_requests:
                return JSONResponse(
                    status_code=429,
                    content=error_response(
                        "RATE_LIMIT_EXCEEDED",
                        "Too many APR requests, please try again later.",
                        details={"limit": self.max_requests, "window_seconds": self.window_seconds},
                    ),
                    headers={
                        "Retry-After": str(reset_in),
                        "X-RateLimit-Limit": str(self.max_requests),
                        "X-RateLimit-Remaining": "0",
                    },
                )

            window.count += 1
            remaining = self.max_requests - window.count

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response
