"""Structured request/response logging middleware."""

from __future__ import annotations

import time

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from oxt_api.middleware.rate_limit import LIMITED_PREFIX

logger = structlog.get_logger("oxt_api.http")


def route_group(path: str) -> str:
    """The resource a /v1 path addresses ("apr", "validators", ...); "system" otherwise."""
    parts = path.strip("/").split("/")
    if len(parts) >= 2 and parts[0] == "v1":
        return parts[1]
    return "system"


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.monotonic()
        path = request.url.path
        log = logger.bind(
            method=request.method,
            path=path,
            route_group=route_group(path),
            rate_limited_route=path.startswith(LIMITED_PREFIX),
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            log.error(
                "request_failed",
                error=str(exc),
                duration_ms=round((time.monotonic() - start) * 1000, 2),
            )
            raise

        duration_ms = round((time.monotonic() - start) * 1000, 2)
        if response.status_code == 429:
            log.warning("request_throttled", duration_ms=duration_ms)
        else:
            log.info("request_completed", status=response.status_code, duration_ms=duration_ms)
        return response
