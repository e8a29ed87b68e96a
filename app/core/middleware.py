"""Custom middleware components for the application."""
from __future__ import annotations

import logging
import secrets
import time
from typing import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log one access line with its outcome and latency."""

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        self._skip_prefixes = ("/health",)

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        request_id = request.headers.get("X-Request-ID") or secrets.token_hex(8)
        request.state.request_id = request_id
        path = request.url.path
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:  # noqa: BLE001
            logger.exception("Unhandled error for %s %s [request_id=%s]", request.method, path, request_id)
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers.setdefault("X-Request-ID", request_id)

        if not path.startswith(self._skip_prefixes):
            logger.info(
                "%s %s -> %s in %.1fms [request_id=%s]",
                request.method,
                path,
                response.status_code,
                elapsed_ms,
                request_id,
            )

        return response


__all__ = ["RequestContextMiddleware"]
