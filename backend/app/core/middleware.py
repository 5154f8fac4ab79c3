from __future__ import annotations

import logging
from time import perf_counter

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)


class ProcessTimeMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        started = perf_counter()
        response = await call_next(request)
        elapsed_ms = (perf_counter() - started) * 1000
        response.headers.setdefault("X-Process-Time-Ms", f"{elapsed_ms:.2f}")
        logger.debug(
            "Request handled | method=%s path=%s status=%s runtime_ms=%.2f",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, *, max_bytes: int) -> None:
        super().__init__(app)
        self._max_bytes = max(1, max_bytes)

    async def dispatch(self, request: Request, call_next) -> Response:
        raw_length = request.headers.get("content-length")
        if not raw_length:
            return await call_next(request)
        try:
            size = int(raw_length)
        except ValueError:
            size = 0
        if size > self._max_bytes:
            logger.warning("Rejected oversized request | path=%s bytes=%s", request.url.path, size)
            return JSONResponse(
                status_code=413,
                content={
                    "detail": (
                        f"Request body too large ({size} bytes). "
                        f"Maximum allowed is {self._max_bytes} bytes."
                    )
                },
            )
        return await call_next(request)
