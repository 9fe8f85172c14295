"""
Correlation ID middleware
=========================
Tags each request with an X-Correlation-ID (client supplied or generated),
publishes it to the logging filter for the life of the request and logs
one access line with method, path, status and latency.
"""
from __future__ import annotations

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from courtfile.core.logger import correlation_id_var, logger

HEADER = "X-Correlation-ID"


class CorrelationMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(HEADER) or uuid.uuid4().hex
        request.state.correlation_id = correlation_id
        token = correlation_id_var.set(correlation_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            logger.info(
                "%s %s -> %s (%.1f ms)",
                request.method,
                request.url.path,
                response.status_code,
                (time.perf_counter() - started) * 1000,
            )
            response.headers[HEADER] = correlation_id
            return response
        finally:
            correlation_id_var.reset(token)
