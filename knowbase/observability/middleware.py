"""
FastAPI middleware for observability.

Tags every request with a request ID (taken from ``X-Request-ID`` or
generated) and logs one line per response with its timing. Health probes log
at DEBUG so polling does not drown the API log.

Dependencies: fastapi, starlette
System role: Request/response observability injection
"""

import logging
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _level_for(path: str, status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if path.endswith("/health") or "/health/" in path:
        return logging.DEBUG
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Assign request IDs and log HTTP responses with timing."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        start_time = time.perf_counter()
        method = request.method
        path = request.url.path

        try:
            response: Response = await call_next(request)
        except Exception:
            logger.exception(
                f"{method} {path} - unhandled error",
                extra={"method": method, "path": path, "request_id": request_id},
            )
            raise

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.log(
            _level_for(path, response.status_code),
            f"{method} {path} - {response.status_code}",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "request_id": request_id,
                "process_time_ms": round((time.perf_counter() - start_time) * 1000, 2),
            },
        )
        return response
