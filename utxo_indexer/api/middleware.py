"""
UTXO Indexer - API Middleware
===============================
Custom middleware for FastAPI application.
"""

import time
import uuid
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from utxo_indexer.logging_setup import get_logger

logger = get_logger("api.middleware")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Attach a request ID to each request.

    A client-supplied X-Request-ID is kept, otherwise a UUID4 is generated.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log every API request with timing information.

    Logs method, path, status code, duration and client IP.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()

        request_id = getattr(request.state, "request_id", "unknown")
        client_ip = request.client.host if request.client else "unknown"

        response = await call_next(request)

        duration = time.perf_counter() - start_time

        logger.info(
            f"[{request_id}] {request.method} {request.url.path} "
            f"-> {response.status_code} ({duration:.3f}s)",
            extra_data={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration * 1000, 2),
                "client_ip": client_ip,
            }
        )

        response.headers["X-Process-Time"] = f"{duration:.6f}"
        return response


__all__ = [
    'RequestIDMiddleware',
    'RequestLoggingMiddleware',
]
