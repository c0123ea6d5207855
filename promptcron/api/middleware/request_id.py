"""Request ID middleware for promptcron API."""

import uuid

import structlog
from fastapi import Request

from promptcron.core.logging import logger


async def request_id_middleware(request: Request, call_next):
    """Add unique request ID to each request, its log lines and response headers."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    with structlog.contextvars.bound_contextvars(request_id=request_id):
        response = await call_next(request)
        logger.info(
            "http_request",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
        )

    response.headers["X-Request-ID"] = request_id
    return response
