"""Request logging middleware."""

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from hlstrackproxy.core.urls import URL_PARAM
from hlstrackproxy.utils.logger import get_logger

logger = get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every proxied request with its outcome and duration."""

    async def dispatch(self, request: Request, call_next):
        """Log request before processing and response after."""
        start_time = time.time()
        target = request.query_params.get(URL_PARAM)

        logger.debug(
            "Incoming proxy request",
            method=request.method,
            path=request.url.path,
            target=target,
        )

        response = await call_next(request)

        duration_ms = (time.time() - start_time) * 1000
        log = logger.warning if response.status_code >= 400 else logger.info
        log(
            "Proxy request completed",
            method=request.method,
            path=request.url.path,
            target=target,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )

        return response
